"""
In-memory ledger for development and tests.

Behaves like the remote ledger from the caller's point of view: values are
copied in and out as bytes and absent keys read as ``b""``.
"""

import uuid

from aura.ledger.base import LedgerAck


class InMemoryLedger:
    """Dict-backed ledger. Set ``available = False`` to simulate an outage."""

    def __init__(self, address: str = "0x0000000000000000000000000000000000000000"):
        self._address = address
        self._data: dict[str, bytes] = {}
        self.available = True
        self.writes: list[str] = []

    async def is_available(self) -> bool:
        return self.available

    async def get_address(self) -> str:
        return self._address

    async def get_data(self, key: str) -> bytes:
        return bytes(self._data.get(key, b""))

    async def set_data(self, key: str, value: bytes) -> LedgerAck:
        self._data[key] = bytes(value)
        self.writes.append(key)
        return LedgerAck(key=key, size=len(value), tx_id=uuid.uuid4().hex)

    def keys(self) -> list[str]:
        return list(self._data)
