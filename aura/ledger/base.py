"""
Ledger protocol — whole-value get/set over a shared key-value store.

Architecture:
  - Ledger (protocol) is the read-only view
  - WritableLedger adds ``set_data`` for the authenticated variant
  - RedisLedger backs it with Redis (default)
  - InMemoryLedger keeps everything in a dict (LEDGER_BACKEND=memory)

Empty bytes from ``get_data`` mean the key is absent.  Writes always replace
the full value; there is no compare-and-swap, so concurrent read-modify-write
sequences can lose updates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from aura.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerAck:
    """Acknowledgement returned by ``set_data``."""
    key: str
    size: int
    tx_id: str


class Ledger(Protocol):
    async def is_available(self) -> bool: ...

    async def get_address(self) -> str: ...

    async def get_data(self, key: str) -> bytes: ...


class WritableLedger(Ledger, Protocol):
    async def set_data(self, key: str, value: bytes) -> LedgerAck: ...


# ---------------------------------------------------------------------------
# Factory — selects backend based on config
# ---------------------------------------------------------------------------

_ledger: WritableLedger | None = None


def get_ledger() -> WritableLedger:
    """Return the configured ledger (cached after first call)."""
    global _ledger
    if _ledger is not None:
        return _ledger

    if settings.LEDGER_BACKEND == "memory":
        from aura.ledger.memory import InMemoryLedger
        logger.info("Using InMemoryLedger (data is not persisted)")
        _ledger = InMemoryLedger(address=settings.LEDGER_ADDRESS)
    else:
        from aura.ledger.redis_ledger import RedisLedger
        logger.info("Using RedisLedger at %s", settings.REDIS_URL)
        _ledger = RedisLedger(
            address=settings.LEDGER_ADDRESS,
            key_prefix=settings.LEDGER_KEY_PREFIX,
        )
    return _ledger


def set_ledger(ledger: WritableLedger | None) -> None:
    """Override the ledger (used in tests)."""
    global _ledger
    _ledger = ledger
