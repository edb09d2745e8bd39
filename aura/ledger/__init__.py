"""Ledger adapters — the external key-value store of record."""

from aura.ledger.base import Ledger, LedgerAck, WritableLedger, get_ledger, set_ledger
from aura.ledger.memory import InMemoryLedger
from aura.ledger.redis_ledger import RedisLedger

__all__ = [
    "Ledger", "LedgerAck", "WritableLedger",
    "InMemoryLedger", "RedisLedger",
    "get_ledger", "set_ledger",
]
