"""
Redis-backed ledger.

Data layout:
  String  — ``{prefix}match_keys``     JSON array of match ids
  String  — ``{prefix}match_{id}``     JSON match record

Every write is a plain SET of the whole value.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from aura.ledger.base import LedgerAck

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class RedisLedger:
    """
    Ledger over a Redis string keyspace.

    Accepts a ``redis`` client on construction so callers (and tests)
    can inject their own connection.  Falls back to the module-level
    singleton from ``aura.redis_client`` when no client is supplied.
    """

    def __init__(
        self,
        redis_client: "aioredis.Redis | None" = None,
        address: str = "",
        key_prefix: str = "",
    ):
        self._redis = redis_client
        self._address = address
        self._prefix = key_prefix

    @property
    def redis(self) -> "aioredis.Redis":
        if self._redis is not None:
            return self._redis
        # Lazy import to avoid connecting at module load time
        from aura.redis_client import redis as _default
        return _default

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def is_available(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            logger.warning("Ledger unavailable: Redis ping failed")
            return False

    async def get_address(self) -> str:
        return self._address

    async def get_data(self, key: str) -> bytes:
        value = await self.redis.get(self._key(key))
        if value is None:
            return b""
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set_data(self, key: str, value: bytes) -> LedgerAck:
        await self.redis.set(self._key(key), value)
        return LedgerAck(key=key, size=len(value), tx_id=uuid.uuid4().hex)
