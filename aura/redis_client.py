"""
Redis connection setup using redis-py async client.

The ledger stores raw UTF-8 JSON bytes, so the shared client is created
in bytes mode (``decode_responses=False``).  ``REDIS_SSL`` upgrades a plain
``redis://`` URL to ``rediss://``.
"""

import redis.asyncio as aioredis

from aura.config import settings


def _redis_url() -> str:
    url = settings.REDIS_URL
    if settings.REDIS_SSL and url.startswith("redis://"):
        return "rediss://" + url[len("redis://"):]
    return url


redis = aioredis.from_url(_redis_url(), decode_responses=False)
