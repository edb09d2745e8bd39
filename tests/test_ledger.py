"""Tests for ledger adapters — in-memory store, Redis adapter, factory."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from aura.ledger.base import get_ledger, set_ledger
from aura.ledger.memory import InMemoryLedger
from aura.ledger.redis_ledger import RedisLedger


class TestInMemoryLedger:

    @pytest.mark.asyncio
    async def test_absent_key_reads_empty(self, ledger):
        assert await ledger.get_data("missing") == b""

    @pytest.mark.asyncio
    async def test_set_then_get(self, ledger):
        ack = await ledger.set_data("k", b"value")
        assert ack.key == "k"
        assert ack.size == 5
        assert await ledger.get_data("k") == b"value"
        assert ledger.writes == ["k"]

    @pytest.mark.asyncio
    async def test_outage_flag(self, ledger):
        ledger.available = False
        assert await ledger.is_available() is False

    @pytest.mark.asyncio
    async def test_address(self):
        assert await InMemoryLedger(address="0xfeed").get_address() == "0xfeed"


class TestRedisLedger:

    @pytest.fixture
    def mock_redis(self):
        redis = AsyncMock()
        redis.get = AsyncMock(return_value=None)
        redis.set = AsyncMock()
        redis.ping = AsyncMock(return_value=True)
        return redis

    @pytest.mark.asyncio
    async def test_missing_key_is_empty_bytes(self, mock_redis):
        ledger = RedisLedger(mock_redis)
        assert await ledger.get_data("match_keys") == b""

    @pytest.mark.asyncio
    async def test_prefix_applied_to_reads_and_writes(self, mock_redis):
        ledger = RedisLedger(mock_redis, key_prefix="aura:")
        await ledger.set_data("match_1", b"{}")
        await ledger.get_data("match_1")
        mock_redis.set.assert_awaited_once_with("aura:match_1", b"{}")
        mock_redis.get.assert_awaited_once_with("aura:match_1")

    @pytest.mark.asyncio
    async def test_str_values_encoded(self, mock_redis):
        mock_redis.get = AsyncMock(return_value='["a"]')
        assert await RedisLedger(mock_redis).get_data("match_keys") == b'["a"]'

    @pytest.mark.asyncio
    async def test_ping_failure_means_unavailable(self, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=RedisConnectionError("down"))
        assert await RedisLedger(mock_redis).is_available() is False

    @pytest.mark.asyncio
    async def test_ack_carries_size(self, mock_redis):
        ack = await RedisLedger(mock_redis).set_data("k", b"abc")
        assert ack.size == 3
        assert len(ack.tx_id) == 32


class TestLedgerFactory:

    def test_set_ledger_overrides_factory(self, ledger):
        assert get_ledger() is ledger

    def test_memory_backend_selected_from_settings(self, monkeypatch):
        from aura.config import settings

        set_ledger(None)
        monkeypatch.setattr(settings, "LEDGER_BACKEND", "memory")
        assert isinstance(get_ledger(), InMemoryLedger)
