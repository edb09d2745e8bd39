"""Tests for MatchRegistry — index maintenance, resilient bulk load, CRUD."""

import json
from unittest.mock import AsyncMock

import pytest

from aura.core.codec import encode_scalar
from aura.core.errors import NotFoundError, RecordFormatError
from aura.matching.config import MATCH_INDEX_KEY, match_key
from aura.matching.registry import MatchRegistry
from aura.models.match import MatchDraft, MatchStatus

ADDRESS = "0x2222222222222222222222222222222222222222"


def _draft(created_at: int = 1_700_000_000, interests=("Web3",)) -> MatchDraft:
    return MatchDraft(
        encrypted_distance=encode_scalar(100),
        encrypted_compatibility=encode_scalar(50),
        created_at=created_at,
        counterparty_identity=ADDRESS,
        interests=tuple(interests),
    )


# ---------------------------------------------------------------------------
# propose
# ---------------------------------------------------------------------------


class TestPropose:

    @pytest.mark.asyncio
    async def test_writes_record_then_index(self, registry, ledger):
        match_id = await registry.propose(_draft())

        assert ledger.writes == [match_key(match_id), MATCH_INDEX_KEY]
        assert json.loads(await ledger.get_data(MATCH_INDEX_KEY)) == [match_id]

    @pytest.mark.asyncio
    async def test_appends_in_insertion_order(self, registry):
        first = await registry.propose(_draft())
        second = await registry.propose(_draft())
        assert await registry.load_index() == [first, second]

    @pytest.mark.asyncio
    async def test_corrupt_index_is_replaced(self, registry, ledger):
        await ledger.set_data(MATCH_INDEX_KEY, b"{broken")
        match_id = await registry.propose(_draft())
        assert await registry.load_index() == [match_id]

    @pytest.mark.asyncio
    async def test_stored_record_is_pending(self, registry):
        match_id = await registry.propose(_draft())
        record = await registry.get_one(match_id)
        assert record.status == MatchStatus.PENDING
        assert record.counterparty_identity == ADDRESS

    @pytest.mark.asyncio
    async def test_default_registry_uses_configured_ledger(self, ledger):
        registry = MatchRegistry()
        assert registry.ledger is ledger

        match_id = await registry.propose(_draft())

        assert ledger.writes == [match_key(match_id), MATCH_INDEX_KEY]
        assert await registry.load_index() == [match_id]


# ---------------------------------------------------------------------------
# load_all
# ---------------------------------------------------------------------------


class TestLoadAll:

    @pytest.mark.asyncio
    async def test_empty_ledger_is_empty_list(self, registry):
        assert await registry.load_all() == []

    @pytest.mark.asyncio
    async def test_sorted_newest_first(self, registry):
        old = await registry.propose(_draft(created_at=100))
        new = await registry.propose(_draft(created_at=300))
        mid = await registry.propose(_draft(created_at=200))

        records = await registry.load_all()
        assert [r.match_id for r in records] == [new, mid, old]

    @pytest.mark.asyncio
    async def test_malformed_record_is_skipped(self, registry, ledger):
        good = await registry.propose(_draft())
        await ledger.set_data(match_key("bad"), b"not json")
        await ledger.set_data(MATCH_INDEX_KEY, json.dumps([good, "bad"]).encode())

        records = await registry.load_all()
        assert [r.match_id for r in records] == [good]

    @pytest.mark.asyncio
    async def test_missing_record_is_skipped(self, registry, ledger):
        good = await registry.propose(_draft())
        await ledger.set_data(MATCH_INDEX_KEY, json.dumps(["ghost", good]).encode())
        assert len(await registry.load_all()) == 1

    @pytest.mark.asyncio
    async def test_unparseable_index_is_empty(self, registry, ledger):
        await ledger.set_data(MATCH_INDEX_KEY, b"[[[")
        assert await registry.load_all() == []

    @pytest.mark.asyncio
    async def test_unavailable_ledger_is_empty(self, registry, ledger):
        await registry.propose(_draft())
        ledger.available = False
        assert await registry.load_all() == []

    @pytest.mark.asyncio
    async def test_read_error_on_one_record_is_skipped(self, registry, ledger):
        good = await registry.propose(_draft())
        await registry.propose(_draft())
        real_get = ledger.get_data

        async def flaky_get(key):
            if key.startswith("match_") and key != match_key(good) and key != MATCH_INDEX_KEY:
                raise ConnectionError("read failed")
            return await real_get(key)

        ledger.get_data = AsyncMock(side_effect=flaky_get)
        records = await registry.load_all()
        assert [r.match_id for r in records] == [good]

    @pytest.mark.asyncio
    async def test_load_all_does_not_write(self, registry, ledger):
        await registry.propose(_draft())
        before = list(ledger.writes)
        await registry.load_all()
        assert ledger.writes == before


# ---------------------------------------------------------------------------
# get_one / update
# ---------------------------------------------------------------------------


class TestGetOne:

    @pytest.mark.asyncio
    async def test_absent_record_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.get_one("nope")

    @pytest.mark.asyncio
    async def test_corrupt_record_format_error(self, registry, ledger):
        await ledger.set_data(match_key("x"), b'{"distance": 1}')
        with pytest.raises(RecordFormatError):
            await registry.get_one("x")


class TestUpdate:

    @pytest.mark.asyncio
    async def test_sync_mutator_written_back(self, registry):
        match_id = await registry.propose(_draft())
        updated = await registry.update(match_id, lambda r: r.transition_to(MatchStatus.REJECTED))

        assert updated.status == MatchStatus.REJECTED
        assert (await registry.get_one(match_id)).status == MatchStatus.REJECTED

    @pytest.mark.asyncio
    async def test_async_mutator_supported(self, registry):
        match_id = await registry.propose(_draft())

        async def accept(record):
            return record.transition_to(MatchStatus.MATCHED)

        assert (await registry.update(match_id, accept)).status == MatchStatus.MATCHED

    @pytest.mark.asyncio
    async def test_failing_mutator_writes_nothing(self, registry, ledger):
        match_id = await registry.propose(_draft())
        writes_before = len(ledger.writes)

        def boom(record):
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await registry.update(match_id, boom)
        assert len(ledger.writes) == writes_before

    @pytest.mark.asyncio
    async def test_update_missing_record_raises(self, registry):
        with pytest.raises(NotFoundError):
            await registry.update("nope", lambda r: r)
