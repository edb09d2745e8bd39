"""
Match registry — the match index plus record CRUD over the ledger.

Data layout:
  ``match_keys``      JSON array of match ids, insertion order, append-only
  ``match_{id}``      JSON match record (see ``aura.models.match``)

``propose`` writes the record first and then re-reads, appends to and
rewrites the index.  Nothing isolates that read-modify-write: two proposals
racing on the index can drop one of the appends (last write wins).
``update`` has the same last-writer-wins behaviour per record.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

from aura.core.errors import NotFoundError, RecordFormatError
from aura.ledger.base import Ledger, WritableLedger, get_ledger
from aura.matching.config import MATCH_INDEX_KEY, match_key
from aura.models.match import (
    MatchDraft,
    MatchRecord,
    ParseErrorKind,
    parse_match_index,
    parse_match_record,
    serialize_match_index,
)

logger = logging.getLogger(__name__)

Mutator = Callable[[MatchRecord], Union[MatchRecord, Awaitable[MatchRecord]]]


class MatchRegistry:
    """
    Keyed index maintenance and record CRUD.

    Accepts a ``ledger`` on construction so callers (and tests) can inject
    their own store.  Falls back to the configured ledger from
    ``aura.ledger.base.get_ledger`` when none is supplied.
    """

    def __init__(self, ledger: WritableLedger | None = None):
        self._ledger = ledger

    @property
    def ledger(self) -> WritableLedger:
        if self._ledger is not None:
            return self._ledger
        return get_ledger()

    # ── index ───────────────────────────────────────────────────────────

    async def load_index(self, ledger: Ledger | None = None) -> list[str]:
        """Return the ids in the index; an absent or unparseable index reads as empty."""
        ledger = ledger or self.ledger
        raw = await ledger.get_data(MATCH_INDEX_KEY)
        parsed = parse_match_index(raw)
        if not parsed.ok:
            if parsed.kind != ParseErrorKind.EMPTY:
                logger.error("Error parsing match index (%s): %s", parsed.kind.value, parsed.detail)
            return []
        return parsed.value

    # ── bulk read ───────────────────────────────────────────────────────

    async def load_all(self) -> list[MatchRecord]:
        """
        Load every indexed record, newest ``created_at`` first.

        Read-only.  An unavailable ledger or unreadable index yields ``[]``.
        Records that are missing, empty, or fail validation are skipped and
        logged so that partial corruption never blocks the whole view.
        """
        ledger = self.ledger
        try:
            if not await ledger.is_available():
                logger.warning("Ledger reports unavailable; returning no matches")
                return []
            ids = await self.load_index(ledger)
        except Exception:
            logger.exception("Error loading match index")
            return []

        records: list[MatchRecord] = []
        for match_id in ids:
            try:
                raw = await ledger.get_data(match_key(match_id))
            except Exception:
                logger.exception("Error loading match %s", match_id)
                continue

            parsed = parse_match_record(match_id, raw)
            if parsed.ok:
                records.append(parsed.value)
            elif parsed.kind == ParseErrorKind.EMPTY:
                logger.warning("Match %s is indexed but has no record", match_id)
            else:
                logger.error(
                    "Skipping match %s (%s): %s", match_id, parsed.kind.value, parsed.detail,
                )

        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    # ── single record ───────────────────────────────────────────────────

    async def get_one(self, match_id: str) -> MatchRecord:
        """Fetch one record. Raises NotFoundError on empty bytes."""
        raw = await self.ledger.get_data(match_key(match_id))
        parsed = parse_match_record(match_id, raw)
        if parsed.ok:
            return parsed.value
        if parsed.kind == ParseErrorKind.EMPTY:
            raise NotFoundError(match_id)
        raise RecordFormatError(match_id, parsed.kind.value, parsed.detail)

    # ── writes ──────────────────────────────────────────────────────────

    async def propose(self, draft: MatchDraft) -> str:
        """
        Store a new record and append its id to the index.

        1. SET match_{id}   record
        2. GET match_keys   → append id → SET match_keys
        """
        match_id = MatchRecord.generate_match_id()
        record = MatchRecord.from_draft(match_id, draft)
        await self.ledger.set_data(match_key(match_id), record.to_wire())

        raw = await self.ledger.get_data(MATCH_INDEX_KEY)
        parsed = parse_match_index(raw)
        if parsed.ok:
            ids = parsed.value
        else:
            if parsed.kind != ParseErrorKind.EMPTY:
                logger.error(
                    "Match index unreadable (%s); rewriting it with the new id only",
                    parsed.kind.value,
                )
            ids = []
        ids.append(match_id)
        await self.ledger.set_data(MATCH_INDEX_KEY, serialize_match_index(ids))

        logger.info("Proposed match %s (%d indexed)", match_id, len(ids))
        return match_id

    async def update(self, match_id: str, mutator: Mutator) -> MatchRecord:
        """
        Fetch, mutate and write back a record (last writer wins).

        *mutator* may be sync or async.  If it raises, nothing is written.
        """
        current = await self.get_one(match_id)
        updated = mutator(current)
        if inspect.isawaitable(updated):
            updated = await updated
        if updated.match_id != match_id:
            raise ValueError(f"Mutator changed match id {match_id} -> {updated.match_id}")

        await self.ledger.set_data(match_key(match_id), updated.to_wire())
        return updated
