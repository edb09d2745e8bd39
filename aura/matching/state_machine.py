"""
Match state machine — propose, accept and reject.

States: pending → matched | rejected (both terminal).

Every transition fetches a fresh snapshot through the registry, validates
status and authorization, and writes the whole record back.  A failed check
raises before anything is written, so stored state is unchanged.

The ownership check on accept is a plain identity comparison evaluated by
this process.  It is only as strong as the read path that enforces it and is
not cryptographically binding; a production deployment has to repeat it
where the ledger is written.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Iterable, Protocol

from aura.core.codec import EncryptedScalarCodec, OperationTag
from aura.core.errors import (
    InvalidProposalError,
    InvalidTransitionError,
    NotAuthorizedError,
    UnauthenticatedError,
)
from aura.core.signing import same_identity
from aura.matching.config import COMPATIBILITY_RANGE, DISTANCE_RANGE, INTEREST_OPTIONS
from aura.matching.registry import MatchRegistry
from aura.models.match import MatchDraft, MatchRecord, MatchStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authorization policy
# ---------------------------------------------------------------------------


class AuthorizationPolicy(Protocol):
    def can_accept(self, identity: str, record: MatchRecord) -> bool: ...

    def can_reject(self, identity: str, record: MatchRecord) -> bool: ...


class CounterpartyPolicy:
    """Only the counterparty may accept; any authenticated identity may reject."""

    def can_accept(self, identity: str, record: MatchRecord) -> bool:
        return same_identity(identity, record.counterparty_identity)

    def can_reject(self, identity: str, record: MatchRecord) -> bool:
        return True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_identity(identity: str | None) -> str:
    if not identity:
        raise UnauthenticatedError()
    return identity


def normalize_interests(interests: Iterable[str]) -> tuple[str, ...]:
    """
    De-duplicate a selection and check it against the vocabulary.

    Raises InvalidProposalError when nothing is selected or a tag is unknown.
    """
    selected = tuple(dict.fromkeys(interests))
    if not selected:
        raise InvalidProposalError("Please select at least one interest")
    unknown = [i for i in selected if i not in INTEREST_OPTIONS]
    if unknown:
        raise InvalidProposalError(f"Unknown interests: {', '.join(unknown)}")
    return selected


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class MatchStateMachine:
    """Transition operations over registry-backed match records."""

    ACCEPT_OPERATION = OperationTag.INCREASE_10PCT

    def __init__(
        self,
        registry: MatchRegistry,
        codec: EncryptedScalarCodec,
        policy: AuthorizationPolicy | None = None,
        rng: random.Random | None = None,
    ):
        self.registry = registry
        self.codec = codec
        self.policy = policy or CounterpartyPolicy()
        self._rng = rng or random.Random()

    # ── create ──────────────────────────────────────────────────────────

    async def propose(
        self,
        identity: str | None,
        interests: Iterable[str],
        *,
        counterparty: str | None = None,
        distance: float | None = None,
        compatibility: float | None = None,
    ) -> str:
        """
        Create a pending match and return its id.

        The counterparty defaults to the proposing identity.  Distance and
        compatibility are simulated when not supplied and are encrypted
        before they leave this method.
        """
        identity = _require_identity(identity)
        selected = normalize_interests(interests)

        if distance is None:
            distance = self._rng.randrange(DISTANCE_RANGE)
        if compatibility is None:
            compatibility = self._rng.randrange(COMPATIBILITY_RANGE)

        draft = MatchDraft(
            encrypted_distance=await self.codec.encode(distance),
            encrypted_compatibility=await self.codec.encode(compatibility),
            created_at=int(time.time()),
            counterparty_identity=counterparty or identity,
            interests=selected,
            status=MatchStatus.PENDING,
        )
        return await self.registry.propose(draft)

    # ── accept ──────────────────────────────────────────────────────────

    async def verify_match(self, identity: str | None, match_id: str) -> MatchRecord:
        """
        Accept a pending match: status → matched and compatibility bumped 10%.

        The bump is applied with ``codec.transform`` so plaintext never
        surfaces here.
        """
        identity = _require_identity(identity)

        async def _accept(record: MatchRecord) -> MatchRecord:
            if not record.is_valid_transition(record.status, MatchStatus.MATCHED):
                raise InvalidTransitionError(
                    record.match_id, record.status.value, MatchStatus.MATCHED.value,
                )
            if not self.policy.can_accept(identity, record):
                raise NotAuthorizedError(
                    f"Only the counterparty can accept match {record.match_id}"
                )
            bumped = await self.codec.transform(
                record.encrypted_compatibility, self.ACCEPT_OPERATION,
            )
            return record.transition_to(MatchStatus.MATCHED, encrypted_compatibility=bumped)

        updated = await self.registry.update(match_id, _accept)
        logger.info("Match %s accepted by %s", match_id, identity)
        return updated

    # ── reject ──────────────────────────────────────────────────────────

    async def reject_match(self, identity: str | None, match_id: str) -> MatchRecord:
        """Reject a pending match. Encrypted fields are left untouched."""
        identity = _require_identity(identity)

        def _reject(record: MatchRecord) -> MatchRecord:
            if not record.is_valid_transition(record.status, MatchStatus.REJECTED):
                raise InvalidTransitionError(
                    record.match_id, record.status.value, MatchStatus.REJECTED.value,
                )
            if not self.policy.can_reject(identity, record):
                raise NotAuthorizedError(f"Not allowed to reject match {record.match_id}")
            return record.transition_to(MatchStatus.REJECTED)

        updated = await self.registry.update(match_id, _reject)
        logger.info("Match %s rejected by %s", match_id, identity)
        return updated
