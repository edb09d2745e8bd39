"""
Match record model — the unit of matching state exchanged between two identities.

Records are immutable snapshots: every state change produces a new record
that the registry writes back to the ledger under the same id.

Wire format (UTF-8 JSON, ledger key ``match_{id}``)::

    {"distance": "FHE-...", "compatibility": "FHE-...", "timestamp": 1700000000,
     "matchedAddress": "0x...", "status": "pending", "interests": ["Web3"]}
"""

from __future__ import annotations

import dataclasses
import enum
import json
import random
import string
import time
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aura.core.codec import EncryptedScalar
from aura.core.errors import InvalidTransitionError

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    MATCHED = "matched"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Status transition map
# ---------------------------------------------------------------------------

VALID_TRANSITIONS: dict[MatchStatus, set[MatchStatus]] = {
    MatchStatus.PENDING: {
        MatchStatus.MATCHED,
        MatchStatus.REJECTED,
    },
    MatchStatus.MATCHED: set(),
    MatchStatus.REJECTED: set(),
}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchDraft:
    """A match record before the registry assigns it an id."""
    encrypted_distance: EncryptedScalar
    encrypted_compatibility: EncryptedScalar
    created_at: int
    counterparty_identity: str
    interests: tuple[str, ...]
    status: MatchStatus = MatchStatus.PENDING


@dataclass(frozen=True)
class MatchRecord:
    match_id: str
    encrypted_distance: EncryptedScalar
    encrypted_compatibility: EncryptedScalar
    created_at: int
    counterparty_identity: str
    status: MatchStatus
    interests: tuple[str, ...]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @staticmethod
    def generate_match_id(now_ms: int | None = None) -> str:
        """Millisecond timestamp plus a 7-char base36 suffix, e.g. ``1700000000000-k3j9x0a``."""
        if now_ms is None:
            now_ms = time.time_ns() // 1_000_000
        chars = string.ascii_lowercase + string.digits
        suffix = "".join(random.choices(chars, k=7))
        return f"{now_ms}-{suffix}"

    @classmethod
    def from_draft(cls, match_id: str, draft: MatchDraft) -> "MatchRecord":
        return cls(
            match_id=match_id,
            encrypted_distance=draft.encrypted_distance,
            encrypted_compatibility=draft.encrypted_compatibility,
            created_at=draft.created_at,
            counterparty_identity=draft.counterparty_identity,
            status=draft.status,
            interests=tuple(draft.interests),
        )

    # ------------------------------------------------------------------
    # Status transition validation
    # ------------------------------------------------------------------

    @staticmethod
    def is_valid_transition(from_status: MatchStatus, to_status: MatchStatus) -> bool:
        """Check whether a status transition is allowed."""
        return to_status in VALID_TRANSITIONS.get(from_status, set())

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS.get(self.status)

    def transition_to(self, new_status: MatchStatus, **changes) -> "MatchRecord":
        """
        Return a copy moved to *new_status* (plus any field *changes*).

        Raises InvalidTransitionError if the move is not allowed.
        """
        if not self.is_valid_transition(self.status, new_status):
            raise InvalidTransitionError(self.match_id, self.status.value, new_status.value)
        return dataclasses.replace(self, status=new_status, **changes)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_wire(self) -> bytes:
        payload = MatchWire(
            distance=self.encrypted_distance,
            compatibility=self.encrypted_compatibility,
            timestamp=self.created_at,
            matchedAddress=self.counterparty_identity,
            status=self.status,
            interests=list(self.interests),
        )
        return _dump_json(payload.model_dump(mode="json"))

    def __repr__(self) -> str:
        return f"<MatchRecord {self.match_id} status={self.status.value}>"


# ---------------------------------------------------------------------------
# Wire schema
# ---------------------------------------------------------------------------


class MatchWire(BaseModel):
    """Schema of a stored match record."""
    model_config = ConfigDict(extra="ignore")

    distance: str
    compatibility: str
    timestamp: int
    matchedAddress: str
    status: MatchStatus = MatchStatus.PENDING
    interests: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v):
        return v or MatchStatus.PENDING

    @field_validator("interests", mode="before")
    @classmethod
    def _default_interests(cls, v):
        return v or []


def _dump_json(obj) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


# ---------------------------------------------------------------------------
# Tagged parse results
# ---------------------------------------------------------------------------


class ParseErrorKind(str, enum.Enum):
    EMPTY = "empty"
    MALFORMED_JSON = "malformed_json"
    INVALID_SCHEMA = "invalid_schema"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Either ``ok`` with a value, or an error ``kind`` with a short detail."""
    ok: bool
    value: T | None = None
    kind: ParseErrorKind | None = None
    detail: str = ""

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ParseErrorKind, detail: str = "") -> "ParseResult[T]":
        return cls(ok=False, kind=kind, detail=detail)


def _load_json(raw: bytes) -> ParseResult[object]:
    if not raw:
        return ParseResult.failure(ParseErrorKind.EMPTY)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        return ParseResult.failure(ParseErrorKind.MALFORMED_JSON, str(exc))
    if not text.strip():
        return ParseResult.failure(ParseErrorKind.EMPTY)
    try:
        return ParseResult.success(json.loads(text))
    except json.JSONDecodeError as exc:
        return ParseResult.failure(ParseErrorKind.MALFORMED_JSON, str(exc))


def parse_match_record(match_id: str, raw: bytes) -> ParseResult[MatchRecord]:
    """Validate stored bytes against ``MatchWire`` and build a MatchRecord."""
    loaded = _load_json(raw)
    if not loaded.ok:
        return ParseResult.failure(loaded.kind, loaded.detail)
    try:
        wire = MatchWire.model_validate(loaded.value)
    except ValidationError as exc:
        return ParseResult.failure(ParseErrorKind.INVALID_SCHEMA, str(exc.errors()[:1]))

    # Interests are a set: keep first occurrence order, drop duplicates
    interests = tuple(dict.fromkeys(wire.interests))
    return ParseResult.success(
        MatchRecord(
            match_id=match_id,
            encrypted_distance=wire.distance,
            encrypted_compatibility=wire.compatibility,
            created_at=wire.timestamp,
            counterparty_identity=wire.matchedAddress,
            status=wire.status,
            interests=interests,
        )
    )


def parse_match_index(raw: bytes) -> ParseResult[list[str]]:
    """Parse the ``match_keys`` array. Non-string entries are dropped."""
    loaded = _load_json(raw)
    if not loaded.ok:
        return ParseResult.failure(loaded.kind, loaded.detail)
    if not isinstance(loaded.value, list):
        return ParseResult.failure(ParseErrorKind.INVALID_SCHEMA, "index is not a JSON array")
    return ParseResult.success([k for k in loaded.value if isinstance(k, str)])


def serialize_match_index(match_ids: list[str]) -> bytes:
    return _dump_json(list(match_ids))
