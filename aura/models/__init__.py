"""Domain models for Social Aura."""

from aura.models.match import (
    MatchDraft,
    MatchRecord,
    MatchStatus,
    ParseErrorKind,
    ParseResult,
    VALID_TRANSITIONS,
)

__all__ = [
    "MatchDraft", "MatchRecord", "MatchStatus",
    "ParseErrorKind", "ParseResult",
    "VALID_TRANSITIONS",
]
