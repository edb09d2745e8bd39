"""
Match reporting — summary counts, search filtering and score wording.

Works on already-loaded record snapshots; nothing here touches the ledger
or decodes encrypted fields.
"""

from aura.models.match import MatchRecord, MatchStatus

# Score thresholds, highest first; the first strictly-exceeded bound wins
COMPATIBILITY_TIERS: list[tuple[float, str]] = [
    (80, "Excellent match!"),
    (60, "Good potential"),
    (40, "Some common interests"),
]
LOW_COMPATIBILITY = "Low compatibility"


def build_match_stats(records: list[MatchRecord]) -> dict:
    """Count records overall and per status."""
    counts = {status: 0 for status in MatchStatus}
    for record in records:
        counts[record.status] += 1
    return {
        "total": len(records),
        "matched": counts[MatchStatus.MATCHED],
        "pending": counts[MatchStatus.PENDING],
        "rejected": counts[MatchStatus.REJECTED],
    }


def filter_matches(records: list[MatchRecord], query: str) -> list[MatchRecord]:
    """
    Keep records whose interests or counterparty address contain *query*.

    Case-insensitive substring match; an empty query keeps everything.
    Order is preserved.
    """
    needle = query.strip().lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if any(needle in interest.lower() for interest in r.interests)
        or needle in r.counterparty_identity.lower()
    ]


def describe_compatibility(score: float) -> str:
    """Human wording for a decrypted compatibility score."""
    for bound, label in COMPATIBILITY_TIERS:
        if score > bound:
            return label
    return LOW_COMPATIBILITY
