"""
Matching configuration constants.

Defines ledger keys, the interest vocabulary, and the ranges used when a
proposal is scored.
"""

from aura.config import settings

# Ledger keys
MATCH_INDEX_KEY = "match_keys"
MATCH_KEY_PREFIX = "match_"

# Interest vocabulary (fixed, bounded)
INTEREST_OPTIONS: tuple[str, ...] = (
    "Web3", "DeFi", "NFTs", "Gaming", "Music",
    "Art", "Tech", "Travel", "Food", "Sports",
    "Reading", "Photography", "Coding", "Blockchain", "AI",
)

# Simulated scoring ranges (exclusive upper bound)
DISTANCE_RANGE = 1000        # metres
COMPATIBILITY_RANGE = 100    # percentage-like score

# Decryption
DECRYPTION_DURATION_DAYS = settings.DECRYPTION_DURATION_DAYS
DECRYPTION_DELAY_SECONDS = settings.DECRYPTION_DELAY_SECONDS
SIGNATURE_TIMEOUT_SECONDS = settings.SIGNATURE_TIMEOUT_SECONDS
SESSION_PUBLIC_KEY_HEX_CHARS = 2000


def match_key(match_id: str) -> str:
    """Return the ledger key for a match record."""
    return f"{MATCH_KEY_PREFIX}{match_id}"
