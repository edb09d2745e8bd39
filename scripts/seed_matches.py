"""
Test data seeder — populates the configured ledger with sample matches.

Usage:
    python scripts/seed_matches.py [path/to/wallet.pem]

Creates:
  - 6 pending proposals across three generated wallets
  - 2 of them accepted by their counterparty
  - 1 rejected

Not idempotent: every run appends new matches to the index.
"""

import asyncio
import json
import sys
from pathlib import Path

from aura.core.codec import get_codec
from aura.core.signing import LocalKeySigner
from aura.ledger.base import get_ledger
from aura.matching.registry import MatchRegistry
from aura.matching.reporter import build_match_stats
from aura.matching.state_machine import MatchStateMachine

# ---------------------------------------------------------------------------
# Proposals — (proposer index, counterparty index, interests)
# ---------------------------------------------------------------------------

SAMPLE_PROPOSALS: list[tuple[int, int, list[str]]] = [
    (0, 1, ["Web3", "Art"]),
    (0, 2, ["DeFi", "Coding", "AI"]),
    (1, 0, ["Music", "Travel"]),
    (1, 2, ["Gaming"]),
    (2, 0, ["Photography", "Food", "Travel"]),
    (2, 1, ["Blockchain", "NFTs"]),
]

ACCEPT = [0, 4]
REJECT = [3]


def load_signers(pem_path: str | None) -> list[LocalKeySigner]:
    signers = [LocalKeySigner.generate() for _ in range(3)]
    if pem_path:
        signers[0] = LocalKeySigner.from_pem(Path(pem_path).read_bytes())
    return signers


async def seed(pem_path: str | None = None) -> None:
    ledger = get_ledger()
    if not await ledger.is_available():
        print("Ledger is not available; check REDIS_URL / LEDGER_BACKEND")
        return

    registry = MatchRegistry(ledger)
    machine = MatchStateMachine(registry, get_codec())
    signers = load_signers(pem_path)

    print("Seeding matches...")
    match_ids: list[str] = []
    for proposer, counterparty, interests in SAMPLE_PROPOSALS:
        match_id = await machine.propose(
            signers[proposer].current_identity,
            interests,
            counterparty=signers[counterparty].current_identity,
        )
        match_ids.append(match_id)
        print(f"  + {match_id}  {', '.join(interests)}")

    for i in ACCEPT:
        _, counterparty, _ = SAMPLE_PROPOSALS[i]
        await machine.verify_match(signers[counterparty].current_identity, match_ids[i])
        print(f"  ✓ accepted {match_ids[i]}")

    for i in REJECT:
        proposer, _, _ = SAMPLE_PROPOSALS[i]
        await machine.reject_match(signers[proposer].current_identity, match_ids[i])
        print(f"  ✗ rejected {match_ids[i]}")

    stats = build_match_stats(await registry.load_all())
    print("\n=== Ledger Summary ===")
    print(json.dumps(stats, indent=2))
    print("\nWallets:")
    for signer in signers:
        print(f"  {signer.address}")


if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else None))
