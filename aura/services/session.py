"""
Match session — the per-user context object behind one connected wallet.

Owns everything that used to be process-wide view state:
  - the signer and the session's decryption challenge
  - the last loaded match list
  - the revealed-compatibility map (plaintext stays here, never on the ledger)
  - the decryption reentrancy guard
  - the current status notice (pending / success / error, time-limited)

Operations never raise for workflow failures.  They log, post an error
notice and return ``None`` so a caller can keep the session running.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from aura.config import settings
from aura.core.errors import (
    AuraError,
    SignatureRejectedError,
    UnauthenticatedError,
)
from aura.core.signing import Signer, same_identity
from aura.matching.decryption import DecryptionFlow
from aura.matching.registry import MatchRegistry
from aura.matching.reporter import build_match_stats, filter_matches
from aura.matching.state_machine import MatchStateMachine
from aura.models.match import MatchRecord, MatchStatus

logger = logging.getLogger(__name__)

REJECTED_BY_USER = "Transaction rejected by user"


# ---------------------------------------------------------------------------
# Status notices
# ---------------------------------------------------------------------------


class NoticeStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusNotice:
    status: NoticeStatus
    message: str
    visible_until: float | None = None  # None stays up until replaced

    def is_visible(self, now: float) -> bool:
        return self.visible_until is None or now < self.visible_until


def _declined(exc: BaseException) -> bool:
    """True when the failure traces back to the user declining a signature."""
    while exc is not None:
        if isinstance(exc, SignatureRejectedError):
            return True
        if "user rejected" in str(exc).lower():
            return True
        exc = exc.__cause__
    return False


def _reason(exc: BaseException) -> str:
    if isinstance(exc, AuraError):
        return exc.message or "Unknown error"
    return str(exc) or "Unknown error"


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class MatchSession:
    """Session-scoped facade over the state machine and decryption flow."""

    def __init__(
        self,
        signer: Signer,
        state_machine: MatchStateMachine,
        decryption: DecryptionFlow,
        *,
        success_seconds: float = settings.NOTICE_SUCCESS_SECONDS,
        error_seconds: float = settings.NOTICE_ERROR_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.signer = signer
        self.state_machine = state_machine
        self.decryption = decryption
        self.matches: list[MatchRecord] = []
        self.revealed: dict[str, float] = {}
        self._notice: StatusNotice | None = None
        self._decrypting = False
        self._success_seconds = success_seconds
        self._error_seconds = error_seconds
        self._clock = clock

    @property
    def registry(self) -> MatchRegistry:
        return self.state_machine.registry

    @property
    def identity(self) -> str | None:
        return self.signer.current_identity

    @property
    def is_decrypting(self) -> bool:
        return self._decrypting

    # ── notices ─────────────────────────────────────────────────────────

    @property
    def notice(self) -> StatusNotice | None:
        """The current notice, or None once it has expired."""
        if self._notice is not None and not self._notice.is_visible(self._clock()):
            self._notice = None
        return self._notice

    def _pending(self, message: str) -> None:
        self._notice = StatusNotice(NoticeStatus.PENDING, message)

    def _success(self, message: str) -> None:
        self._notice = StatusNotice(
            NoticeStatus.SUCCESS, message, self._clock() + self._success_seconds,
        )

    def _error(self, message: str) -> None:
        self._notice = StatusNotice(
            NoticeStatus.ERROR, message, self._clock() + self._error_seconds,
        )

    def _fail(self, prefix: str, exc: Exception) -> None:
        if isinstance(exc, UnauthenticatedError):
            self._error(exc.message)
        elif _declined(exc):
            self._error(REJECTED_BY_USER)
        else:
            self._error(f"{prefix}: {_reason(exc)}")

    # ── reads ───────────────────────────────────────────────────────────

    async def refresh(self) -> list[MatchRecord]:
        """Reload the match list from the ledger (newest first)."""
        self.matches = await self.registry.load_all()
        return self.matches

    def stats(self) -> dict:
        return build_match_stats(self.matches)

    def search(self, query: str) -> list[MatchRecord]:
        return filter_matches(self.matches, query)

    def is_owner(self, record: MatchRecord) -> bool:
        """Whether the connected identity is the record's counterparty."""
        return same_identity(self.identity, record.counterparty_identity)

    def can_accept(self, record: MatchRecord) -> bool:
        return self.is_owner(record) and record.status == MatchStatus.PENDING

    # ── writes ──────────────────────────────────────────────────────────

    async def submit_interests(self, interests: Iterable[str]) -> str | None:
        """Propose a new match for the selected interests; returns its id."""
        self._pending("Encrypting social aura...")
        try:
            match_id = await self.state_machine.propose(self.identity, interests)
        except Exception as exc:
            logger.warning("Submission failed for %s: %s", self.identity, exc)
            self._fail("Submission failed", exc)
            return None

        self._success("Social aura created successfully!")
        await self.refresh()
        return match_id

    async def verify_match(self, match_id: str) -> MatchRecord | None:
        self._pending("Processing encrypted match...")
        try:
            updated = await self.state_machine.verify_match(self.identity, match_id)
        except Exception as exc:
            logger.warning("Match %s failed for %s: %s", match_id, self.identity, exc)
            self._fail("Match failed", exc)
            return None

        self._success("Encrypted match completed successfully!")
        await self.refresh()
        return updated

    async def reject_match(self, match_id: str) -> MatchRecord | None:
        self._pending("Processing encrypted rejection...")
        try:
            updated = await self.state_machine.reject_match(self.identity, match_id)
        except Exception as exc:
            logger.warning("Rejection of %s failed for %s: %s", match_id, self.identity, exc)
            self._fail("Rejection failed", exc)
            return None

        self._success("Encrypted rejection completed successfully!")
        await self.refresh()
        return updated

    # ── reveal / hide ───────────────────────────────────────────────────

    async def reveal_compatibility(self, match_id: str) -> float | None:
        """
        Decrypt a match's compatibility behind a fresh signature.

        Returns None (and posts a notice) if decryption fails.  A call made
        while another decrypt is in flight is ignored and returns None
        without prompting the signer.
        """
        if self._decrypting:
            logger.debug("Decrypt already in progress; ignoring request for %s", match_id)
            return None

        self._decrypting = True
        try:
            record = await self.registry.get_one(match_id)
            value = await self.decryption.decrypt(self.signer, record.encrypted_compatibility)
        except Exception as exc:
            if isinstance(exc, AuraError):
                logger.info("Decryption of %s failed: %s", match_id, exc)
            else:
                logger.exception("Unexpected decryption failure for %s", match_id)
            self._fail("Decryption failed", exc)
            return None
        finally:
            self._decrypting = False

        self.revealed[match_id] = value
        return value

    def hide_compatibility(self, match_id: str) -> None:
        """Drop a revealed value from the view. No signer round trip."""
        self.revealed.pop(match_id, None)

    async def toggle_compatibility(self, match_id: str) -> float | None:
        """Hide the value if it is showing, otherwise reveal it."""
        if match_id in self.revealed:
            self.hide_compatibility(match_id)
            return None
        return await self.reveal_compatibility(match_id)
