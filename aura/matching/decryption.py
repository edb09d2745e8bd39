"""
Authenticated decryption — plaintext compatibility behind a signed challenge.

Flow:
  1. Require an identity bound to the signer
  2. Render the session challenge (fixed for the whole session)
  3. Await the signer's signature, bounded by SIGNATURE_TIMEOUT_SECONDS
  4. Optionally verify it, wait out the decryption delay, then decode

The challenge is built once per session and reused for every decrypt in
it, so a signature replayed within the session is accepted.  Nothing is
cached here; the caller decides what to keep in its view state.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable

from aura.core.codec import EncryptedScalar, EncryptedScalarCodec
from aura.core.errors import (
    AuraError,
    DecryptionAbortedError,
    SignatureRejectedError,
    UnauthenticatedError,
)
from aura.core.signing import MessageSignature, Signer
from aura.matching.config import (
    DECRYPTION_DELAY_SECONDS,
    DECRYPTION_DURATION_DAYS,
    SESSION_PUBLIC_KEY_HEX_CHARS,
    SIGNATURE_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

SignatureVerifier = Callable[[str, str, MessageSignature], bool]


# ---------------------------------------------------------------------------
# Challenge
# ---------------------------------------------------------------------------


def generate_session_public_key() -> str:
    """Random ``0x``-prefixed hex key material for a session challenge."""
    return "0x" + secrets.token_hex(SESSION_PUBLIC_KEY_HEX_CHARS // 2)


@dataclass(frozen=True)
class DecryptionChallenge:
    public_key: str
    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int = DECRYPTION_DURATION_DAYS

    @classmethod
    def create(
        cls,
        contract_address: str,
        chain_id: int,
        *,
        duration_days: int = DECRYPTION_DURATION_DAYS,
        now: int | None = None,
    ) -> "DecryptionChallenge":
        """Build a fresh challenge for a new session."""
        return cls(
            public_key=generate_session_public_key(),
            contract_address=contract_address,
            chain_id=chain_id,
            start_timestamp=int(time.time()) if now is None else now,
            duration_days=duration_days,
        )

    def to_message(self) -> str:
        """Canonical multi-line message the signer is asked to sign."""
        return (
            f"publickey:{self.public_key}\n"
            f"contractAddresses:{self.contract_address}\n"
            f"contractsChainId:{self.chain_id}\n"
            f"startTimestamp:{self.start_timestamp}\n"
            f"durationDays:{self.duration_days}"
        )


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


class DecryptionFlow:
    """Gate ``codec.decode`` behind a signature over the session challenge."""

    def __init__(
        self,
        codec: EncryptedScalarCodec,
        challenge: DecryptionChallenge,
        *,
        verifier: SignatureVerifier | None = None,
        delay_seconds: float = DECRYPTION_DELAY_SECONDS,
        signature_timeout: float = SIGNATURE_TIMEOUT_SECONDS,
    ):
        self.codec = codec
        self.challenge = challenge
        self._verifier = verifier
        self._delay_seconds = delay_seconds
        self._signature_timeout = signature_timeout

    async def decrypt(self, signer: Signer, token: EncryptedScalar) -> float:
        """
        Return the plaintext behind *token* once *signer* signs the challenge.

        Raises UnauthenticatedError with no identity, DecryptionAbortedError
        if signing is declined, times out or fails, and DecodeError for a
        malformed token.
        """
        identity = signer.current_identity
        if not identity:
            raise UnauthenticatedError()

        message = self.challenge.to_message()
        try:
            signed = await asyncio.wait_for(
                signer.sign_message(message), timeout=self._signature_timeout,
            )
        except SignatureRejectedError as exc:
            logger.info("Signature declined by %s", identity)
            raise DecryptionAbortedError(f"Signature declined: {exc.message}") from exc
        except asyncio.TimeoutError as exc:
            logger.warning("Signature request timed out for %s", identity)
            raise DecryptionAbortedError("Signature request timed out") from exc
        except UnauthenticatedError:
            raise
        except Exception as exc:
            logger.exception("Signer failed for %s", identity)
            raise DecryptionAbortedError(f"Signer failed: {exc}") from exc

        if self._verifier is not None and not self._verifier(identity, message, signed):
            logger.warning("Signature verification failed for %s", identity)
            raise DecryptionAbortedError("Signature does not match the session challenge")

        await asyncio.sleep(self._delay_seconds)

        try:
            return await self.codec.decode(token)
        except AuraError:
            raise
        except Exception as exc:
            logger.exception("Decryption service failed")
            raise DecryptionAbortedError(f"Decryption failed: {exc}") from exc
