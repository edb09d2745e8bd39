"""
Reusable FastAPI dependencies for identity, ledger access and decryption.

Dependencies:
  - get_current_identity  — wallet address from ``X-Wallet-Address`` (401 if absent)
  - get_optional_identity — same, but None when the header is missing
  - get_registry          — MatchRegistry over the configured ledger
  - get_state_machine     — MatchStateMachine wired to registry + codec
  - get_challenge         — the server session's decryption challenge
  - get_decryption_flow   — DecryptionFlow bound to that challenge
"""

from fastapi import Depends, Header, HTTPException, Request, status

from aura.config import settings
from aura.core.codec import EncryptedScalarCodec, get_codec
from aura.core.errors import (
    AuraError,
    DecodeError,
    DecryptionAbortedError,
    InvalidProposalError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    RecordFormatError,
    UnauthenticatedError,
)
from aura.ledger.base import get_ledger
from aura.matching.decryption import DecryptionChallenge, DecryptionFlow
from aura.matching.registry import MatchRegistry
from aura.matching.state_machine import MatchStateMachine


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


async def get_optional_identity(
    x_wallet_address: str | None = Header(None, description="Connected wallet address"),
) -> str | None:
    if x_wallet_address is None or not x_wallet_address.strip():
        return None
    return x_wallet_address.strip()


async def get_current_identity(
    identity: str | None = Depends(get_optional_identity),
) -> str:
    """Require a connected wallet. Raises 401 when no address is supplied."""
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UnauthenticatedError().message,
        )
    return identity


# ---------------------------------------------------------------------------
# Matching collaborators
# ---------------------------------------------------------------------------


def get_registry() -> MatchRegistry:
    return MatchRegistry(get_ledger())


def get_state_machine(
    registry: MatchRegistry = Depends(get_registry),
    codec: EncryptedScalarCodec = Depends(get_codec),
) -> MatchStateMachine:
    return MatchStateMachine(registry, codec)


async def get_challenge(
    request: Request,
    registry: MatchRegistry = Depends(get_registry),
) -> DecryptionChallenge:
    """
    Return the challenge stored on ``app.state``.

    Normally created at startup; built on first use if the lifespan hook
    did not run.
    """
    challenge = getattr(request.app.state, "challenge", None)
    if challenge is None:
        address = await registry.ledger.get_address()
        challenge = DecryptionChallenge.create(address, settings.CHAIN_ID)
        request.app.state.challenge = challenge
    return challenge


def get_decryption_flow(
    challenge: DecryptionChallenge = Depends(get_challenge),
    codec: EncryptedScalarCodec = Depends(get_codec),
) -> DecryptionFlow:
    return DecryptionFlow(codec, challenge)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: list[tuple[type[AuraError], int]] = [
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (NotAuthorizedError, status.HTTP_403_FORBIDDEN),
    (DecryptionAbortedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (InvalidProposalError, 422),
    (DecodeError, 422),
    (RecordFormatError, 422),
]


def http_error(exc: AuraError) -> HTTPException:
    """Translate a domain error into the matching HTTPException."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
