"""
Decryption endpoints.

The server holds one challenge per process lifetime.  A wallet fetches it
from ``/challenge``, signs the message client-side, and presents the
signature to ``/matches/{id}/decrypt``.  Any signature over that message by
the connected wallet's key is accepted for as long as the process runs.
"""

import logging

from fastapi import APIRouter, Depends

from aura.api.deps import (
    get_challenge,
    get_current_identity,
    get_decryption_flow,
    get_registry,
    http_error,
)
from aura.core.errors import AuraError
from aura.core.signing import MessageSignature, PresentedSignatureSigner
from aura.matching.decryption import DecryptionChallenge, DecryptionFlow
from aura.matching.registry import MatchRegistry
from aura.matching.reporter import describe_compatibility
from aura.schemas.match import ChallengeResponse, DecryptRequest, DecryptResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/challenge", response_model=ChallengeResponse)
async def get_decryption_challenge(
    challenge: DecryptionChallenge = Depends(get_challenge),
):
    """The message a wallet must sign before any decrypt call."""
    return ChallengeResponse(
        message=challenge.to_message(),
        public_key=challenge.public_key,
        contract_address=challenge.contract_address,
        chain_id=challenge.chain_id,
        start_timestamp=challenge.start_timestamp,
        duration_days=challenge.duration_days,
    )


@router.post("/matches/{match_id}/decrypt", response_model=DecryptResponse)
async def decrypt_compatibility(
    match_id: str,
    payload: DecryptRequest,
    identity: str = Depends(get_current_identity),
    registry: MatchRegistry = Depends(get_registry),
    flow: DecryptionFlow = Depends(get_decryption_flow),
):
    """
    Reveal a match's compatibility score.

    The presented signature must verify over the challenge message and
    belong to the key behind ``X-Wallet-Address``; otherwise 403.
    """
    signer = PresentedSignatureSigner(
        identity,
        MessageSignature(public_key=payload.public_key, signature=payload.signature),
    )
    try:
        record = await registry.get_one(match_id)
        value = await flow.decrypt(signer, record.encrypted_compatibility)
    except AuraError as exc:
        raise http_error(exc)

    logger.info("Compatibility for %s revealed to %s", match_id, identity)
    return DecryptResponse(
        match_id=match_id,
        compatibility=value,
        description=describe_compatibility(value),
    )
