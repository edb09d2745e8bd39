"""
Match endpoints.

Listing, stats and lookup are open reads; propose, accept and reject need a
connected wallet (``X-Wallet-Address``).  Encrypted fields are returned as
opaque tokens; plaintext is only available through the decrypt endpoint.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from aura.api.deps import (
    get_current_identity,
    get_optional_identity,
    get_registry,
    get_state_machine,
    http_error,
)
from aura.core.errors import AuraError
from aura.core.signing import same_identity
from aura.matching.registry import MatchRegistry
from aura.matching.reporter import build_match_stats, filter_matches
from aura.matching.state_machine import MatchStateMachine
from aura.schemas.match import (
    MatchResponse,
    ProposeRequest,
    ProposeResponse,
    StatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(record, identity: str | None) -> MatchResponse:
    return MatchResponse.from_record(
        record, is_owner=same_identity(identity, record.counterparty_identity),
    )


@router.get("", response_model=list[MatchResponse])
async def list_matches(
    q: str = Query("", description="Filter by interest or counterparty address"),
    identity: str | None = Depends(get_optional_identity),
    registry: MatchRegistry = Depends(get_registry),
):
    """List every readable match, newest first."""
    records = filter_matches(await registry.load_all(), q)
    return [_to_response(r, identity) for r in records]


@router.get("/stats", response_model=StatsResponse)
async def match_stats(registry: MatchRegistry = Depends(get_registry)):
    """Total / matched / pending / rejected counts."""
    return build_match_stats(await registry.load_all())


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(
    match_id: str,
    identity: str | None = Depends(get_optional_identity),
    registry: MatchRegistry = Depends(get_registry),
):
    try:
        record = await registry.get_one(match_id)
    except AuraError as exc:
        raise http_error(exc)
    return _to_response(record, identity)


@router.post("", response_model=ProposeResponse, status_code=status.HTTP_201_CREATED)
async def propose_match(
    payload: ProposeRequest,
    identity: str = Depends(get_current_identity),
    machine: MatchStateMachine = Depends(get_state_machine),
):
    """
    Propose a new match for the caller's selected interests.

    Distance and compatibility are simulated and stored encrypted.
    """
    try:
        match_id = await machine.propose(identity, payload.interests)
    except AuraError as exc:
        raise http_error(exc)
    return ProposeResponse(match_id=match_id)


@router.post("/{match_id}/accept", response_model=MatchResponse)
async def accept_match(
    match_id: str,
    identity: str = Depends(get_current_identity),
    machine: MatchStateMachine = Depends(get_state_machine),
):
    """Accept a pending match. Only the counterparty may accept."""
    try:
        record = await machine.verify_match(identity, match_id)
    except AuraError as exc:
        raise http_error(exc)
    return _to_response(record, identity)


@router.post("/{match_id}/reject", response_model=MatchResponse)
async def reject_match(
    match_id: str,
    identity: str = Depends(get_current_identity),
    machine: MatchStateMachine = Depends(get_state_machine),
):
    """Reject a pending match."""
    try:
        record = await machine.reject_match(identity, match_id)
    except AuraError as exc:
        raise http_error(exc)
    return _to_response(record, identity)
