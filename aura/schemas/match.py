"""
Pydantic schemas for match API requests and responses.
"""

from pydantic import BaseModel, Field

from aura.models.match import MatchRecord, MatchStatus


class ProposeRequest(BaseModel):
    """Interests selected for a new match proposal."""
    interests: list[str] = Field(..., min_length=1)


class ProposeResponse(BaseModel):
    match_id: str


class MatchResponse(BaseModel):
    """A match as seen by API clients. Encrypted fields stay opaque."""
    match_id: str
    encrypted_distance: str
    encrypted_compatibility: str
    created_at: int
    counterparty: str
    status: MatchStatus
    interests: list[str]
    is_owner: bool = False

    @classmethod
    def from_record(cls, record: MatchRecord, is_owner: bool = False) -> "MatchResponse":
        return cls(
            match_id=record.match_id,
            encrypted_distance=record.encrypted_distance,
            encrypted_compatibility=record.encrypted_compatibility,
            created_at=record.created_at,
            counterparty=record.counterparty_identity,
            status=record.status,
            interests=list(record.interests),
            is_owner=is_owner,
        )


class StatsResponse(BaseModel):
    total: int
    matched: int
    pending: int
    rejected: int


class ChallengeResponse(BaseModel):
    """The session challenge a wallet must sign before decrypting."""
    message: str
    public_key: str
    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int


class DecryptRequest(BaseModel):
    """A signature over the challenge message, produced by the wallet."""
    public_key: str
    signature: str


class DecryptResponse(BaseModel):
    match_id: str
    compatibility: float
    description: str
