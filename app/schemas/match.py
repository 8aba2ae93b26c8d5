from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional


class MatchCandidate(BaseModel):
    companion_id: UUID
    kindred_score: int = Field(ge=0, le=100)
    match_reasons: list[str] = []


class ProposeMatchesRequest(BaseModel):
    """Proposals to persist.  When ``candidates`` is omitted the top
    ``limit`` candidates are computed and proposed."""
    candidates: Optional[list[MatchCandidate]] = None
    limit: Optional[int] = Field(None, ge=1, le=50)


class ProposeMatchesResponse(BaseModel):
    senior_id: UUID
    proposed: list[MatchCandidate]


class MatchResponse(BaseModel):
    id: UUID
    senior_id: UUID
    companion_id: UUID
    kindred_score: int
    match_reasons: list[str]
    status: str
    proposed_at: datetime
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
