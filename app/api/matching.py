"""
Juni — Matching API

Candidate search, proposal, and family accept/reject decisions.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user_id, get_matching_service
from app.schemas.match import (
    MatchCandidate,
    MatchResponse,
    ProposeMatchesRequest,
    ProposeMatchesResponse,
)
from app.services.kindred_service import MatchResult
from app.services.matching_service import MatchingService

logger = structlog.get_logger("juni.api.matching")

router = APIRouter()


def _to_candidate(result: MatchResult) -> MatchCandidate:
    return MatchCandidate(
        companion_id=result.companion_id,
        kindred_score=result.kindred_score,
        match_reasons=list(result.match_reasons),
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /seniors/{senior_id}/candidates: Rank eligible companions
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/seniors/{senior_id}/candidates",
    response_model=list[MatchCandidate],
    summary="Rank eligible companions for a senior",
)
async def find_candidates(
    senior_id: uuid.UUID,
    limit: Optional[int] = Query(None, ge=1, le=50),
    service: MatchingService = Depends(get_matching_service),
    _user_id: uuid.UUID = Depends(get_current_user_id),
) -> list[MatchCandidate]:
    """Compute Kindred Scores without persisting anything."""
    results = await service.find_matches_for_senior(senior_id, limit)
    return [_to_candidate(r) for r in results]


# ──────────────────────────────────────────────────────────────────────────────
# POST /seniors/{senior_id}/propose: Persist proposals
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/seniors/{senior_id}/propose",
    response_model=ProposeMatchesResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Propose matches for a senior",
)
async def propose_matches(
    senior_id: uuid.UUID,
    payload: ProposeMatchesRequest,
    service: MatchingService = Depends(get_matching_service),
    _user_id: uuid.UUID = Depends(get_current_user_id),
) -> ProposeMatchesResponse:
    """Persist the supplied candidates, or compute and persist the top
    ``limit`` when none are supplied.  Re-proposing a pair updates it."""
    log = logger.bind(senior_id=str(senior_id))

    if payload.candidates is None:
        results = await service.propose_top_matches(senior_id, payload.limit)
    else:
        results = [
            MatchResult(
                companion_id=c.companion_id,
                kindred_score=c.kindred_score,
                match_reasons=tuple(c.match_reasons),
            )
            for c in payload.candidates
        ]
        await service.propose_matches(senior_id, results)

    log.info("propose_matches_complete", count=len(results))
    return ProposeMatchesResponse(
        senior_id=senior_id,
        proposed=[_to_candidate(r) for r in results],
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /seniors/{senior_id}: Persisted matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/seniors/{senior_id}",
    response_model=list[MatchResponse],
    summary="List a senior's matches",
)
async def list_senior_matches(
    senior_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return await service.list_matches_for_senior(senior_id, user_id)


# ──────────────────────────────────────────────────────────────────────────────
# POST /{match_id}/accept, /{match_id}/reject: Family decisions
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{match_id}/accept",
    response_model=MatchResponse,
    summary="Accept a proposed match",
)
async def accept_match(
    match_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Activate the match and assign the companion to the senior."""
    return await service.accept_match(match_id, user_id)


@router.post(
    "/{match_id}/reject",
    response_model=MatchResponse,
    summary="Reject a proposed match",
)
async def reject_match(
    match_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return await service.reject_match(match_id, user_id)
