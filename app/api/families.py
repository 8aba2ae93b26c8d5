"""
Juni — Families API

Visit requests and visit history for the seniors a family manages.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user_id, get_visit_service
from app.schemas.visit import VisitRequest, VisitResponse
from app.services.visit_service import VisitService

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /seniors/{senior_id}/visits : Request a visit
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/seniors/{senior_id}/visits",
    response_model=VisitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a visit with the senior's companion",
)
async def request_visit(
    senior_id: uuid.UUID,
    payload: VisitRequest,
    service: VisitService = Depends(get_visit_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return await service.request_visit(
        senior_id,
        user_id,
        scheduled_at=payload.scheduled_at,
        duration_min=payload.duration_min,
        visit_type=payload.visit_type,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /seniors/{senior_id}/visits : Visit history
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/seniors/{senior_id}/visits",
    response_model=list[VisitResponse],
    summary="List a senior's visits",
)
async def list_visits(
    senior_id: uuid.UUID,
    service: VisitService = Depends(get_visit_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return await service.list_visits_for_senior(senior_id, user_id)
