"""
Juni — Visits API

Companion check-in / check-out, cancellation, and visit detail.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_companion_id, get_current_user_id, get_visit_service
from app.database import get_db
from app.errors import AuthorizationError, NotFoundError
from app.models.companion import Companion
from app.models.family import Family, Senior
from app.models.visit import Visit
from app.schemas.visit import (
    CancelVisitRequest,
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    CheckOutResponse,
    VisitResponse,
)
from app.services.visit_service import GeoPoint, VisitReport, VisitService

logger = structlog.get_logger("juni.api.visits")

router = APIRouter()


@router.post(
    "/{visit_id}/check-in",
    response_model=CheckInResponse,
    summary="Companion marks arrival",
)
async def check_in(
    visit_id: uuid.UUID,
    payload: CheckInRequest,
    service: VisitService = Depends(get_visit_service),
    companion_id: uuid.UUID = Depends(get_current_companion_id),
) -> CheckInResponse:
    check_in_at = await service.check_in(
        visit_id,
        companion_id,
        GeoPoint(lat=payload.latitude, lng=payload.longitude),
    )
    return CheckInResponse(check_in_at=check_in_at)


@router.post(
    "/{visit_id}/check-out",
    response_model=CheckOutResponse,
    summary="Companion ends the visit and files notes",
)
async def check_out(
    visit_id: uuid.UUID,
    payload: CheckOutRequest,
    service: VisitService = Depends(get_visit_service),
    companion_id: uuid.UUID = Depends(get_current_companion_id),
) -> CheckOutResponse:
    actual_minutes = await service.check_out(
        visit_id,
        companion_id,
        VisitReport(
            mood=payload.mood,
            activities=payload.activities,
            notes=payload.notes,
            location=GeoPoint(lat=payload.latitude, lng=payload.longitude),
        ),
    )
    return CheckOutResponse(actual_minutes=actual_minutes)


@router.post(
    "/{visit_id}/cancel",
    summary="Cancel a visit",
)
async def cancel_visit(
    visit_id: uuid.UUID,
    payload: CancelVisitRequest,
    service: VisitService = Depends(get_visit_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> dict:
    await service.cancel(visit_id, user_id, payload.reason)
    return {"message": "Visit cancelled"}


@router.get(
    "/{visit_id}",
    response_model=VisitResponse,
    summary="Get a visit (companion or owning family)",
)
async def get_visit(
    visit_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    visit = await db.get(Visit, visit_id)
    if visit is None:
        raise NotFoundError("Visit")

    is_companion = (
        await db.execute(
            select(Companion.id).where(
                Companion.id == visit.companion_id, Companion.user_id == user_id
            )
        )
    ).scalar_one_or_none() is not None
    is_family = (
        await db.execute(
            select(Senior.id)
            .join(Family, Senior.family_id == Family.id)
            .where(Senior.id == visit.senior_id, Family.user_id == user_id)
        )
    ).scalar_one_or_none() is not None

    if not (is_companion or is_family):
        logger.warning("visit_access_denied", visit_id=str(visit_id), user_id=str(user_id))
        raise AuthorizationError()
    return visit
