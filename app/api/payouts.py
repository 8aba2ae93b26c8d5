"""
Juni — Payouts API

Admin-triggered payout runs, and payout history visible to the companion
it belongs to or to an admin.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_role, get_current_user_id, get_payout_service, require_admin
from app.database import get_db
from app.errors import AuthorizationError
from app.models.companion import Companion
from app.models.enums import UserRole
from app.schemas.payout import PayoutResponse, PayoutRunRequest, PayoutRunResponse
from app.services.payout_service import PayoutService

logger = structlog.get_logger("juni.api.payouts")

router = APIRouter()


@router.post(
    "/run",
    response_model=PayoutRunResponse,
    summary="Run companion payouts for a period (admin)",
)
async def run_payouts(
    payload: PayoutRunRequest,
    service: PayoutService = Depends(get_payout_service),
    admin_id: uuid.UUID = Depends(require_admin),
) -> PayoutRunResponse:
    """Aggregate completed, unbilled visits into payouts and transfer them.

    Individual companion failures are counted, never raised.
    """
    log = logger.bind(
        requested_by=str(admin_id),
        period_start=payload.period_start.isoformat(),
        period_end=payload.period_end.isoformat(),
    )
    log.info("payout_run_requested", explicit_ids=payload.companion_ids is not None)

    if payload.companion_ids is None:
        summary = await service.run_payouts_for_active_companions(
            payload.period_start, payload.period_end
        )
    else:
        summary = await service.run_payouts(
            payload.companion_ids, payload.period_start, payload.period_end
        )
    return PayoutRunResponse(**summary.to_dict())


@router.get(
    "/companions/{companion_id}",
    response_model=list[PayoutResponse],
    summary="Payout history for a companion",
)
async def list_companion_payouts(
    companion_id: uuid.UUID,
    service: PayoutService = Depends(get_payout_service),
    user_id: uuid.UUID = Depends(get_current_user_id),
    role: UserRole | None = Depends(get_current_role),
    db: AsyncSession = Depends(get_db),
):
    if role is not UserRole.ADMIN:
        owner_id = (
            await db.execute(select(Companion.user_id).where(Companion.id == companion_id))
        ).scalar_one_or_none()
        if owner_id != user_id:
            logger.warning(
                "payout_history_denied",
                companion_id=str(companion_id),
                user_id=str(user_id),
            )
            raise AuthorizationError()
    return await service.list_payouts_for_companion(companion_id)
