"""
Juni — Companion administration API
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from app.api.deps import get_companion_service, require_admin
from app.schemas.companion import CompanionStatusResponse, CompanionStatusUpdate
from app.services.companion_service import CompanionService

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# PATCH /{companion_id}/status : Move a companion through onboarding
# ──────────────────────────────────────────────────────────────────────────────

@router.patch(
    "/{companion_id}/status",
    response_model=CompanionStatusResponse,
    summary="Change a companion's status (admin)",
)
async def update_companion_status(
    companion_id: uuid.UUID,
    payload: CompanionStatusUpdate,
    service: CompanionService = Depends(get_companion_service),
    admin_id: uuid.UUID = Depends(require_admin),
):
    """Only ACTIVE companions are offered to families or paid out."""
    return await service.update_status(companion_id, payload.status, changed_by=admin_id)
