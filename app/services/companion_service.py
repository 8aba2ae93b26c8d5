"""
Juni — Companion administration

Admins move companions through onboarding (APPLIED, SCREENING, TRAINING)
into ACTIVE, and out of it via SUSPENDED or DEACTIVATED.  Only ACTIVE
companions enter the Kindred candidate pool or a payout batch, so a status
change here is what gates matching eligibility.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.errors import NotFoundError
from app.models.companion import Companion
from app.models.enums import CompanionStatus

logger = structlog.get_logger("juni.companion_service")


class CompanionService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def update_status(
        self,
        companion_id: uuid.UUID,
        new_status: CompanionStatus | str,
        changed_by: uuid.UUID | None = None,
    ) -> Companion:
        """Set the companion's status.  Unknown values raise ``ValueError``."""
        new_status = CompanionStatus(new_status)

        async with self._session_factory() as session:
            async with session.begin():
                companion = await session.get(Companion, companion_id)
                if companion is None:
                    raise NotFoundError("Companion")
                previous = companion.status
                companion.status = new_status.value

        logger.info(
            "companion_status_changed",
            companion_id=str(companion_id),
            from_status=previous,
            to_status=new_status.value,
            changed_by=str(changed_by) if changed_by else None,
        )
        return companion
