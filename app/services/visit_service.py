"""
Juni — Visit lifecycle

  (request) --> SCHEDULED

  SCHEDULED/CONFIRMED --check-in--> IN_PROGRESS --check-out--> COMPLETED
          |                              |
          +----------- cancel -----------+--> CANCELLED

Guards run before any mutation.  Check-out derives ``actual_minutes`` from
the check-in timestamp, rounded half-up to whole minutes, which is what the
payout run bills.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.errors import AuthorizationError, InvalidStateError, NotFoundError, PreconditionError
from app.models.companion import Companion
from app.models.enums import CompanionStatus, VisitStatus, VisitType
from app.models.family import Family, Senior
from app.models.visit import Visit
from app.services.notification_service import NotificationService, notify_safely
from app.utils.clock import as_utc, utcnow
from app.utils.rounding import round_half_up

logger = structlog.get_logger("juni.visit_service")

CHECK_IN_STATUSES: frozenset[str] = frozenset({
    VisitStatus.SCHEDULED.value,
    VisitStatus.CONFIRMED.value,
})

TERMINAL_STATUSES: frozenset[str] = frozenset({
    VisitStatus.COMPLETED.value,
    VisitStatus.CANCELLED.value,
})


@dataclass(frozen=True)
class GeoPoint:
    lat: float | None = None
    lng: float | None = None


@dataclass(frozen=True)
class VisitReport:
    """What the companion submits at check-out."""

    mood: str
    activities: Sequence[str]
    notes: str
    location: GeoPoint = GeoPoint()


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half-up."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return round_half_up(seconds / 60)


class VisitService:
    """Requests, check-in, check-out and cancellation of visits."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: NotificationService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.notifier = notifier or NotificationService()
        self._clock = clock

    async def request_visit(
        self,
        senior_id: uuid.UUID,
        requester_id: uuid.UUID,
        scheduled_at: datetime,
        duration_min: int,
        visit_type: VisitType | str = VisitType.REGULAR,
    ) -> Visit:
        """Book a SCHEDULED visit with the senior's assigned companion.

        Raises
        ------
        NotFoundError
            If the senior does not exist.
        AuthorizationError
            If the requester's family does not manage the senior.
        PreconditionError
            If no companion is assigned, or the assigned companion is not ACTIVE.
        """
        visit_type = VisitType(visit_type)
        log = logger.bind(senior_id=str(senior_id), requester_id=str(requester_id))

        async with self._session_factory() as session:
            async with session.begin():
                senior = await self._load_owned_senior(session, senior_id, requester_id)
                if senior.companion_id is None:
                    raise PreconditionError("No active companion assigned to this senior")
                companion = await session.get(Companion, senior.companion_id)
                if companion is None or companion.status != CompanionStatus.ACTIVE.value:
                    raise PreconditionError("Assigned companion is not currently active")

                visit = Visit(
                    senior_id=senior.id,
                    companion_id=companion.id,
                    scheduled_at=scheduled_at,
                    duration_min=duration_min,
                    visit_type=visit_type.value,
                    status=VisitStatus.SCHEDULED.value,
                )
                session.add(visit)
                await session.flush()

        log.info(
            "visit_requested",
            visit_id=str(visit.id),
            companion_id=str(visit.companion_id),
            scheduled_at=as_utc(scheduled_at).isoformat(),
            duration_min=duration_min,
        )
        await notify_safely(
            self.notifier.visit_requested,
            visit_id=visit.id,
            senior_id=visit.senior_id,
            companion_id=visit.companion_id,
        )
        return visit

    async def list_visits_for_senior(
        self,
        senior_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> list[Visit]:
        """Visits for a senior the requester's family manages, latest first."""
        async with self._session_factory() as session:
            await self._load_owned_senior(session, senior_id, requester_id)
            visits = (
                await session.execute(
                    select(Visit)
                    .where(Visit.senior_id == senior_id)
                    .order_by(Visit.scheduled_at.desc())
                )
            ).scalars().all()
        return list(visits)

    async def check_in(
        self,
        visit_id: uuid.UUID,
        companion_id: uuid.UUID,
        location: GeoPoint | None = None,
    ) -> datetime:
        """Mark arrival.  Returns the recorded ``check_in_at``.

        Raises
        ------
        NotFoundError
            If the visit does not exist or belongs to another companion.
        InvalidStateError
            Unless the visit is SCHEDULED or CONFIRMED.
        """
        location = location or GeoPoint()
        log = logger.bind(visit_id=str(visit_id), companion_id=str(companion_id))

        async with self._session_factory() as session:
            async with session.begin():
                visit = await self._load_companion_visit(session, visit_id, companion_id)
                if visit.status not in CHECK_IN_STATUSES:
                    raise InvalidStateError(
                        "Visit cannot be checked into in its current state"
                    )

                now = self._clock()
                visit.status = VisitStatus.IN_PROGRESS.value
                visit.check_in_at = now
                visit.check_in_lat = location.lat
                visit.check_in_lng = location.lng

        log.info("visit_checked_in", has_location=location.lat is not None)
        await notify_safely(
            self.notifier.visit_checked_in, visit_id=visit_id, companion_id=companion_id
        )
        return now

    async def check_out(
        self,
        visit_id: uuid.UUID,
        companion_id: uuid.UUID,
        report: VisitReport,
    ) -> int:
        """Complete the visit and return ``actual_minutes``.

        Raises
        ------
        NotFoundError
            If the visit does not exist or belongs to another companion.
        InvalidStateError
            Unless the visit is IN_PROGRESS.
        PreconditionError
            If the visit has no check-in timestamp.
        """
        log = logger.bind(visit_id=str(visit_id), companion_id=str(companion_id))

        async with self._session_factory() as session:
            async with session.begin():
                visit = await self._load_companion_visit(session, visit_id, companion_id)
                if visit.check_in_at is None:
                    raise PreconditionError("Visit has not been checked in")
                if visit.status != VisitStatus.IN_PROGRESS.value:
                    raise InvalidStateError("Visit must be in progress to check out")

                now = self._clock()
                actual_minutes = elapsed_minutes(visit.check_in_at, now)

                visit.status = VisitStatus.COMPLETED.value
                visit.check_out_at = now
                visit.check_out_lat = report.location.lat
                visit.check_out_lng = report.location.lng
                visit.mood = report.mood
                visit.activities = list(report.activities)
                visit.notes = report.notes
                visit.actual_minutes = actual_minutes

        log.info("visit_checked_out", actual_minutes=actual_minutes, mood=report.mood)
        await notify_safely(
            self.notifier.visit_checked_out,
            visit_id=visit_id,
            companion_id=companion_id,
            actual_minutes=actual_minutes,
        )
        return actual_minutes

    async def cancel(
        self,
        visit_id: uuid.UUID,
        requester_id: uuid.UUID,
        reason: str | None = None,
    ) -> None:
        """Cancel any visit that is not already COMPLETED or CANCELLED."""
        log = logger.bind(visit_id=str(visit_id), requester_id=str(requester_id))

        async with self._session_factory() as session:
            async with session.begin():
                visit = await session.get(Visit, visit_id)
                if visit is None:
                    raise NotFoundError("Visit")
                if visit.status in TERMINAL_STATUSES:
                    raise InvalidStateError(
                        "Visit cannot be cancelled in its current state"
                    )

                visit.status = VisitStatus.CANCELLED.value
                visit.cancelled_at = self._clock()
                visit.cancelled_by = requester_id
                visit.cancellation_reason = reason

        log.info("visit_cancelled", reason=reason)
        await notify_safely(self.notifier.visit_cancelled, visit_id=visit_id, reason=reason)

    async def _load_owned_senior(
        self,
        session: AsyncSession,
        senior_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> Senior:
        row = (
            await session.execute(
                select(Senior, Family.user_id)
                .join(Family, Senior.family_id == Family.id)
                .where(Senior.id == senior_id)
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError("Senior")
        senior, owner_id = row
        if owner_id != requester_id:
            logger.warning(
                "senior_ownership_denied",
                senior_id=str(senior_id),
                requester_id=str(requester_id),
            )
            raise AuthorizationError("You do not manage this senior")
        return senior

    async def _load_companion_visit(
        self,
        session: AsyncSession,
        visit_id: uuid.UUID,
        companion_id: uuid.UUID,
    ) -> Visit:
        visit = (
            await session.execute(
                select(Visit).where(Visit.id == visit_id, Visit.companion_id == companion_id)
            )
        ).scalar_one_or_none()
        if visit is None:
            raise NotFoundError("Visit")
        return visit
