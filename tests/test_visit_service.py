"""Tests for VisitService: check-in / check-out timing and cancellation."""
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from app.errors import AuthorizationError, InvalidStateError, NotFoundError, PreconditionError
from app.models import Visit
from app.models.enums import CompanionStatus, VisitStatus, VisitType
from app.services.visit_service import GeoPoint, VisitReport, VisitService, elapsed_minutes
from app.utils.clock import as_utc

REPORT = VisitReport(
    mood="Joyful",
    activities=["Looking at old photos", "Making tea"],
    notes="Maggie talked about her trip to Florence in 1972.",
    location=GeoPoint(lat=30.2672, lng=-97.7431),
)


@pytest.fixture
def service(session_factory, clock):
    return VisitService(session_factory, clock=clock)


@pytest_asyncio.fixture
async def pair(make_senior, make_companion):
    return await make_senior(), await make_companion()


async def _load(session_factory, visit_id) -> Visit:
    async with session_factory() as session:
        return await session.get(Visit, visit_id)


class TestElapsedMinutes:

    def test_half_minute_rounds_up(self):
        start = datetime(2026, 2, 3, 15, 0, tzinfo=timezone.utc)
        assert elapsed_minutes(start, start + timedelta(minutes=125, seconds=30)) == 126

    def test_below_half_rounds_down(self):
        start = datetime(2026, 2, 3, 15, 0, tzinfo=timezone.utc)
        assert elapsed_minutes(start, start + timedelta(minutes=125, seconds=29)) == 125

    def test_naive_start_is_treated_as_utc(self):
        start = datetime(2026, 2, 3, 15, 0)
        end = datetime(2026, 2, 3, 17, 0, tzinfo=timezone.utc)
        assert elapsed_minutes(start, end) == 120


class TestCheckIn:

    @pytest.mark.asyncio
    async def test_check_in_starts_visit(self, service, session_factory, clock, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion)

        check_in_at = await service.check_in(visit.id, companion.id, GeoPoint(30.27, -97.74))

        assert check_in_at == clock.now
        stored = await _load(session_factory, visit.id)
        assert stored.status == VisitStatus.IN_PROGRESS.value
        assert as_utc(stored.check_in_at) == clock.now
        assert stored.check_in_lat == pytest.approx(30.27)

    @pytest.mark.asyncio
    async def test_confirmed_visit_can_be_checked_into(self, service, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion, status=VisitStatus.CONFIRMED.value)
        await service.check_in(visit.id, companion.id)

    @pytest.mark.asyncio
    async def test_location_is_optional(self, service, session_factory, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        await service.check_in(visit.id, companion.id)
        assert (await _load(session_factory, visit.id)).check_in_lat is None

    @pytest.mark.asyncio
    async def test_other_companions_visit_is_not_found(
        self, service, pair, make_visit, make_companion,
    ):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        other = await make_companion()
        with pytest.raises(NotFoundError):
            await service.check_in(visit.id, other.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [
        VisitStatus.IN_PROGRESS.value,
        VisitStatus.COMPLETED.value,
        VisitStatus.CANCELLED.value,
    ])
    async def test_invalid_states(self, service, pair, make_visit, status):
        senior, companion = pair
        visit = await make_visit(senior, companion, status=status)
        with pytest.raises(InvalidStateError):
            await service.check_in(visit.id, companion.id)


class TestCheckOut:

    @pytest.mark.asyncio
    async def test_actual_minutes_round_half_up(
        self, service, session_factory, clock, pair, make_visit,
    ):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        await service.check_in(visit.id, companion.id)

        clock.advance(minutes=125, seconds=30)
        actual_minutes = await service.check_out(visit.id, companion.id, REPORT)

        assert actual_minutes == 126
        stored = await _load(session_factory, visit.id)
        assert stored.status == VisitStatus.COMPLETED.value
        assert stored.actual_minutes == 126
        assert as_utc(stored.check_out_at) == clock.now
        assert stored.mood == "Joyful"
        assert stored.activities == ["Looking at old photos", "Making tea"]
        assert stored.check_out_lng == pytest.approx(-97.7431)

    @pytest.mark.asyncio
    async def test_never_checked_in_is_a_precondition_failure(self, service, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        with pytest.raises(PreconditionError):
            await service.check_out(visit.id, companion.id, REPORT)

    @pytest.mark.asyncio
    async def test_checked_in_but_cancelled_is_invalid(self, service, clock, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(
            senior, companion,
            status=VisitStatus.CANCELLED.value,
            check_in_at=clock.now - timedelta(hours=1),
        )
        with pytest.raises(InvalidStateError):
            await service.check_out(visit.id, companion.id, REPORT)

    @pytest.mark.asyncio
    async def test_double_check_out_is_invalid(self, service, clock, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        await service.check_in(visit.id, companion.id)
        clock.advance(hours=2)
        await service.check_out(visit.id, companion.id, REPORT)

        with pytest.raises(InvalidStateError):
            await service.check_out(visit.id, companion.id, REPORT)

    @pytest.mark.asyncio
    async def test_unknown_visit(self, service, pair):
        _, companion = pair
        with pytest.raises(NotFoundError):
            await service.check_out(uuid.uuid4(), companion.id, REPORT)

    @pytest.mark.asyncio
    async def test_notifier_receives_minutes(self, session_factory, clock, pair, make_visit):
        notifier = AsyncMock()
        service = VisitService(session_factory, notifier=notifier, clock=clock)
        senior, companion = pair
        visit = await make_visit(senior, companion)

        await service.check_in(visit.id, companion.id)
        clock.advance(minutes=90)
        await service.check_out(visit.id, companion.id, REPORT)

        notifier.visit_checked_out.assert_awaited_once_with(
            visit_id=visit.id, companion_id=companion.id, actual_minutes=90,
        )


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_records_who_and_why(self, service, session_factory, clock, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        requester = uuid.uuid4()

        await service.cancel(visit.id, requester, "Doctor appointment")

        stored = await _load(session_factory, visit.id)
        assert stored.status == VisitStatus.CANCELLED.value
        assert stored.cancelled_by == requester
        assert stored.cancellation_reason == "Doctor appointment"
        assert as_utc(stored.cancelled_at) == clock.now

    @pytest.mark.asyncio
    async def test_in_progress_visit_can_be_cancelled(self, service, pair, make_visit):
        senior, companion = pair
        visit = await make_visit(senior, companion)
        await service.check_in(visit.id, companion.id)
        await service.cancel(visit.id, uuid.uuid4())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [VisitStatus.COMPLETED.value, VisitStatus.CANCELLED.value])
    async def test_terminal_visits_cannot_be_cancelled(self, service, pair, make_visit, status):
        senior, companion = pair
        visit = await make_visit(senior, companion, status=status)
        with pytest.raises(InvalidStateError):
            await service.cancel(visit.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_unknown_visit(self, service):
        with pytest.raises(NotFoundError):
            await service.cancel(uuid.uuid4(), uuid.uuid4())


class TestRequestVisit:

    WHEN = datetime(2026, 2, 10, 14, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_books_scheduled_visit_with_assigned_companion(
        self, session_factory, make_family, make_senior, make_companion,
    ):
        notifier = AsyncMock()
        service = VisitService(session_factory, notifier=notifier)
        family, companion = await make_family(), await make_companion()
        senior = await make_senior(family, companion_id=companion.id)

        visit = await service.request_visit(
            senior.id, family.user_id, self.WHEN, 120, VisitType.OUTDOOR_ACTIVITY,
        )

        stored = await _load(session_factory, visit.id)
        assert stored.status == VisitStatus.SCHEDULED.value
        assert stored.companion_id == companion.id
        assert stored.visit_type == "Outdoor activity"
        assert stored.duration_min == 120
        assert as_utc(stored.scheduled_at) == self.WHEN
        notifier.visit_requested.assert_awaited_once_with(
            visit_id=visit.id, senior_id=senior.id, companion_id=companion.id,
        )

    @pytest.mark.asyncio
    async def test_default_type_is_regular_visit(
        self, service, make_family, make_senior, make_companion,
    ):
        family, companion = await make_family(), await make_companion()
        senior = await make_senior(family, companion_id=companion.id)
        visit = await service.request_visit(senior.id, family.user_id, self.WHEN, 60)
        assert visit.visit_type == VisitType.REGULAR.value

    @pytest.mark.asyncio
    async def test_requires_assigned_companion(self, service, make_family, make_senior):
        family = await make_family()
        senior = await make_senior(family)
        with pytest.raises(PreconditionError, match="No active companion"):
            await service.request_visit(senior.id, family.user_id, self.WHEN, 60)

    @pytest.mark.asyncio
    async def test_suspended_companion_cannot_be_booked(
        self, service, make_family, make_senior, make_companion,
    ):
        family = await make_family()
        companion = await make_companion(status=CompanionStatus.SUSPENDED.value)
        senior = await make_senior(family, companion_id=companion.id)
        with pytest.raises(PreconditionError):
            await service.request_visit(senior.id, family.user_id, self.WHEN, 60)

    @pytest.mark.asyncio
    async def test_other_family_is_forbidden(self, service, make_senior, make_companion):
        companion = await make_companion()
        senior = await make_senior(companion_id=companion.id)
        with pytest.raises(AuthorizationError):
            await service.request_visit(senior.id, uuid.uuid4(), self.WHEN, 60)

    @pytest.mark.asyncio
    async def test_unknown_senior(self, service):
        with pytest.raises(NotFoundError):
            await service.request_visit(uuid.uuid4(), uuid.uuid4(), self.WHEN, 60)

    @pytest.mark.asyncio
    async def test_unknown_visit_type(self, service, make_family, make_senior, make_companion):
        family, companion = await make_family(), await make_companion()
        senior = await make_senior(family, companion_id=companion.id)
        with pytest.raises(ValueError):
            await service.request_visit(senior.id, family.user_id, self.WHEN, 60, "Sleepover")

    @pytest.mark.asyncio
    async def test_list_for_senior_latest_first(
        self, service, make_family, make_senior, make_companion, make_visit,
    ):
        family, companion = await make_family(), await make_companion()
        senior = await make_senior(family, companion_id=companion.id)
        early = await make_visit(senior, companion, scheduled_at=self.WHEN - timedelta(days=7))
        late = await make_visit(senior, companion, scheduled_at=self.WHEN)

        visits = await service.list_visits_for_senior(senior.id, family.user_id)

        assert [v.id for v in visits] == [late.id, early.id]
        with pytest.raises(AuthorizationError):
            await service.list_visits_for_senior(senior.id, uuid.uuid4())
