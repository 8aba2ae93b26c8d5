"""Shared pytest fixtures for Juni tests."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.database import Base
from app.models import Companion, Family, Match, Senior, Visit
from app.models.enums import CompanionStatus, MatchStatus, VisitStatus
from app.services.kindred_service import CompanionProfile, PersonalityTraits, SeniorProfile

PERIOD_START = datetime(2026, 2, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2026, 2, 15, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ── Profile fixtures (pure scoring) ───────────────────────────────────────────

MAGGIE_INTERESTS = [
    "Italian cooking", "Travel stories", "Photography",
    "Classical music", "Gardening", "Family genealogy",
]
MAGGIE_QUALITIES = [
    "Patient and gentle",
    "Good cook - can cook together",
    "Musical - can sing or play",
]
SARAH_INTERESTS = ["Italian cooking", "Music & Arts", "Travel Stories", "Photography", "Gardening"]


@pytest.fixture
def maggie_profile():
    """Margaret "Maggie", Austin TX, Agreeableness 88."""
    return SeniorProfile(
        id=uuid.uuid4(),
        interests=tuple(MAGGIE_INTERESTS),
        companion_qualities=tuple(MAGGIE_QUALITIES),
        social_style=("Prefers one-on-one over groups",),
        personality=PersonalityTraits(
            openness=82, conscientiousness=71, extraversion=55,
            agreeableness=88, neuroticism=34,
        ),
        location="Austin, TX",
    )


@pytest.fixture
def sarah_profile():
    return CompanionProfile(
        id=uuid.uuid4(),
        interests=tuple(SARAH_INTERESTS),
        availability="part-time",
        city="Austin",
        state="TX",
    )


# ── Database ──────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'juni_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def _persist(session_factory, obj):
    async with session_factory() as session:
        async with session.begin():
            session.add(obj)
    return obj


@pytest.fixture
def make_family(session_factory):
    async def _make(**overrides):
        data = {
            "user_id": uuid.uuid4(),
            "first_name": "Rebecca",
            "last_name": "Robertson",
        }
        data.update(overrides)
        return await _persist(session_factory, Family(**data))
    return _make


@pytest.fixture
def make_senior(session_factory, make_family):
    async def _make(family=None, **overrides):
        if family is None:
            family = await make_family()
        data = {
            "family_id": family.id,
            "first_name": "Margaret",
            "nickname": "Maggie",
            "location": "Austin, TX",
            "interests": list(MAGGIE_INTERESTS),
            "companion_qualities": list(MAGGIE_QUALITIES),
            "social_style": ["Prefers one-on-one over groups"],
            "personality": {"Agreeableness": 88, "Openness": 82},
            "conditions": [],
        }
        data.update(overrides)
        return await _persist(session_factory, Senior(**data))
    return _make


@pytest.fixture
def make_companion(session_factory):
    async def _make(**overrides):
        data = {
            "user_id": uuid.uuid4(),
            "first_name": "Sarah",
            "last_name": "Chen",
            "interests": list(SARAH_INTERESTS),
            "availability": "part-time",
            "city": "Austin",
            "state": "TX",
            "status": CompanionStatus.ACTIVE.value,
            "stripe_account_id": "acct_test_sarah",
            "stripe_account_status": "active",
        }
        data.update(overrides)
        return await _persist(session_factory, Companion(**data))
    return _make


@pytest.fixture
def make_match(session_factory):
    async def _make(senior, companion, **overrides):
        data = {
            "senior_id": senior.id,
            "companion_id": companion.id,
            "kindred_score": 80,
            "match_reasons": ["Nearby location"],
            "status": MatchStatus.PROPOSED.value,
            "proposed_at": PERIOD_START,
        }
        data.update(overrides)
        return await _persist(session_factory, Match(**data))
    return _make


@pytest.fixture
def make_visit(session_factory):
    async def _make(senior, companion, **overrides):
        data = {
            "senior_id": senior.id,
            "companion_id": companion.id,
            "scheduled_at": PERIOD_START + timedelta(days=2),
            "duration_min": 120,
            "status": VisitStatus.SCHEDULED.value,
        }
        data.update(overrides)
        return await _persist(session_factory, Visit(**data))
    return _make


@pytest.fixture
def make_completed_visit(make_visit):
    async def _make(senior, companion, actual_minutes=120, **overrides):
        scheduled_at = overrides.pop("scheduled_at", PERIOD_START + timedelta(days=2))
        return await make_visit(
            senior,
            companion,
            scheduled_at=scheduled_at,
            status=VisitStatus.COMPLETED.value,
            check_in_at=scheduled_at,
            check_out_at=scheduled_at + timedelta(minutes=actual_minutes or 0),
            actual_minutes=actual_minutes,
            **overrides,
        )
    return _make


@pytest.fixture
def period():
    return PERIOD_START, PERIOD_END


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 2, 3, 15, 0, tzinfo=timezone.utc))
