"""Seed a demo family, senior, companion and visits for local development.

User ids are fixed so the API can be exercised with ``X-User-Id`` straight
away:

  family     00000000-0000-0000-0000-00000000f001
  companion  00000000-0000-0000-0000-00000000c001
"""
import asyncio
import sys
import uuid
from datetime import timedelta
sys.path.insert(0, ".")

from sqlalchemy import select
from app.database import Base, async_session_factory, engine
from app.models import Companion, Family, Senior, Visit
from app.models.enums import CompanionStatus, VisitStatus
from app.utils.clock import utcnow

FAMILY_USER_ID = uuid.UUID("00000000-0000-0000-0000-00000000f001")
COMPANION_USER_ID = uuid.UUID("00000000-0000-0000-0000-00000000c001")

DEMO_SENIOR = {
    "first_name": "Margaret",
    "nickname": "Maggie",
    "location": "Austin, TX",
    "personality": {
        "Openness": 82,
        "Conscientiousness": 71,
        "Extraversion": 55,
        "Agreeableness": 88,
        "Neuroticism": 34,
    },
    "interests": [
        "Italian cooking", "Travel stories", "Photography",
        "Classical music", "Gardening", "Family genealogy",
    ],
    "social_style": [
        "Prefers one-on-one over groups",
        "Warms up slowly - needs time to trust",
    ],
    "conditions": [],
    "companion_qualities": [
        "Patient and gentle",
        "Good cook - can cook together",
        "Musical - can sing or play",
    ],
}

DEMO_COMPANIONS = [
    {
        "user_id": COMPANION_USER_ID,
        "first_name": "Sarah",
        "last_name": "Chen",
        "phone": "+15559876543",
        "city": "Austin",
        "state": "TX",
        "availability": "part-time",
        "interests": ["Italian cooking", "Music & Arts", "Travel Stories", "Photography", "Gardening"],
        "status": CompanionStatus.ACTIVE.value,
        "stripe_account_id": "acct_demo_sarah",
        "stripe_account_status": "active",
    },
    {
        "user_id": uuid.UUID("00000000-0000-0000-0000-00000000c002"),
        "first_name": "Marcus",
        "last_name": "Reyes",
        "city": "Houston",
        "state": "TX",
        "availability": "weekends",
        "interests": ["Chess", "Classical music", "History"],
        "status": CompanionStatus.ACTIVE.value,
    },
    {
        "user_id": uuid.UUID("00000000-0000-0000-0000-00000000c003"),
        "first_name": "Priya",
        "last_name": "Nair",
        "city": "Portland",
        "state": "OR",
        "availability": "full-time",
        "interests": ["Gardening", "Knitting"],
        "status": CompanionStatus.TRAINING.value,
    },
]


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        existing = await session.execute(
            select(Family).where(Family.user_id == FAMILY_USER_ID)
        )
        if existing.scalar_one_or_none() is not None:
            print("  Demo family already exists, skipping.")
            return

        family = Family(
            user_id=FAMILY_USER_ID,
            first_name="Rebecca",
            last_name="Robertson",
            phone="+15551234567",
        )
        senior = Senior(**DEMO_SENIOR)
        family.seniors.append(senior)
        session.add(family)

        companions = [Companion(**c) for c in DEMO_COMPANIONS]
        session.add_all(companions)
        await session.flush()
        print(f"  Seeded family {family.first_name} {family.last_name} with senior {senior.first_name}")
        for c in companions:
            print(f"  Seeded companion {c.full_name} ({c.status})")

        sarah = companions[0]
        now = utcnow()
        visit_start = now - timedelta(days=4)
        session.add_all([
            Visit(
                senior_id=senior.id,
                companion_id=sarah.id,
                scheduled_at=visit_start,
                duration_min=120,
                status=VisitStatus.COMPLETED.value,
                check_in_at=visit_start,
                check_out_at=visit_start + timedelta(hours=2),
                actual_minutes=120,
                mood="Joyful",
                activities=["Looking at old photos", "Talking about Florence", "Making tea"],
                notes=(
                    "Maggie was in wonderful spirits today. We spent the morning looking "
                    "through old photo albums from her trip to Florence in 1972."
                ),
            ),
            Visit(
                senior_id=senior.id,
                companion_id=sarah.id,
                scheduled_at=now + timedelta(days=1),
                duration_min=120,
                status=VisitStatus.SCHEDULED.value,
            ),
        ])
        print("  Seeded one completed and one upcoming visit")
        await session.commit()
    print("Done seeding demo data.")


if __name__ == "__main__":
    asyncio.run(seed())
