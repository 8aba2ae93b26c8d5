"""
Juni — Kindred Score engine

Scores a (senior, companion) pair on a 0-100 scale from five independently
capped components:

  Shared interests            40
  Personality compatibility   25
  Communication style         15
  Companion-quality match     10
  Practical factors           10

  kindred_score = round_half_up(min(100, Σ min(weight_i, points_i)))

Human-readable match reasons are emitted while scoring, in component order
(interests → personality → qualities → location).  Components that have no
triggering condition contribute no reason.

Scoring is a pure function of the two profiles: no I/O, no clock, no
randomness.  Components implement :class:`ScoringComponent` so that, for
example, a two-sided personality model can replace
:class:`PersonalityComponent` without touching the rest of the formula.
"""

from __future__ import annotations

import abc
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

import structlog

from app.models.enums import Availability, CompanionStatus, MatchStatus
from app.utils.rounding import round_half_up

logger = structlog.get_logger("juni.kindred_service")

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

MAX_SCORE = 100

# Agreeableness assumed when a personality map exists but omits the trait.
DEFAULT_AGREEABLENESS = 70

# Flat personality points when the senior has no personality data at all.
NEUTRAL_PERSONALITY_POINTS = 12

PREFERS_ONE_ON_ONE = "Prefers one-on-one over groups"
OPENS_UP_OVER_ACTIVITY = "Opens up over a shared activity"

# "Austin, TX" -> "TX"
_STATE_PATTERN = re.compile(r",\s*([A-Z]{2})$")

# Match statuses that block a new proposal for the same pair.
BLOCKING_MATCH_STATUSES: frozenset[str] = frozenset({
    MatchStatus.PROPOSED.value,
    MatchStatus.ACCEPTED.value,
    MatchStatus.ACTIVE.value,
    MatchStatus.REJECTED.value,
})


# ──────────────────────────────────────────────────────────────────────────────
# Profile records
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PersonalityTraits:
    """Big Five trait scores (0-100) captured by the Vibe Check."""

    openness: int | None = None
    conscientiousness: int | None = None
    extraversion: int | None = None
    agreeableness: int | None = None
    neuroticism: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> PersonalityTraits | None:
        """Build from the stored ``{"Agreeableness": 88, ...}`` map.

        Returns ``None`` only when there is no map at all; an empty map is a
        profile with every trait unknown.
        """
        if data is None:
            return None
        return cls(
            openness=data.get("Openness"),
            conscientiousness=data.get("Conscientiousness"),
            extraversion=data.get("Extraversion"),
            agreeableness=data.get("Agreeableness"),
            neuroticism=data.get("Neuroticism"),
        )


@dataclass(frozen=True)
class SeniorProfile:
    id: uuid.UUID | None = None
    interests: tuple[str, ...] = ()
    companion_qualities: tuple[str, ...] = ()
    social_style: tuple[str, ...] = ()
    personality: PersonalityTraits | None = None
    location: str | None = None
    conditions: tuple[str, ...] = ()

    @classmethod
    def from_model(cls, senior: Any) -> SeniorProfile:
        return cls(
            id=senior.id,
            interests=tuple(senior.interests or ()),
            companion_qualities=tuple(senior.companion_qualities or ()),
            social_style=tuple(senior.social_style or ()),
            personality=PersonalityTraits.from_mapping(senior.personality),
            location=senior.location,
            conditions=tuple(senior.conditions or ()),
        )

    @property
    def state(self) -> str | None:
        return extract_state(self.location)


@dataclass(frozen=True)
class CompanionProfile:
    id: uuid.UUID | None = None
    interests: tuple[str, ...] = ()
    availability: str | None = None
    city: str | None = None
    state: str | None = None
    status: str = CompanionStatus.ACTIVE.value

    @classmethod
    def from_model(cls, companion: Any) -> CompanionProfile:
        return cls(
            id=companion.id,
            interests=tuple(companion.interests or ()),
            availability=companion.availability,
            city=companion.city,
            state=companion.state,
            status=companion.status,
        )


@dataclass(frozen=True)
class MatchResult:
    companion_id: uuid.UUID
    kindred_score: int
    match_reasons: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "companion_id": str(self.companion_id),
            "kindred_score": self.kindred_score,
            "match_reasons": list(self.match_reasons),
        }


# ──────────────────────────────────────────────────────────────────────────────
# Scoring components
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class ScoringContext:
    """Facts computed by earlier components that later ones may read."""

    shared_interests: list[str] = field(default_factory=list)


@dataclass
class ComponentScore:
    points: float
    reasons: list[str] = field(default_factory=list)


class ScoringComponent(abc.ABC):
    """One weighted dimension of the Kindred Score."""

    name: str
    weight: int

    @abc.abstractmethod
    def score(
        self,
        senior: SeniorProfile,
        companion: CompanionProfile,
        context: ScoringContext,
    ) -> ComponentScore:
        """Return raw points (capped at ``weight`` by the scorer) and reasons."""


class SharedInterestsComponent(ScoringComponent):
    """A senior interest counts as shared when any companion interest
    contains its first word, case-insensitively."""

    name = "shared_interests"
    weight = 40

    def score(self, senior, companion, context):
        companion_interests = [ci.lower() for ci in companion.interests]
        shared = [
            interest
            for interest in senior.interests
            if any(_first_word(interest) in ci for ci in companion_interests)
        ]
        context.shared_interests = shared

        points = min(
            self.weight,
            len(shared) / max(len(senior.interests), 1) * self.weight,
        )

        reasons: list[str] = []
        if len(shared) == 1:
            reasons.append(f"Shared love of {shared[0]}")
        elif shared:
            reasons.append(
                f"{len(shared)} shared interests including {' and '.join(shared[:2])}"
            )
        return ComponentScore(points=points, reasons=reasons)


class PersonalityComponent(ScoringComponent):
    """Senior-side proxy: agreeableness correlates with adaptability.

    Companion personality is not modelled yet; a two-sided comparison should
    subclass :class:`ScoringComponent` and replace this one.
    """

    name = "personality"
    weight = 25

    def score(self, senior, companion, context):
        if senior.personality is None:
            points = NEUTRAL_PERSONALITY_POINTS
        else:
            agreeableness = senior.personality.agreeableness
            if agreeableness is None:
                agreeableness = DEFAULT_AGREEABLENESS
            points = round_half_up(8 + (agreeableness / 100) * 17)

        reasons: list[str] = []
        if points > 18:
            reasons.append("Strong personality compatibility")
        elif points > 12:
            reasons.append("Good personality fit")
        return ComponentScore(points=points, reasons=reasons)


class CommunicationStyleComponent(ScoringComponent):
    name = "communication_style"
    weight = 15

    def score(self, senior, companion, context):
        points = 10
        if PREFERS_ONE_ON_ONE in senior.social_style:
            points += 5
        if OPENS_UP_OVER_ACTIVITY in senior.social_style and context.shared_interests:
            points += 3
        return ComponentScore(points=points)


class CompanionQualitiesComponent(ScoringComponent):
    name = "companion_qualities"
    weight = 10

    def score(self, senior, companion, context):
        count = len(senior.companion_qualities)
        reasons: list[str] = []
        if count >= 3:
            reasons.append(f"Matches {count} preferred companion qualities")
        return ComponentScore(points=min(self.weight, count * 2), reasons=reasons)


class PracticalFactorsComponent(ScoringComponent):
    """Availability and a same-state check (no geocoding)."""

    name = "practical_factors"
    weight = 10

    def score(self, senior, companion, context):
        points = 5
        reasons: list[str] = []

        if companion.availability and companion.availability != Availability.WEEKENDS.value:
            points += 3

        senior_state = senior.state
        if senior_state and companion.state and senior_state.lower() == companion.state.lower():
            points += 2
            reasons.append("Nearby location")

        return ComponentScore(points=points, reasons=reasons)


def default_components() -> list[ScoringComponent]:
    """The production formula, in reason-emission order."""
    return [
        SharedInterestsComponent(),
        PersonalityComponent(),
        CommunicationStyleComponent(),
        CompanionQualitiesComponent(),
        PracticalFactorsComponent(),
    ]


# ──────────────────────────────────────────────────────────────────────────────
# Scorer
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class KindredScore:
    total: int
    reasons: tuple[str, ...]
    breakdown: dict[str, float]


class KindredScorer:
    """Sums capped component scores into the Kindred Score and ranks pools."""

    def __init__(self, components: Sequence[ScoringComponent] | None = None) -> None:
        self.components: list[ScoringComponent] = (
            list(components) if components is not None else default_components()
        )

    def score(self, senior: SeniorProfile, companion: CompanionProfile) -> KindredScore:
        context = ScoringContext()
        reasons: list[str] = []
        breakdown: dict[str, float] = {}
        total = 0.0

        for component in self.components:
            result = component.score(senior, companion, context)
            points = max(0.0, min(float(component.weight), float(result.points)))
            breakdown[component.name] = points
            total += points
            reasons.extend(result.reasons)

        kindred = round_half_up(min(float(MAX_SCORE), total))

        logger.debug(
            "kindred_score_computed",
            senior_id=str(senior.id),
            companion_id=str(companion.id),
            total=kindred,
            breakdown=breakdown,
        )
        return KindredScore(total=kindred, reasons=tuple(reasons), breakdown=breakdown)

    def rank(
        self,
        senior: SeniorProfile,
        pool: Iterable[CompanionProfile],
        limit: int = 5,
    ) -> list[MatchResult]:
        """Score every companion in ``pool`` and return the best ``limit``.

        Ties keep the pool's iteration order (``list.sort`` is stable).
        """
        results = []
        for companion in pool:
            scored = self.score(senior, companion)
            results.append(MatchResult(
                companion_id=companion.id,
                kindred_score=scored.total,
                match_reasons=scored.reasons,
            ))

        results.sort(key=lambda r: r.kindred_score, reverse=True)
        return results[:max(limit, 0)]


# ──────────────────────────────────────────────────────────────────────────────
# Eligibility
# ──────────────────────────────────────────────────────────────────────────────

def filter_eligible(
    pool: Iterable[CompanionProfile],
    existing_matches: Iterable[tuple[uuid.UUID, str]],
) -> list[CompanionProfile]:
    """Drop companions that may not be proposed to this senior.

    ``existing_matches`` holds ``(companion_id, status)`` for every match the
    senior already has.  A companion is eligible only when ACTIVE and with no
    PROPOSED/ACCEPTED/ACTIVE match and no REJECTED match (rejection is
    permanent).
    """
    blocked = {
        companion_id
        for companion_id, status in existing_matches
        if status in BLOCKING_MATCH_STATUSES
    }
    return [
        c for c in pool
        if c.status == CompanionStatus.ACTIVE.value and c.id not in blocked
    ]


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def extract_state(location: str | None) -> str | None:
    """Return the trailing two-letter state code of ``"City, ST"``."""
    if not location:
        return None
    match = _STATE_PATTERN.search(location)
    return match.group(1) if match else None


def _first_word(interest: str) -> str:
    return interest.lower().split(" ")[0]
