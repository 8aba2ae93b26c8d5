"""
Juni — Matching service & match lifecycle

Finds candidate companions for a senior with the Kindred Score engine and
moves persisted matches through their lifecycle:

  [none] --propose--> PROPOSED --accept--> ACTIVE
                          |
                          +----reject--> REJECTED   (permanent for the pair)

Every public method opens its own session from the injected factory and
wraps all writes in a single ``session.begin()`` block, so multi-row
mutations (match status + senior assignment, a batch of proposals) commit
together or not at all.

Accepting one match does not reject sibling proposals for the same senior.
Two concurrent accepts for one senior both commit; ``Senior.companion_id``
ends up with whichever transaction committed last.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.errors import AuthorizationError, InvalidStateError, NotFoundError
from app.models.companion import Companion
from app.models.enums import CompanionStatus, MatchStatus
from app.models.family import Family, Senior
from app.models.match import Match
from app.services.kindred_service import (
    CompanionProfile,
    KindredScorer,
    MatchResult,
    SeniorProfile,
    filter_eligible,
)
from app.services.notification_service import NotificationService, notify_safely
from app.utils.clock import utcnow

logger = structlog.get_logger("juni.matching_service")

# Statuses from which a family may still decide on a match.
_DECIDABLE_STATUSES: frozenset[str] = frozenset({
    MatchStatus.PROPOSED.value,
    MatchStatus.ACCEPTED.value,
})


class MatchingService:
    """Kindred matching plus the PROPOSED → ACTIVE/REJECTED state machine.

    Dependencies are injected at construction so the service can be tested
    against a throw-away database and swapped in FastAPI's dependency graph.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        scorer: KindredScorer | None = None,
        notifier: NotificationService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.scorer = scorer or KindredScorer()
        self.notifier = notifier or NotificationService()
        self._clock = clock

    # ── Candidate search (read-only) ──────────────────────────────────────

    async def find_matches_for_senior(
        self,
        senior_id: uuid.UUID,
        limit: int | None = None,
    ) -> list[MatchResult]:
        """Rank eligible companions for a senior.  Nothing is persisted.

        Raises
        ------
        NotFoundError
            If the senior does not exist.
        """
        if limit is None:
            limit = get_settings().DEFAULT_MATCH_LIMIT
        log = logger.bind(senior_id=str(senior_id), limit=limit)

        async with self._session_factory() as session:
            senior = await session.get(Senior, senior_id)
            if senior is None:
                raise NotFoundError("Senior")

            companions = (
                await session.execute(
                    select(Companion)
                    .where(Companion.status == CompanionStatus.ACTIVE.value)
                    .order_by(Companion.created_at, Companion.id)
                )
            ).scalars().all()

            existing = (
                await session.execute(
                    select(Match.companion_id, Match.status).where(
                        Match.senior_id == senior_id
                    )
                )
            ).all()

        pool = filter_eligible(
            [CompanionProfile.from_model(c) for c in companions],
            [(row.companion_id, row.status) for row in existing],
        )
        results = self.scorer.rank(SeniorProfile.from_model(senior), pool, limit)

        log.info(
            "find_matches_complete",
            active_companions=len(companions),
            eligible=len(pool),
            returned=len(results),
            top_score=results[0].kindred_score if results else None,
        )
        return results

    # ── Proposal ──────────────────────────────────────────────────────────

    async def propose_matches(
        self,
        senior_id: uuid.UUID,
        results: Sequence[MatchResult],
    ) -> int:
        """Upsert one PROPOSED match per result, atomically for the batch.

        An existing row for the same (senior, companion) pair is overwritten
        with the new score, reasons and PROPOSED status; no duplicate rows are
        created.  Returns the number of results written.
        """
        log = logger.bind(senior_id=str(senior_id), count=len(results))
        now = self._clock()

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    if await session.get(Senior, senior_id) is None:
                        raise NotFoundError("Senior")

                    companion_ids = [r.companion_id for r in results]
                    existing = {
                        m.companion_id: m
                        for m in (
                            await session.execute(
                                select(Match).where(
                                    Match.senior_id == senior_id,
                                    Match.companion_id.in_(companion_ids),
                                )
                            )
                        ).scalars()
                    }

                    for result in results:
                        match = existing.get(result.companion_id)
                        if match is None:
                            match = Match(senior_id=senior_id, companion_id=result.companion_id)
                            session.add(match)
                            existing[result.companion_id] = match
                        match.kindred_score = result.kindred_score
                        match.match_reasons = list(result.match_reasons)
                        match.status = MatchStatus.PROPOSED.value
                        match.proposed_at = now
        except IntegrityError as exc:
            log.warning("propose_matches_conflict", error=str(exc.orig))
            raise InvalidStateError(
                "Matches for this senior changed while proposing; please retry"
            ) from exc

        log.info("matches_proposed")
        return len(results)

    async def propose_top_matches(
        self,
        senior_id: uuid.UUID,
        limit: int | None = None,
    ) -> list[MatchResult]:
        """Find the best candidates for a senior and propose them."""
        results = await self.find_matches_for_senior(senior_id, limit)
        if results:
            await self.propose_matches(senior_id, results)
        return results

    # ── Family decisions ─────────────────────────────────────────────────

    async def accept_match(self, match_id: uuid.UUID, requester_id: uuid.UUID) -> Match:
        """Activate a match and assign its companion to the senior.

        Raises
        ------
        NotFoundError
            If the match does not exist.
        AuthorizationError
            If the requester's family does not own the match's senior.
        InvalidStateError
            If the match is no longer awaiting a decision.
        """
        log = logger.bind(match_id=str(match_id), requester_id=str(requester_id))

        async with self._session_factory() as session:
            async with session.begin():
                match = await self._load_decidable_match(session, match_id, requester_id, "accepted")
                senior = await session.get(Senior, match.senior_id)

                match.status = MatchStatus.ACTIVE.value
                match.accepted_at = self._clock()
                await session.flush()

                await self._assign_companion(session, senior, match.companion_id)

        log.info(
            "match_accepted",
            senior_id=str(match.senior_id),
            companion_id=str(match.companion_id),
        )
        await notify_safely(
            self.notifier.match_accepted,
            senior_id=match.senior_id,
            companion_id=match.companion_id,
        )
        return match

    async def reject_match(self, match_id: uuid.UUID, requester_id: uuid.UUID) -> Match:
        """Reject a match.  The companion is never proposed to this senior again."""
        log = logger.bind(match_id=str(match_id), requester_id=str(requester_id))

        async with self._session_factory() as session:
            async with session.begin():
                match = await self._load_decidable_match(session, match_id, requester_id, "rejected")
                match.status = MatchStatus.REJECTED.value
                match.rejected_at = self._clock()

        log.info("match_rejected", senior_id=str(match.senior_id))
        return match

    async def list_matches_for_senior(
        self,
        senior_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> list[Match]:
        """Persisted matches for a senior, highest score first (owner only)."""
        async with self._session_factory() as session:
            if await session.get(Senior, senior_id) is None:
                raise NotFoundError("Senior")
            await self._require_owned_senior(session, senior_id, requester_id)

            matches = (
                await session.execute(
                    select(Match)
                    .where(Match.senior_id == senior_id)
                    .order_by(Match.kindred_score.desc(), Match.proposed_at)
                )
            ).scalars().all()
        return list(matches)

    # ── Private helpers ──────────────────────────────────────────────────

    async def _load_decidable_match(
        self,
        session: AsyncSession,
        match_id: uuid.UUID,
        requester_id: uuid.UUID,
        verb: str,
    ) -> Match:
        match = await session.get(Match, match_id)
        if match is None:
            raise NotFoundError("Match")

        await self._require_owned_senior(session, match.senior_id, requester_id)

        if match.status not in _DECIDABLE_STATUSES:
            raise InvalidStateError(
                f"Match cannot be {verb} in its current state ({match.status})"
            )
        return match

    async def _require_owned_senior(
        self,
        session: AsyncSession,
        senior_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> Senior:
        senior = (
            await session.execute(
                select(Senior)
                .join(Family, Senior.family_id == Family.id)
                .where(Senior.id == senior_id, Family.user_id == requester_id)
            )
        ).scalar_one_or_none()
        if senior is None:
            logger.warning(
                "senior_ownership_denied",
                senior_id=str(senior_id),
                requester_id=str(requester_id),
            )
            raise AuthorizationError("You do not manage this senior")
        return senior

    async def _assign_companion(
        self,
        session: AsyncSession,
        senior: Senior,
        companion_id: uuid.UUID,
    ) -> None:
        senior.companion_id = companion_id
        await session.flush()
