"""
Juni — Companion payout pipeline

Aggregates a companion's completed, unbilled visits for a period into one
payout and transfers the net amount:

  total_hours = Σ (actual_minutes or duration_min) / 60
  gross_cents = round_half_up(total_hours × HOURLY_RATE_CENTS)
  fee_cents   = round_half_up(gross_cents × PLATFORM_FEE_PCT)
  net_cents   = gross_cents − fee_cents

Creating the PROCESSING payout and linking its visits happen in one
transaction, so a visit is never claimed by two payouts.  The transfer runs
after that commit; its outcome is written back as PAID or FAILED, and a
transfer cancelled mid-flight also ends FAILED.  A FAILED payout keeps its
visits linked; there is no automatic retry or unlinking.

Batch runs process companions concurrently (bounded by
``PAYOUT_CONCURRENCY``), each in its own session, and report per-companion
outcomes instead of stopping at the first failure.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Sequence

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.errors import (
    ExternalServiceError,
    InvalidStateError,
    NotFoundError,
    PreconditionError,
)
from app.models.companion import Companion
from app.models.enums import CompanionStatus, PayoutStatus, VisitStatus
from app.models.payout import Payout
from app.models.visit import Visit
from app.services.notification_service import NotificationService, notify_safely
from app.services.transfer_service import TransferService
from app.utils.clock import utcnow
from app.utils.rounding import round_half_up

logger = structlog.get_logger("juni.payout_service")

TRANSFER_CANCELLED_REASON = "Transfer was cancelled before it completed"


# ──────────────────────────────────────────────────────────────────────────────
# Arithmetic
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PayoutAmounts:
    total_hours: float
    gross_cents: int
    fee_cents: int
    net_cents: int


def billable_minutes(visit: Visit) -> int:
    """Actual minutes when recorded, else the planned duration."""
    if visit.actual_minutes is not None:
        return visit.actual_minutes
    return visit.duration_min


def compute_payout_amounts(
    visits: Iterable[Visit],
    hourly_rate_cents: int,
    platform_fee_pct: float,
) -> PayoutAmounts:
    total_hours = sum(billable_minutes(v) / 60 for v in visits)
    gross = round_half_up(total_hours * hourly_rate_cents)
    fee = round_half_up(gross * platform_fee_pct)
    return PayoutAmounts(
        total_hours=total_hours,
        gross_cents=gross,
        fee_cents=fee,
        net_cents=gross - fee,
    )


def format_period(start: datetime, end: datetime) -> str:
    """``"Jan 1–Jan 14, 2026"``"""
    return f"{start:%b} {start.day}–{end:%b} {end.day}, {end.year}"


# ──────────────────────────────────────────────────────────────────────────────
# Batch outcome
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class PayoutRunSummary:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": dict(self.failures),
        }


# ──────────────────────────────────────────────────────────────────────────────
# Service
# ──────────────────────────────────────────────────────────────────────────────

class PayoutService:
    """Builds payouts from completed visits and settles them via transfers."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        transfer_service: TransferService | None = None,
        notifier: NotificationService | None = None,
        hourly_rate_cents: int | None = None,
        platform_fee_pct: float | None = None,
        concurrency: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        settings = get_settings()
        self._session_factory = session_factory
        self.transfer_service = transfer_service or TransferService()
        self.notifier = notifier or NotificationService()
        self.hourly_rate_cents = (
            hourly_rate_cents if hourly_rate_cents is not None else settings.HOURLY_RATE_CENTS
        )
        self.platform_fee_pct = (
            platform_fee_pct if platform_fee_pct is not None else settings.PLATFORM_FEE_PCT
        )
        self.concurrency = concurrency or settings.PAYOUT_CONCURRENCY
        self._clock = clock

    # ── Single companion ──────────────────────────────────────────────────

    async def process_companion_payout(
        self,
        companion_id: uuid.UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> Payout | None:
        """Create and settle the payout for one companion and period.

        Returns ``None`` when the companion has no payable visits.

        Raises
        ------
        NotFoundError
            If the companion does not exist.
        PreconditionError
            If the companion has no connected payout account.
        InvalidStateError
            If a concurrent run claimed one of the selected visits (nothing
            is written in that case).
        ExternalServiceError
            If the transfer failed; the payout is left FAILED with the reason.
        asyncio.CancelledError
            Re-raised after the payout is marked FAILED.
        """
        log = logger.bind(
            companion_id=str(companion_id),
            period_start=period_start.isoformat(),
            period_end=period_end.isoformat(),
        )

        async with self._session_factory() as session:
            async with session.begin():
                companion = await session.get(Companion, companion_id)
                if companion is None:
                    raise NotFoundError("Companion")

                visits = (
                    await session.execute(
                        select(Visit).where(
                            Visit.companion_id == companion_id,
                            Visit.status == VisitStatus.COMPLETED.value,
                            Visit.payout_id.is_(None),
                            Visit.scheduled_at >= period_start,
                            Visit.scheduled_at <= period_end,
                        )
                    )
                ).scalars().all()

                if not visits:
                    log.info("payout_no_payable_visits")
                    return None
                if not companion.stripe_account_id:
                    raise PreconditionError("Companion has no connected payout account")

                amounts = compute_payout_amounts(
                    visits, self.hourly_rate_cents, self.platform_fee_pct
                )
                payout = Payout(
                    companion_id=companion_id,
                    period=format_period(period_start, period_end),
                    period_start=period_start,
                    period_end=period_end,
                    gross_amount_cents=amounts.gross_cents,
                    platform_fee_cents=amounts.fee_cents,
                    net_amount_cents=amounts.net_cents,
                    status=PayoutStatus.PROCESSING.value,
                )
                session.add(payout)
                await session.flush()

                await self._link_visits(session, payout, [v.id for v in visits], amounts.total_hours)
                destination = companion.stripe_account_id

            log = log.bind(payout_id=str(payout.id))
            log.info(
                "payout_created",
                visit_count=len(visits),
                total_hours=round(amounts.total_hours, 4),
                gross_cents=amounts.gross_cents,
                fee_cents=amounts.fee_cents,
                net_cents=amounts.net_cents,
            )

            try:
                transfer_id = await self._transfer(payout, destination)
            except asyncio.CancelledError:
                # A timed-out request or stopped batch must not strand the
                # payout in PROCESSING; the write survives a second cancel.
                await asyncio.shield(self._mark_failed(payout.id, TRANSFER_CANCELLED_REASON))
                log.error("payout_failed", error=TRANSFER_CANCELLED_REASON)
                raise
            except Exception as exc:
                await self._mark_failed(payout.id, str(exc))
                log.error("payout_failed", error=str(exc))
                if isinstance(exc, ExternalServiceError):
                    raise
                raise ExternalServiceError(f"Transfer failed: {exc}", service="stripe") from exc

            async with session.begin():
                payout.status = PayoutStatus.PAID.value
                payout.stripe_transfer_id = transfer_id
                payout.paid_at = self._clock()

        log.info("payout_paid", transfer_id=transfer_id, net_cents=payout.net_amount_cents)
        await notify_safely(
            self.notifier.payout_paid,
            payout_id=payout.id,
            companion_id=companion_id,
            net_amount_cents=payout.net_amount_cents,
        )
        return payout

    # ── Batch ─────────────────────────────────────────────────────────────

    async def run_payouts(
        self,
        companion_ids: Sequence[uuid.UUID],
        period_start: datetime,
        period_end: datetime,
    ) -> PayoutRunSummary:
        """Process every companion independently; never raises for one failure."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(companion_id: uuid.UUID) -> Payout | None:
            async with semaphore:
                return await self.process_companion_payout(companion_id, period_start, period_end)

        outcomes = await asyncio.gather(
            *(_one(cid) for cid in companion_ids),
            return_exceptions=True,
        )

        summary = PayoutRunSummary(processed=len(companion_ids))
        for companion_id, outcome in zip(companion_ids, outcomes):
            if isinstance(outcome, BaseException):
                summary.failed += 1
                summary.failures[str(companion_id)] = str(outcome)
            else:
                summary.succeeded += 1

        logger.info(
            "payout_run_complete",
            processed=summary.processed,
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
        return summary

    async def run_payouts_for_active_companions(
        self,
        period_start: datetime,
        period_end: datetime,
    ) -> PayoutRunSummary:
        """Batch run over every ACTIVE companion with an active payout account."""
        async with self._session_factory() as session:
            companion_ids = (
                await session.execute(
                    select(Companion.id)
                    .where(
                        Companion.status == CompanionStatus.ACTIVE.value,
                        Companion.stripe_account_id.is_not(None),
                        Companion.stripe_account_status == "active",
                    )
                    .order_by(Companion.created_at, Companion.id)
                )
            ).scalars().all()

        return await self.run_payouts(list(companion_ids), period_start, period_end)

    async def list_payouts_for_companion(self, companion_id: uuid.UUID) -> list[Payout]:
        async with self._session_factory() as session:
            if await session.get(Companion, companion_id) is None:
                raise NotFoundError("Companion")
            payouts = (
                await session.execute(
                    select(Payout)
                    .where(Payout.companion_id == companion_id)
                    .order_by(Payout.period_end.desc(), Payout.created_at.desc())
                )
            ).scalars().all()
        return list(payouts)

    # ── Private helpers ──────────────────────────────────────────────────

    async def _link_visits(
        self,
        session: AsyncSession,
        payout: Payout,
        visit_ids: list[uuid.UUID],
        total_hours: float,
    ) -> None:
        result = await session.execute(
            update(Visit)
            .where(Visit.id.in_(visit_ids), Visit.payout_id.is_(None))
            .values(payout_id=payout.id, billed_hours=total_hours)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != len(visit_ids):
            raise InvalidStateError(
                "Some visits were claimed by another payout run; nothing was billed"
            )

    async def _mark_failed(self, payout_id: uuid.UUID, reason: str) -> None:
        """Record a failed transfer in a session of its own."""
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(Payout)
                    .where(Payout.id == payout_id)
                    .values(status=PayoutStatus.FAILED.value, failure_reason=reason)
                    .execution_options(synchronize_session=False)
                )

    async def _transfer(self, payout: Payout, destination: str) -> str | None:
        if payout.net_amount_cents <= 0:
            return None
        return await self.transfer_service.create_transfer(
            amount_cents=payout.net_amount_cents,
            destination=destination,
            payout_id=payout.id,
            companion_id=payout.companion_id,
            description=f"Juni payout {payout.period}",
        )
