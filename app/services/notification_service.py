"""
Juni — Notification hooks

Fire-and-forget notifications raised on lifecycle transitions.  Delivery
(SMS, email) lives outside this service; the default implementation only
records the event in the structured log.  Callers go through
:func:`notify_safely` so a failing notifier never fails the operation that
triggered it.
"""

from __future__ import annotations

import uuid

import structlog

logger = structlog.get_logger("juni.notification_service")


class NotificationService:
    """Base notifier.  Override any hook to deliver real messages."""

    async def match_accepted(self, *, senior_id: uuid.UUID, companion_id: uuid.UUID) -> None:
        logger.info("notify_match_accepted", senior_id=str(senior_id), companion_id=str(companion_id))

    async def visit_checked_in(self, *, visit_id: uuid.UUID, companion_id: uuid.UUID) -> None:
        logger.info("notify_visit_checked_in", visit_id=str(visit_id), companion_id=str(companion_id))

    async def visit_checked_out(
        self, *, visit_id: uuid.UUID, companion_id: uuid.UUID, actual_minutes: int
    ) -> None:
        logger.info(
            "notify_visit_checked_out",
            visit_id=str(visit_id),
            companion_id=str(companion_id),
            actual_minutes=actual_minutes,
        )

    async def visit_requested(
        self, *, visit_id: uuid.UUID, senior_id: uuid.UUID, companion_id: uuid.UUID
    ) -> None:
        logger.info(
            "notify_visit_requested",
            visit_id=str(visit_id),
            senior_id=str(senior_id),
            companion_id=str(companion_id),
        )

    async def visit_cancelled(self, *, visit_id: uuid.UUID, reason: str | None) -> None:
        logger.info("notify_visit_cancelled", visit_id=str(visit_id), reason=reason)

    async def payout_paid(
        self, *, payout_id: uuid.UUID, companion_id: uuid.UUID, net_amount_cents: int
    ) -> None:
        logger.info(
            "notify_payout_paid",
            payout_id=str(payout_id),
            companion_id=str(companion_id),
            net_amount_cents=net_amount_cents,
        )


async def notify_safely(hook, **kwargs) -> None:
    """Await a notifier hook, logging (not raising) any failure."""
    try:
        await hook(**kwargs)
    except Exception:
        logger.exception("notification_failed", hook=getattr(hook, "__name__", str(hook)))
