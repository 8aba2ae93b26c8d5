"""
Juni — Visit model.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType
from app.models.enums import VisitStatus, VisitType


class Visit(Base):
    __tablename__ = "visits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    senior_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("seniors.id", ondelete="CASCADE"), index=True, nullable=False
    )
    companion_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_min: Mapped[int] = mapped_column(Integer, nullable=False, comment="Planned length")
    visit_type: Mapped[str] = mapped_column(
        String, nullable=False, default=VisitType.REGULAR.value
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=VisitStatus.SCHEDULED.value
    )

    # ── Check-in / check-out ───────────────────────────────────────
    check_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_in_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_in_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mood: Mapped[str | None] = mapped_column(String, nullable=True)
    activities: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Cancellation ───────────────────────────────────────────────
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String, nullable=True)

    # ── Billing ────────────────────────────────────────────────────
    payout_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("payouts.id", ondelete="SET NULL"), index=True, nullable=True
    )
    billed_hours: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Visit {self.id} status={self.status} at={self.scheduled_at}>"
