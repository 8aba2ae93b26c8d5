"""
Juni — Match model (senior <-> companion proposal).
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType
from app.models.enums import MatchStatus


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("senior_id", "companion_id", name="uq_match_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    senior_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("seniors.id", ondelete="CASCADE"), index=True, nullable=False
    )
    companion_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companions.id", ondelete="CASCADE"), nullable=False
    )
    kindred_score: Mapped[int] = mapped_column(Integer, nullable=False)
    match_reasons: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list, comment="Ordered display reasons"
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=MatchStatus.PROPOSED.value
    )
    proposed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # ── Relationships ──────────────────────────────────────────────
    senior: Mapped["Senior"] = relationship("Senior", lazy="selectin")
    companion: Mapped["Companion"] = relationship("Companion", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<Match {self.senior_id} <-> {self.companion_id} "
            f"score={self.kindred_score} status={self.status}>"
        )
