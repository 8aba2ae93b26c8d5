"""
Juni — Family and Senior models.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType


class Family(Base):
    __tablename__ = "families"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, index=True, nullable=False,
        comment="Subject id issued by the identity layer",
    )
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    seniors: Mapped[list["Senior"]] = relationship(
        "Senior", back_populates="family", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Family {self.first_name} {self.last_name} id={self.id}>"


class Senior(Base):
    __tablename__ = "seniors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("families.id", ondelete="CASCADE"), index=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    nickname: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[str | None] = mapped_column(
        String, nullable=True, comment='Free text, e.g. "Austin, TX"'
    )
    interests: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    companion_qualities: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    social_style: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    personality: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="Big Five trait -> 0-100 score"
    )
    conditions: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    companion_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("companions.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    family: Mapped["Family"] = relationship("Family", back_populates="seniors")

    def __repr__(self) -> str:
        return f"<Senior {self.first_name!r} id={self.id}>"
