"""
Juni — Companion (Fellow) model.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType
from app.models.enums import CompanionStatus


class Companion(Base):
    __tablename__ = "companions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, index=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    interests: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    availability: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="full-time / part-time / flexible / weekends"
    )
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, index=True, default=CompanionStatus.APPLIED.value
    )
    stripe_account_id: Mapped[str | None] = mapped_column(String, nullable=True)
    stripe_account_status: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="pending / active / restricted"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Companion {self.full_name!r} status={self.status}>"
