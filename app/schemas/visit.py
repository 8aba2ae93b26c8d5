from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

from app.models.enums import VisitType

Mood = Literal[
    "Joyful", "Warm", "Nostalgic", "Reflective",
    "Calm", "Energetic", "Tired", "Anxious",
]


class VisitRequest(BaseModel):
    scheduled_at: datetime
    duration_min: int = Field(ge=60, le=480)
    visit_type: VisitType = VisitType.REGULAR


class CheckInRequest(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class CheckInResponse(BaseModel):
    message: str = "Checked in successfully"
    check_in_at: datetime


class CheckOutRequest(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    mood: Mood
    activities: list[str] = Field(min_length=1, max_length=20)
    notes: str = Field(min_length=10, max_length=5000)


class CheckOutResponse(BaseModel):
    message: str = "Visit completed"
    actual_minutes: int


class CancelVisitRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class VisitResponse(BaseModel):
    id: UUID
    senior_id: UUID
    companion_id: UUID
    scheduled_at: datetime
    duration_min: int
    visit_type: str
    status: str
    check_in_at: Optional[datetime] = None
    check_out_at: Optional[datetime] = None
    actual_minutes: Optional[int] = None
    mood: Optional[str] = None
    activities: Optional[list[str]] = None
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    payout_id: Optional[UUID] = None
    billed_hours: Optional[float] = None

    model_config = {"from_attributes": True}
