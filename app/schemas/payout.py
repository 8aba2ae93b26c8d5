from pydantic import BaseModel, model_validator
from uuid import UUID
from datetime import datetime
from typing import Optional


class PayoutRunRequest(BaseModel):
    period_start: datetime
    period_end: datetime
    companion_ids: Optional[list[UUID]] = None

    @model_validator(mode="after")
    def _period_is_ordered(self) -> "PayoutRunRequest":
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PayoutRunResponse(BaseModel):
    processed: int
    succeeded: int
    failed: int
    failures: dict[str, str] = {}


class PayoutResponse(BaseModel):
    id: UUID
    companion_id: UUID
    period: str
    period_start: datetime
    period_end: datetime
    gross_amount_cents: int
    platform_fee_cents: int
    net_amount_cents: int
    status: str
    stripe_transfer_id: Optional[str] = None
    failure_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
