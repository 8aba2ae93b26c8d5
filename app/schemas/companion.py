from pydantic import BaseModel
from uuid import UUID

from app.models.enums import CompanionStatus


class CompanionStatusUpdate(BaseModel):
    status: CompanionStatus


class CompanionStatusResponse(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    status: CompanionStatus

    model_config = {"from_attributes": True}
