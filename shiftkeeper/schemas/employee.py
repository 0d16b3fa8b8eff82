from pydantic import BaseModel, field_validator
import uuid
from datetime import datetime


class EmployeeOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    full_name: str
    position: str | None
    telegram_user_id: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EmployeeCreate(BaseModel):
    full_name: str
    position: str | None = None
    telegram_user_id: int | None = None


class EmployeeUpdate(BaseModel):
    full_name: str | None = None
    position: str | None = None
    telegram_user_id: int | None = None
    is_active: bool | None = None

    # position und telegram_user_id dürfen geleert werden, Name und Status nicht
    @field_validator("full_name", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v
