from pydantic import BaseModel, field_validator
import uuid
from datetime import date as Date, datetime as DateTime, time as Time
from typing import Optional


def _check_workdays(v: list[int]) -> list[int]:
    if not v:
        raise ValueError("workdays must not be empty")
    if any(d < 0 or d > 6 for d in v):
        raise ValueError("workdays must be between 0 (Sunday) and 6 (Saturday)")
    if len(set(v)) != len(v):
        raise ValueError("workdays must be unique")
    return sorted(v)


class ScheduleTemplateCreate(BaseModel):
    name: str
    shift_start: Time
    shift_end: Time
    workdays: list[int]  # 0=So ... 6=Sa

    @field_validator("workdays")
    @classmethod
    def validate_workdays(cls, v: list[int]) -> list[int]:
        return _check_workdays(v)


class ScheduleTemplateUpdate(BaseModel):
    name: Optional[str] = None
    shift_start: Optional[Time] = None
    shift_end: Optional[Time] = None
    workdays: Optional[list[int]] = None

    # Felder sind optional, aber nicht löschbar: explizites null → 422
    @field_validator("name", "shift_start", "shift_end")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("workdays")
    @classmethod
    def validate_workdays(cls, v: Optional[list[int]]) -> list[int]:
        if v is None:
            raise ValueError("workdays must not be null")
        return _check_workdays(v)


class ScheduleTemplateOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    shift_start: Time
    shift_end: Time
    workdays: list[int]
    created_at: DateTime

    model_config = {"from_attributes": True}


class ScheduleAssign(BaseModel):
    employee_id: uuid.UUID
    valid_from: Date
    valid_to: Optional[Date] = None


class EmployeeScheduleOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    template_id: uuid.UUID
    valid_from: Date
    valid_to: Optional[Date]
    created_at: DateTime

    model_config = {"from_attributes": True}
