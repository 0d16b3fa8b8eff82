from pydantic import BaseModel
import uuid
from datetime import date
from typing import Optional

from shiftkeeper.schemas.common import CamelModel


class RatingAdjustRequest(CamelModel):
    delta: int
    period_start: date
    period_end: date
    reason: Optional[str] = None


class RatingOut(BaseModel):
    employee_id: uuid.UUID
    period_start: date
    period_end: date
    rating: int
    total_penalty: int
    total_adjustment: int
    violations_count: int
    band: str  # excellent | good | low | critical
    termination_risk: bool

    model_config = {"from_attributes": True}


class EmployeeRatingOut(RatingOut):
    full_name: str = ""


class PeriodOut(BaseModel):
    key: str
    label: str
    start: date
    end: date

    model_config = {"from_attributes": True}

