import uuid
from datetime import date as Date, datetime as DateTime
from typing import Optional

from pydantic import field_validator

from shiftkeeper.schemas.common import CamelModel
from shiftkeeper.utils.timeutils import ensure_utc


# ── WebApp ────────────────────────────────────────────────────────────────────

class TelegramAction(CamelModel):
    telegram_id: int


class EmployeeBrief(CamelModel):
    id: uuid.UUID
    company_id: uuid.UUID
    full_name: str
    position: Optional[str]
    telegram_user_id: Optional[int]


class ShiftOut(CamelModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    template_id: Optional[uuid.UUID]
    planned_start_at: DateTime
    planned_end_at: DateTime
    actual_start_at: Optional[DateTime]
    actual_end_at: Optional[DateTime]
    status: str

    @field_validator("planned_start_at", "planned_end_at", "actual_start_at", "actual_end_at")
    @classmethod
    def as_utc(cls, v: Optional[DateTime]) -> Optional[DateTime]:
        return ensure_utc(v)


class WorkIntervalOut(CamelModel):
    id: uuid.UUID
    shift_id: uuid.UUID
    start_at: DateTime
    end_at: Optional[DateTime]
    source: str

    @field_validator("start_at", "end_at")
    @classmethod
    def as_utc(cls, v: Optional[DateTime]) -> Optional[DateTime]:
        return ensure_utc(v)


class BreakIntervalOut(CamelModel):
    id: uuid.UUID
    shift_id: uuid.UUID
    start_at: DateTime
    end_at: Optional[DateTime]
    kind: str
    source: str

    @field_validator("start_at", "end_at")
    @classmethod
    def as_utc(cls, v: Optional[DateTime]) -> Optional[DateTime]:
        return ensure_utc(v)


class EmployeeStatusOut(CamelModel):
    employee: EmployeeBrief
    active_shift: Optional[ShiftOut]
    work_intervals: list[WorkIntervalOut]
    break_intervals: list[BreakIntervalOut]
    status: str  # off_work | working | on_break | unknown


class ShiftStartOut(CamelModel):
    success: bool = True
    shift: ShiftOut
    work_interval: WorkIntervalOut


class ShiftEndOut(CamelModel):
    success: bool = True
    shift: ShiftOut


class BreakStartOut(CamelModel):
    success: bool = True
    break_interval: BreakIntervalOut


class BreakEndOut(CamelModel):
    success: bool = True
    work_interval: WorkIntervalOut


# ── Generierung ───────────────────────────────────────────────────────────────

class GenerateShiftsRequest(CamelModel):
    start_date: Date
    end_date: Date
    employee_ids: Optional[list[uuid.UUID]] = None


class GenerationStats(CamelModel):
    created: int
    employees_without_schedule: int
    skipped_existing: int


class GenerateShiftsOut(CamelModel):
    shifts: list[ShiftOut]
    stats: GenerationStats


class GeneratePreviewOut(CamelModel):
    stats: GenerationStats


class MonitorOut(CamelModel):
    checked: int
    detected: int
    created: int
