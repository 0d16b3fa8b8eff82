from shiftkeeper.schemas.auth import Token, LoginRequest, RefreshRequest, UserOut
from shiftkeeper.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeOut
from shiftkeeper.schemas.schedule import (
    ScheduleTemplateCreate, ScheduleTemplateUpdate, ScheduleTemplateOut, ScheduleAssign, EmployeeScheduleOut,
)
from shiftkeeper.schemas.shift import (
    TelegramAction, EmployeeStatusOut, ShiftOut, WorkIntervalOut, BreakIntervalOut,
    GenerateShiftsRequest, GenerateShiftsOut, GenerationStats,
)
from shiftkeeper.schemas.violation import ViolationRuleCreate, ViolationRuleUpdate, ViolationRuleOut, ViolationCreate, ViolationOut
from shiftkeeper.schemas.rating import RatingAdjustRequest, RatingOut, PeriodOut

__all__ = [
    "Token", "LoginRequest", "RefreshRequest", "UserOut",
    "EmployeeCreate", "EmployeeUpdate", "EmployeeOut",
    "ScheduleTemplateCreate", "ScheduleTemplateUpdate", "ScheduleTemplateOut", "ScheduleAssign", "EmployeeScheduleOut",
    "TelegramAction", "EmployeeStatusOut", "ShiftOut", "WorkIntervalOut", "BreakIntervalOut",
    "GenerateShiftsRequest", "GenerateShiftsOut", "GenerationStats",
    "ViolationRuleCreate", "ViolationRuleUpdate", "ViolationRuleOut", "ViolationCreate", "ViolationOut",
    "RatingAdjustRequest", "RatingOut", "PeriodOut",
]
