from shiftkeeper.models.company import Company
from shiftkeeper.models.user import User
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.schedule import ScheduleTemplate, EmployeeSchedule
from shiftkeeper.models.shift import Shift, WorkInterval, BreakInterval
from shiftkeeper.models.violation import ViolationRule, Violation, RatingAdjustment
from shiftkeeper.models.audit import AuditLog

__all__ = [
    "Company",
    "User",
    "Employee",
    "ScheduleTemplate",
    "EmployeeSchedule",
    "Shift",
    "WorkInterval",
    "BreakInterval",
    "ViolationRule",
    "Violation",
    "RatingAdjustment",
    "AuditLog",
]
