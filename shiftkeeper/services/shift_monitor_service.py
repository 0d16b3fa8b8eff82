"""
Schicht-Monitor: erkennt Verspätung, frühes Ende, verpasste Schichten und zu
lange Pausen und erfasst sie als automatische Verstöße.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from shiftkeeper.core.config import settings
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.shift import Shift
from shiftkeeper.models.violation import Violation
from shiftkeeper.services import interval_store as store
from shiftkeeper.services.rating_service import RatingService
from shiftkeeper.utils.timeutils import company_zone, ensure_utc, local_date, local_day_bounds, utcnow

if TYPE_CHECKING:
    from shiftkeeper.models.company import Company
    from shiftkeeper.models.shift import WorkInterval, BreakInterval

logger = logging.getLogger(__name__)

# Erkennungstyp → Regel-Code
RULE_CODES = {
    "late_start": "late",
    "early_end": "early_end",
    "missed_shift": "missed_shift",
    "long_break": "long_break",
    "no_break_end": "no_break_end",
}


@dataclass(frozen=True)
class Thresholds:
    late: int = 15
    early_end: int = 15
    long_break: int = 90
    missed_shift: int = 60

    @classmethod
    def from_settings(cls) -> "Thresholds":
        return cls(
            late=settings.MONITOR_LATE_THRESHOLD_MINUTES,
            early_end=settings.MONITOR_EARLY_END_THRESHOLD_MINUTES,
            long_break=settings.MONITOR_LONG_BREAK_THRESHOLD_MINUTES,
            missed_shift=settings.MONITOR_MISSED_SHIFT_THRESHOLD_MINUTES,
        )


@dataclass
class Detection:
    type: str
    employee_id: uuid.UUID
    shift_id: uuid.UUID
    minutes: int
    severity: int  # 1 = niedrig, 2 = mittel, 3 = hoch


@dataclass
class MonitorResult:
    checked: int = 0
    detected: int = 0
    created: int = 0
    detections: list[Detection] = field(default_factory=list)


def _minutes(a: datetime, b: datetime) -> float:
    return (ensure_utc(b) - ensure_utc(a)).total_seconds() / 60


def detect_shift_violations(
    shift: "Shift",
    work_intervals: list["WorkInterval"],
    break_intervals: list["BreakInterval"],
    now: datetime,
    thresholds: Thresholds,
) -> list[Detection]:
    """Pure check of one shift against the thresholds (intervals ordered by start)."""
    found: list[Detection] = []

    def add(kind: str, minutes: float, severity: int) -> None:
        found.append(Detection(kind, shift.employee_id, shift.id, int(minutes), severity))

    if shift.status == "scheduled":
        late_by = _minutes(shift.planned_start_at, now)
        if late_by > thresholds.missed_shift:
            add("missed_shift", late_by, 3)
    elif work_intervals:
        late_by = _minutes(shift.planned_start_at, work_intervals[0].start_at)
        if late_by > thresholds.late:
            add("late_start", late_by, 2 if late_by > 30 else 1)

    if shift.status == "completed" and work_intervals and work_intervals[-1].end_at is not None:
        early_by = _minutes(work_intervals[-1].end_at, shift.planned_end_at)
        if early_by > thresholds.early_end:
            add("early_end", early_by, 2 if early_by > 30 else 1)

    for brk in break_intervals:
        if brk.end_at is not None:
            duration = _minutes(brk.start_at, brk.end_at)
            if duration > thresholds.long_break:
                add("long_break", duration, 3 if duration > 180 else 2)
        else:
            duration = _minutes(brk.start_at, now)
            if duration > thresholds.long_break:
                add("no_break_end", duration, 3)

    return found


class ShiftMonitorService:

    def __init__(self, db: AsyncSession, thresholds: Thresholds | None = None):
        self.db = db
        self.thresholds = thresholds or Thresholds.from_settings()

    async def _shifts_to_check(self, company: "Company", now: datetime) -> list[Shift]:
        tz = company_zone(company)
        day_start, day_end = local_day_bounds(local_date(now, tz), tz)
        result = await self.db.execute(
            select(Shift)
            .join(Employee, Employee.id == Shift.employee_id)
            .where(
                Employee.company_id == company.id,
                or_(
                    Shift.status == "active",
                    (Shift.planned_start_at >= day_start) & (Shift.planned_start_at < day_end),
                ),
            )
            .order_by(Shift.planned_start_at)
        )
        return list(result.scalars().all())

    async def _already_recorded(self, shift_id: uuid.UUID, rule_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(Violation.id).where(Violation.shift_id == shift_id, Violation.rule_id == rule_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def run(self, company: "Company", now: datetime | None = None) -> MonitorResult:
        now = now or utcnow()
        outcome = MonitorResult()
        rating = RatingService(self.db)

        for shift in await self._shifts_to_check(company, now):
            outcome.checked += 1
            work = await store.list_work_intervals(self.db, shift.id)
            breaks = await store.list_break_intervals(self.db, shift.id)
            outcome.detections.extend(detect_shift_violations(shift, work, breaks, now, self.thresholds))

        outcome.detected = len(outcome.detections)

        try:
            for detection in outcome.detections:
                rule = await rating.active_rule_by_code(company.id, RULE_CODES[detection.type])
                if rule is None or not rule.auto_detectable:
                    logger.debug("No active auto rule for %s in company %s", detection.type, company.id)
                    continue
                if await self._already_recorded(detection.shift_id, rule.id):
                    continue
                await rating.add_violation(
                    employee_id=detection.employee_id,
                    company_id=company.id,
                    rule_id=rule.id,
                    source="auto",
                    reason=f"Auto-detected: {detection.type}",
                    shift_id=detection.shift_id,
                    commit=False,
                )
                outcome.created += 1
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Shift monitor for company %s: %d shifts checked, %d detected, %d violations created",
            company.id, outcome.checked, outcome.detected, outcome.created,
        )
        return outcome
