"""
Service for generating scheduled Shift records from employee schedule assignments.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiftkeeper.core.config import settings
from shiftkeeper.core.errors import ValidationFailed
from shiftkeeper.models.company import Company
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.schedule import EmployeeSchedule, ScheduleTemplate
from shiftkeeper.models.shift import Shift
from shiftkeeper.services import interval_store as store
from shiftkeeper.services.audit_service import write_audit
from shiftkeeper.services.schedule_service import resolve_assignment
from shiftkeeper.utils.timeutils import (
    combine_local, company_zone, local_date, local_range_bounds, weekday_number,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerationStats:
    created: int = 0
    employees_without_schedule: int = 0
    skipped_existing: int = 0


@dataclass
class GenerationResult:
    shifts: list[Shift] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)


def validate_range(start_date: date, end_date: date, max_days: int | None = None) -> None:
    """Raises ValidationFailed before anything is read or written."""
    max_days = settings.MAX_GENERATION_DAYS if max_days is None else max_days
    if end_date < start_date:
        raise ValidationFailed("endDate must not be before startDate")
    if (end_date - start_date).days > max_days:
        raise ValidationFailed(f"Date range must not exceed {max_days} days")


def planned_bounds(day: date, template: ScheduleTemplate, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = combine_local(day, template.shift_start, tz)
    end_day = day + timedelta(days=1) if template.is_overnight else day
    end = combine_local(end_day, template.shift_end, tz)
    return start, end


def plan_days(
    assignments: list[EmployeeSchedule],
    start_date: date,
    end_date: date,
) -> tuple[list[tuple[date, ScheduleTemplate]], bool]:
    """
    Workdays in [start_date, end_date] together with the template valid on each.
    Second value: whether any assignment was valid on any date of the range.
    """
    planned: list[tuple[date, ScheduleTemplate]] = []
    has_schedule = False
    current = start_date

    while current <= end_date:
        assignment = resolve_assignment(assignments, current)
        if assignment is not None:
            has_schedule = True
            template = assignment.template
            if weekday_number(current) in (template.workdays or []):
                planned.append((current, template))
        current += timedelta(days=1)

    return planned, has_schedule


class ShiftGeneratorService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _employees_in_scope(
        self, company_id: uuid.UUID, employee_ids: list[uuid.UUID] | None
    ) -> list[Employee]:
        query = select(Employee).where(Employee.company_id == company_id, Employee.is_active == True)  # noqa: E712
        if employee_ids is not None:
            # fremde IDs werden ignoriert
            query = query.where(Employee.id.in_(employee_ids))
        result = await self.db.execute(query.order_by(Employee.full_name))
        return list(result.scalars().all())

    async def _assignments_by_employee(
        self, employee_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[EmployeeSchedule]]:
        grouped: dict[uuid.UUID, list[EmployeeSchedule]] = {eid: [] for eid in employee_ids}
        if not employee_ids:
            return grouped
        result = await self.db.execute(
            select(EmployeeSchedule)
            .options(selectinload(EmployeeSchedule.template))
            .where(EmployeeSchedule.employee_id.in_(employee_ids))
        )
        for assignment in result.scalars().all():
            grouped[assignment.employee_id].append(assignment)
        return grouped

    async def _plan(
        self,
        company: Company,
        start_date: date,
        end_date: date,
        employee_ids: list[uuid.UUID] | None,
    ) -> tuple[list[Shift], GenerationStats]:
        validate_range(start_date, end_date)

        tz = company_zone(company)
        stats = GenerationStats()
        new_shifts: list[Shift] = []

        employees = await self._employees_in_scope(company.id, employee_ids)
        assignments = await self._assignments_by_employee([e.id for e in employees])
        window_start, window_end = local_range_bounds(start_date, end_date, tz)

        for employee in employees:
            planned, has_schedule = plan_days(assignments[employee.id], start_date, end_date)
            if not has_schedule:
                stats.employees_without_schedule += 1
                continue

            existing = {
                local_date(dt, tz)
                for dt in await store.list_planned_starts(self.db, employee.id, window_start, window_end)
            }
            for day, template in planned:
                if day in existing:
                    stats.skipped_existing += 1
                    continue
                planned_start, planned_end = planned_bounds(day, template, tz)
                new_shifts.append(Shift(
                    id=uuid.uuid4(),
                    employee_id=employee.id,
                    template_id=template.id,
                    planned_start_at=planned_start,
                    planned_end_at=planned_end,
                    actual_start_at=None,
                    actual_end_at=None,
                    status="scheduled",
                ))

        stats.created = len(new_shifts)
        return new_shifts, stats

    async def preview(
        self,
        company: Company,
        start_date: date,
        end_date: date,
        employee_ids: list[uuid.UUID] | None = None,
    ) -> GenerationStats:
        """Same algorithm as ``generate``, nothing is written."""
        _, stats = await self._plan(company, start_date, end_date, employee_ids)
        return stats

    async def generate(
        self,
        company: Company,
        start_date: date,
        end_date: date,
        employee_ids: list[uuid.UUID] | None = None,
        actor: str = "system",
    ) -> GenerationResult:
        """
        Creates the shifts and commits them together with one audit row.
        """
        new_shifts, stats = await self._plan(company, start_date, end_date, employee_ids)

        try:
            self.db.add_all(new_shifts)
            write_audit(
                self.db,
                company_id=company.id,
                actor=actor,
                action="generate",
                entity_type="shift",
                payload={
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "created": stats.created,
                    "employees_without_schedule": stats.employees_without_schedule,
                    "skipped_existing": stats.skipped_existing,
                },
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Generated %d shifts for company %s (%s..%s), %d without schedule, %d skipped",
            stats.created, company.id, start_date, end_date,
            stats.employees_without_schedule, stats.skipped_existing,
        )
        return GenerationResult(shifts=new_shifts, stats=stats)
