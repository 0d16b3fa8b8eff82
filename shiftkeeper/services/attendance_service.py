"""
Attendance-Zustandsautomat: Schichtbeginn, Pause, Pausenende, Schichtende.

Der Status eines Mitarbeiters wird nie gespeichert, sondern bei jedem Aufruf
aus den offenen Arbeits-/Pausenintervallen der aktiven Schicht abgeleitet.
Jede Transition läuft unter dem Mitarbeiter-Lock und committet selbst, damit
der Lock bis zum Commit gehalten wird.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from shiftkeeper.core.errors import NotFound, StateConflict
from shiftkeeper.core.locks import employee_lock
from shiftkeeper.models.company import Company
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.shift import Shift, WorkInterval, BreakInterval
from shiftkeeper.services import interval_store as store
from shiftkeeper.services.audit_service import write_audit, employee_actor
from shiftkeeper.utils.timeutils import (
    company_zone, end_of_local_day, local_date, local_day_bounds, utcnow,
)

logger = logging.getLogger(__name__)

OFF_WORK = "off_work"
WORKING = "working"
ON_BREAK = "on_break"
UNKNOWN = "unknown"


def derive_status(
    active_shift: Shift | None,
    work_intervals: Iterable[WorkInterval],
    break_intervals: Iterable[BreakInterval],
) -> str:
    if active_shift is None:
        return OFF_WORK
    if any(b.end_at is None for b in break_intervals):
        return ON_BREAK
    if any(w.end_at is None for w in work_intervals):
        return WORKING
    # aktive Schicht ohne offenes Intervall: Datenintegritätsproblem
    return UNKNOWN


@dataclass
class AttendanceSnapshot:
    employee: Employee
    active_shift: Shift | None
    work_intervals: list[WorkInterval] = field(default_factory=list)
    break_intervals: list[BreakInterval] = field(default_factory=list)
    status: str = OFF_WORK


class AttendanceService:

    def __init__(self, db: AsyncSession, source: str = "webapp"):
        self.db = db
        self.source = source

    # ── Lookup ───────────────────────────────────────────────────────────────

    async def get_employee(self, telegram_id: int) -> Employee:
        employee = await store.get_employee_by_telegram_id(self.db, telegram_id)
        if employee is None or not employee.is_active:
            raise NotFound("Employee")
        return employee

    async def _today_window(self, employee: Employee, now: datetime) -> tuple[datetime, datetime]:
        company = await self.db.get(Company, employee.company_id)
        tz = company_zone(company)
        return local_day_bounds(local_date(now, tz), tz)

    async def get_snapshot(self, telegram_id: int, now: datetime | None = None) -> AttendanceSnapshot:
        now = now or utcnow()
        employee = await self.get_employee(telegram_id)
        day_start, day_end = await self._today_window(employee, now)

        shift = await store.find_active_shift(self.db, employee.id, day_start, day_end)
        if shift is None:
            return AttendanceSnapshot(employee=employee, active_shift=None)

        work = await store.list_work_intervals(self.db, shift.id)
        breaks = await store.list_break_intervals(self.db, shift.id)
        return AttendanceSnapshot(
            employee=employee,
            active_shift=shift,
            work_intervals=work,
            break_intervals=breaks,
            status=derive_status(shift, work, breaks),
        )

    # ── Transitions ──────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _transition(self, employee: Employee) -> AsyncIterator[None]:
        async with employee_lock(employee.id):
            try:
                await store.lock_employee(self.db, employee.id)
                yield
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

    def _audit(self, employee: Employee, action: str, entity_type: str, entity_id: uuid.UUID, **payload) -> None:
        write_audit(
            self.db,
            company_id=employee.company_id,
            actor=employee_actor(employee.id),
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            payload={"source": self.source, **payload},
        )

    async def start_shift(
        self, telegram_id: int, now: datetime | None = None
    ) -> tuple[Shift, WorkInterval]:
        now = now or utcnow()
        employee = await self.get_employee(telegram_id)

        async with self._transition(employee):
            company = await self.db.get(Company, employee.company_id)
            tz = company_zone(company)
            day_start, day_end = local_day_bounds(local_date(now, tz), tz)

            if await store.find_active_shift(self.db, employee.id, day_start, day_end):
                raise StateConflict("Shift already active")

            shift = await store.find_shift_in_window(self.db, employee.id, day_start, day_end, "scheduled")
            if shift is not None:
                shift.status = "active"
                shift.actual_start_at = now
            else:
                shift = Shift(
                    id=uuid.uuid4(),
                    employee_id=employee.id,
                    template_id=None,
                    planned_start_at=now,
                    planned_end_at=max(end_of_local_day(now, tz), now),
                    actual_start_at=now,
                    actual_end_at=None,
                    status="active",
                )
                self.db.add(shift)

            work = store.open_work_interval(self.db, shift.id, now, self.source)
            self._audit(employee, "shift_start", "shift", shift.id, work_interval_id=str(work.id))

        logger.info("Shift %s started for employee %s", shift.id, employee.id)
        return shift, work

    async def start_break(self, telegram_id: int, now: datetime | None = None) -> BreakInterval:
        now = now or utcnow()
        employee = await self.get_employee(telegram_id)

        async with self._transition(employee):
            day_start, day_end = await self._today_window(employee, now)
            shift = await store.find_active_shift(self.db, employee.id, day_start, day_end)
            if shift is None:
                raise StateConflict("No active shift")
            if await store.get_open_break_interval(self.db, shift.id):
                raise StateConflict("Break already active")

            work = await store.get_open_work_interval(self.db, shift.id)
            if work is not None:
                store.close_interval(work, now)
            brk = store.open_break_interval(self.db, shift.id, now, self.source)
            self._audit(employee, "break_start", "shift", shift.id, break_interval_id=str(brk.id))

        logger.info("Break started on shift %s (employee %s)", shift.id, employee.id)
        return brk

    async def end_break(self, telegram_id: int, now: datetime | None = None) -> WorkInterval:
        now = now or utcnow()
        employee = await self.get_employee(telegram_id)

        async with self._transition(employee):
            day_start, day_end = await self._today_window(employee, now)
            shift = await store.find_active_shift(self.db, employee.id, day_start, day_end)
            if shift is None:
                raise StateConflict("No active shift")
            brk = await store.get_open_break_interval(self.db, shift.id)
            if brk is None:
                raise StateConflict("No active break")

            store.close_interval(brk, now)
            work = store.open_work_interval(self.db, shift.id, now, self.source)
            self._audit(employee, "break_end", "shift", shift.id, work_interval_id=str(work.id))

        logger.info("Break ended on shift %s (employee %s)", shift.id, employee.id)
        return work

    async def end_shift(self, telegram_id: int, now: datetime | None = None) -> Shift:
        now = now or utcnow()
        employee = await self.get_employee(telegram_id)

        async with self._transition(employee):
            day_start, day_end = await self._today_window(employee, now)
            shift = await store.find_active_shift(self.db, employee.id, day_start, day_end)
            if shift is None:
                raise StateConflict("No active shift")

            work = await store.get_open_work_interval(self.db, shift.id)
            if work is not None:
                store.close_interval(work, now)
            brk = await store.get_open_break_interval(self.db, shift.id)
            if brk is not None:
                store.close_interval(brk, now)

            shift.actual_end_at = now
            shift.status = "completed"
            self._audit(employee, "shift_end", "shift", shift.id)

        logger.info("Shift %s completed for employee %s", shift.id, employee.id)
        return shift
