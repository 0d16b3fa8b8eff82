"""
Persistence of shifts and their work/break intervals.

Only reads and single-row writes live here; the transition rules are in
``attendance_service``. Nothing in this module commits.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftkeeper.models.employee import Employee
from shiftkeeper.models.shift import Shift, WorkInterval, BreakInterval
from shiftkeeper.utils.timeutils import ensure_utc


async def get_employee_by_telegram_id(db: AsyncSession, telegram_id: int) -> Employee | None:
    result = await db.execute(select(Employee).where(Employee.telegram_user_id == telegram_id))
    return result.scalar_one_or_none()


async def lock_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee | None:
    """SELECT … FOR UPDATE on the employee row (ignored by SQLite)."""
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def find_shift_in_window(
    db: AsyncSession,
    employee_id: uuid.UUID,
    window_start: datetime,
    window_end: datetime,
    status: str,
) -> Shift | None:
    """First shift with ``status`` whose planned start lies in [window_start, window_end)."""
    result = await db.execute(
        select(Shift)
        .where(
            Shift.employee_id == employee_id,
            Shift.status == status,
            Shift.planned_start_at >= window_start,
            Shift.planned_start_at < window_end,
        )
        .order_by(Shift.planned_start_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def find_active_shift(
    db: AsyncSession,
    employee_id: uuid.UUID,
    day_start: datetime,
    day_end: datetime,
) -> Shift | None:
    """
    Active shift planned for today; otherwise an active shift left over from an
    earlier day (overnight shift or never ended).
    """
    shift = await find_shift_in_window(db, employee_id, day_start, day_end, "active")
    if shift is not None:
        return shift
    result = await db.execute(
        select(Shift)
        .where(
            Shift.employee_id == employee_id,
            Shift.status == "active",
            Shift.planned_start_at < day_start,
        )
        .order_by(Shift.planned_start_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_work_intervals(db: AsyncSession, shift_id: uuid.UUID) -> list[WorkInterval]:
    result = await db.execute(
        select(WorkInterval).where(WorkInterval.shift_id == shift_id).order_by(WorkInterval.start_at)
    )
    return list(result.scalars().all())


async def list_break_intervals(db: AsyncSession, shift_id: uuid.UUID) -> list[BreakInterval]:
    result = await db.execute(
        select(BreakInterval).where(BreakInterval.shift_id == shift_id).order_by(BreakInterval.start_at)
    )
    return list(result.scalars().all())


async def get_open_work_interval(db: AsyncSession, shift_id: uuid.UUID) -> WorkInterval | None:
    result = await db.execute(
        select(WorkInterval).where(WorkInterval.shift_id == shift_id, WorkInterval.end_at.is_(None))
    )
    return result.scalars().first()


async def get_open_break_interval(db: AsyncSession, shift_id: uuid.UUID) -> BreakInterval | None:
    result = await db.execute(
        select(BreakInterval).where(BreakInterval.shift_id == shift_id, BreakInterval.end_at.is_(None))
    )
    return result.scalars().first()


def open_work_interval(db: AsyncSession, shift_id: uuid.UUID, at: datetime, source: str = "webapp") -> WorkInterval:
    interval = WorkInterval(id=uuid.uuid4(), shift_id=shift_id, start_at=at, end_at=None, source=source)
    db.add(interval)
    return interval


def open_break_interval(
    db: AsyncSession,
    shift_id: uuid.UUID,
    at: datetime,
    source: str = "webapp",
    kind: str = "lunch",
) -> BreakInterval:
    interval = BreakInterval(
        id=uuid.uuid4(), shift_id=shift_id, start_at=at, end_at=None, kind=kind, source=source
    )
    db.add(interval)
    return interval


def close_interval(interval: WorkInterval | BreakInterval, at: datetime) -> None:
    # Uhrzeitsprünge dürfen keine negativen Intervalle erzeugen
    start = ensure_utc(interval.start_at)
    interval.end_at = at if at >= start else start


async def list_planned_starts(
    db: AsyncSession,
    employee_id: uuid.UUID,
    window_start: datetime,
    window_end: datetime,
) -> list[datetime]:
    """Planned starts of all shifts (any status) of one employee within a UTC window."""
    result = await db.execute(
        select(Shift.planned_start_at).where(
            Shift.employee_id == employee_id,
            Shift.planned_start_at >= window_start,
            Shift.planned_start_at < window_end,
        )
    )
    return [ensure_utc(v) for v in result.scalars().all()]
