"""
Dienstplan-Zuweisungen: welcher Schichtplan gilt für welchen Mitarbeiter wann.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftkeeper.core.errors import ValidationFailed
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.schedule import EmployeeSchedule, ScheduleTemplate
from shiftkeeper.services.audit_service import write_audit

logger = logging.getLogger(__name__)


def windows_overlap(
    a_from: date, a_to: date | None, b_from: date, b_to: date | None
) -> bool:
    """Closed date windows; ``None`` as end means open-ended."""
    a_ends_before_b = a_to is not None and a_to < b_from
    b_ends_before_a = b_to is not None and b_to < a_from
    return not (a_ends_before_b or b_ends_before_a)


async def list_assignments(db: AsyncSession, employee_id: uuid.UUID) -> list[EmployeeSchedule]:
    result = await db.execute(
        select(EmployeeSchedule)
        .where(EmployeeSchedule.employee_id == employee_id)
        .order_by(EmployeeSchedule.valid_from)
    )
    return list(result.scalars().all())


def resolve_assignment(assignments: list[EmployeeSchedule], day: date) -> EmployeeSchedule | None:
    """The assignment valid on ``day`` (latest valid_from wins)."""
    valid = [a for a in assignments if a.is_valid_on(day)]
    if not valid:
        return None
    return max(valid, key=lambda a: a.valid_from)


async def assign_template(
    db: AsyncSession,
    template: ScheduleTemplate,
    employee: Employee,
    valid_from: date,
    valid_to: date | None,
    actor: str = "system",
) -> EmployeeSchedule:
    """
    Weist einen Schichtplan zu. Überlappende Gültigkeitszeiträume desselben
    Mitarbeiters werden abgelehnt, damit an jedem Tag höchstens eine Zuweisung gilt.
    """
    if valid_to is not None and valid_to < valid_from:
        raise ValidationFailed("valid_to must not be before valid_from")

    for existing in await list_assignments(db, employee.id):
        if windows_overlap(existing.valid_from, existing.valid_to, valid_from, valid_to):
            raise ValidationFailed(
                f"Assignment overlaps existing assignment from {existing.valid_from.isoformat()}"
            )

    assignment = EmployeeSchedule(
        id=uuid.uuid4(),
        employee_id=employee.id,
        template_id=template.id,
        valid_from=valid_from,
        valid_to=valid_to,
    )
    db.add(assignment)
    write_audit(
        db,
        company_id=employee.company_id,
        actor=actor,
        action="assign",
        entity_type="employee_schedule",
        entity_id=assignment.id,
        payload={"template_id": str(template.id), "employee_id": str(employee.id),
                 "valid_from": valid_from.isoformat(),
                 "valid_to": valid_to.isoformat() if valid_to else None},
    )
    await db.commit()
    await db.refresh(assignment)

    logger.info("Schedule %s assigned to employee %s from %s", template.id, employee.id, valid_from)
    return assignment
