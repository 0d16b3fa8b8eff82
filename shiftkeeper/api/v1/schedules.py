import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from shiftkeeper.api.deps import DB, ManagerOrAdmin
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.schedule import ScheduleTemplate
from shiftkeeper.schemas.schedule import (
    ScheduleTemplateCreate, ScheduleTemplateUpdate, ScheduleTemplateOut, ScheduleAssign, EmployeeScheduleOut,
)
from shiftkeeper.services import schedule_service
from shiftkeeper.services.audit_service import write_audit

router = APIRouter(prefix="/schedules", tags=["schedules"])


async def _get_template(template_id: uuid.UUID, current_user, db) -> ScheduleTemplate:
    template = await db.get(ScheduleTemplate, template_id)
    if not template or template.company_id != current_user.company_id:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return template


@router.get("", response_model=list[ScheduleTemplateOut])
async def list_templates(current_user: ManagerOrAdmin, db: DB):
    result = await db.execute(
        select(ScheduleTemplate)
        .where(ScheduleTemplate.company_id == current_user.company_id)
        .order_by(ScheduleTemplate.name)
    )
    return result.scalars().all()


@router.post("", response_model=ScheduleTemplateOut, status_code=status.HTTP_201_CREATED)
async def create_template(payload: ScheduleTemplateCreate, current_user: ManagerOrAdmin, db: DB):
    template = ScheduleTemplate(company_id=current_user.company_id, **payload.model_dump())
    db.add(template)
    await db.flush()
    write_audit(db, company_id=current_user.company_id, actor=str(current_user.id), action="create",
                entity_type="schedule_template", entity_id=template.id, payload={"name": template.name})
    await db.commit()
    await db.refresh(template)
    return template


@router.put("/{template_id}", response_model=ScheduleTemplateOut)
async def update_template(
    template_id: uuid.UUID, payload: ScheduleTemplateUpdate, current_user: ManagerOrAdmin, db: DB
):
    """Änderungen wirken nur auf künftig generierte Schichten."""
    template = await _get_template(template_id, current_user, db)
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(template, field, value)
    write_audit(db, company_id=template.company_id, actor=str(current_user.id), action="update",
                entity_type="schedule_template", entity_id=template.id,
                payload={k: str(v) if not isinstance(v, list) else v for k, v in changes.items()})
    await db.commit()
    await db.refresh(template)
    return template


@router.post("/{template_id}/assign", response_model=EmployeeScheduleOut, status_code=status.HTTP_201_CREATED)
async def assign_template(template_id: uuid.UUID, payload: ScheduleAssign, current_user: ManagerOrAdmin, db: DB):
    template = await _get_template(template_id, current_user, db)
    employee = await db.get(Employee, payload.employee_id)
    if not employee or employee.company_id != current_user.company_id:
        raise HTTPException(status_code=404, detail="Employee not found")
    return await schedule_service.assign_template(
        db, template, employee, payload.valid_from, payload.valid_to, actor=str(current_user.id)
    )


@router.get("/employee/{employee_id}", response_model=list[EmployeeScheduleOut])
async def list_employee_schedules(employee_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    employee = await db.get(Employee, employee_id)
    if not employee or employee.company_id != current_user.company_id:
        raise HTTPException(status_code=404, detail="Employee not found")
    return await schedule_service.list_assignments(db, employee.id)
