import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from shiftkeeper.api.deps import DB, ManagerOrAdmin
from shiftkeeper.models.employee import Employee
from shiftkeeper.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeOut
from shiftkeeper.services.audit_service import write_audit

router = APIRouter(prefix="/employees", tags=["employees"])


async def _get_company_employee(employee_id: uuid.UUID, current_user, db) -> Employee:
    result = await db.execute(
        select(Employee).where(
            Employee.id == employee_id,
            Employee.company_id == current_user.company_id,
        )
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


async def _check_telegram_id_free(telegram_user_id: int | None, db, exclude_id: uuid.UUID | None = None) -> None:
    if telegram_user_id is None:
        return
    result = await db.execute(select(Employee).where(Employee.telegram_user_id == telegram_user_id))
    other = result.scalar_one_or_none()
    if other is not None and other.id != exclude_id:
        raise HTTPException(status_code=400, detail="Telegram user is already linked to another employee")


@router.get("", response_model=list[EmployeeOut])
async def list_employees(current_user: ManagerOrAdmin, db: DB, active_only: bool = True):
    query = select(Employee).where(Employee.company_id == current_user.company_id)
    if active_only:
        query = query.where(Employee.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Employee.full_name))
    return result.scalars().all()


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate, current_user: ManagerOrAdmin, db: DB):
    await _check_telegram_id_free(payload.telegram_user_id, db)
    employee = Employee(company_id=current_user.company_id, **payload.model_dump())
    db.add(employee)
    await db.flush()
    write_audit(db, company_id=current_user.company_id, actor=str(current_user.id), action="create",
                entity_type="employee", entity_id=employee.id, payload={"full_name": employee.full_name})
    await db.commit()
    await db.refresh(employee)
    return employee


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    return await _get_company_employee(employee_id, current_user, db)


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(employee_id: uuid.UUID, payload: EmployeeUpdate, current_user: ManagerOrAdmin, db: DB):
    employee = await _get_company_employee(employee_id, current_user, db)
    changes = payload.model_dump(exclude_unset=True)
    if "telegram_user_id" in changes:
        await _check_telegram_id_free(changes["telegram_user_id"], db, exclude_id=employee.id)
    for field, value in changes.items():
        setattr(employee, field, value)
    write_audit(db, company_id=employee.company_id, actor=str(current_user.id), action="update",
                entity_type="employee", entity_id=employee.id, payload=changes)
    await db.commit()
    await db.refresh(employee)
    return employee
