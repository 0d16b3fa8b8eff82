import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from shiftkeeper.api.deps import DB, ManagerOrAdmin, ensure_same_company
from shiftkeeper.schemas.violation import ViolationCreate, ViolationOut
from shiftkeeper.services.rating_service import RatingService

router = APIRouter(prefix="/violations", tags=["violations"])


@router.post("", response_model=ViolationOut, status_code=status.HTTP_201_CREATED)
async def create_violation(payload: ViolationCreate, current_user: ManagerOrAdmin, db: DB):
    """Erfasst einen Verstoß; die Strafe wird aus der Regel übernommen."""
    ensure_same_company(current_user, payload.company_id)
    return await RatingService(db).add_violation(
        employee_id=payload.employee_id,
        company_id=payload.company_id,
        rule_id=payload.rule_id,
        source=payload.source,
        reason=payload.reason,
        created_by=current_user.id,
    )


@router.get("", response_model=list[ViolationOut])
async def list_violations(
    current_user: ManagerOrAdmin,
    db: DB,
    employee_id: uuid.UUID | None = None,
    period_start: date | None = Query(default=None, alias="periodStart"),
    period_end: date | None = Query(default=None, alias="periodEnd"),
):
    return await RatingService(db).list_violations(
        current_user.company_id, employee_id, period_start, period_end
    )
