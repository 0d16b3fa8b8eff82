import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from shiftkeeper.api.deps import DB, CompanyScope, ManagerOrAdmin
from shiftkeeper.models.company import Company
from shiftkeeper.schemas.rating import RatingAdjustRequest, RatingOut, EmployeeRatingOut, PeriodOut
from shiftkeeper.schemas.violation import ViolationRuleCreate, ViolationRuleUpdate, ViolationRuleOut
from shiftkeeper.services.rating_service import RatingService
from shiftkeeper.utils.periods import current_month, standard_periods
from shiftkeeper.utils.timeutils import company_zone, local_date, utcnow

router = APIRouter(prefix="/rating", tags=["rating"])


async def _resolve_period(db, company_id, period_start: date | None, period_end: date | None) -> tuple[date, date]:
    """Ohne Angabe: laufender Monat (in Firmenzeit)."""
    if period_start is not None and period_end is not None:
        return period_start, period_end
    company = await db.get(Company, company_id)
    month = current_month(local_date(utcnow(), company_zone(company)))
    return period_start or month.start, period_end or month.end


# ── Bewertungen ──────────────────────────────────────────────────────────────

@router.get("/periods", response_model=list[PeriodOut])
async def list_periods(current_user: ManagerOrAdmin, db: DB):
    company = await db.get(Company, current_user.company_id)
    return standard_periods(local_date(utcnow(), company_zone(company)))


@router.get("/employees/{employee_id}", response_model=RatingOut)
async def get_employee_rating(
    employee_id: uuid.UUID,
    current_user: ManagerOrAdmin,
    db: DB,
    period_start: date | None = Query(default=None, alias="periodStart"),
    period_end: date | None = Query(default=None, alias="periodEnd"),
):
    start, end = await _resolve_period(db, current_user.company_id, period_start, period_end)
    return await RatingService(db).compute_rating(employee_id, start, end, company_id=current_user.company_id)


@router.post("/employees/{employee_id}/adjust", response_model=RatingOut)
async def adjust_employee_rating(
    employee_id: uuid.UUID, payload: RatingAdjustRequest, current_user: ManagerOrAdmin, db: DB
):
    """Manuelle Anpassung (append-only); Begrenzung auf 0–100 erst beim Lesen."""
    return await RatingService(db).adjust_rating(
        employee_id,
        payload.delta,
        payload.period_start,
        payload.period_end,
        reason=payload.reason,
        created_by=current_user.id,
        company_id=current_user.company_id,
    )


@router.get("/companies/{company_id}/ratings", response_model=list[EmployeeRatingOut])
async def get_company_ratings(
    company: CompanyScope,
    db: DB,
    period_start: date | None = Query(default=None, alias="periodStart"),
    period_end: date | None = Query(default=None, alias="periodEnd"),
):
    start, end = await _resolve_period(db, company.id, period_start, period_end)
    return await RatingService(db).company_ratings(company.id, start, end)


# ── Regeln ───────────────────────────────────────────────────────────────────

@router.get("/companies/{company_id}/rules", response_model=list[ViolationRuleOut])
async def list_rules(company: CompanyScope, db: DB, include_inactive: bool = False):
    return await RatingService(db).list_rules(company.id, include_inactive=include_inactive)


@router.post("/companies/{company_id}/rules", response_model=ViolationRuleOut, status_code=status.HTTP_201_CREATED)
async def create_rule(payload: ViolationRuleCreate, company: CompanyScope, current_user: ManagerOrAdmin, db: DB):
    return await RatingService(db).create_rule(
        company.id,
        payload.code,
        payload.name,
        payload.penalty_percent,
        payload.auto_detectable,
        actor=str(current_user.id),
    )


@router.put("/rules/{rule_id}", response_model=ViolationRuleOut)
async def update_rule(rule_id: uuid.UUID, payload: ViolationRuleUpdate, current_user: ManagerOrAdmin, db: DB):
    service = RatingService(db)
    rule = await service.get_rule(rule_id, current_user.company_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    return await service.update_rule(rule, changes, actor=str(current_user.id))


@router.delete("/rules/{rule_id}", response_model=ViolationRuleOut)
async def deactivate_rule(rule_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    """Soft delete: die Regel wird deaktiviert, erfasste Verstöße bleiben."""
    service = RatingService(db)
    rule = await service.get_rule(rule_id, current_user.company_id)
    return await service.deactivate_rule(rule, actor=str(current_user.id))
