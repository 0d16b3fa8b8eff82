"""
Rating-Engine: Disziplinarbewertung aus Verstößen und manuellen Anpassungen.

Die Bewertung wird nie gespeichert. Sie ergibt sich bei jedem Lesen aus
100 − Σ Strafen + Σ Anpassungen im Zeitraum, begrenzt auf [0, 100].
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from shiftkeeper.core.errors import NotFound, ValidationFailed
from shiftkeeper.models.company import Company
from shiftkeeper.models.employee import Employee
from shiftkeeper.models.violation import ViolationRule, Violation, RatingAdjustment
from shiftkeeper.services.audit_service import write_audit
from shiftkeeper.utils.timeutils import company_zone, local_day_bounds, local_range_bounds

logger = logging.getLogger(__name__)

BASE_RATING = 100
EXCELLENT_FROM = 80
GOOD_FROM = 60
LOW_FROM = 40
MAX_ADJUSTMENT = 100


def clamp_rating(total_penalty: int, total_adjustment: int) -> int:
    return int(round(max(0, min(100, BASE_RATING - total_penalty + total_adjustment))))


def band_for(rating: int) -> str:
    if rating >= EXCELLENT_FROM:
        return "excellent"
    if rating >= GOOD_FROM:
        return "good"
    if rating >= LOW_FROM:
        return "low"
    return "critical"


@dataclass
class RatingView:
    employee_id: uuid.UUID
    period_start: date
    period_end: date
    rating: int
    total_penalty: int
    total_adjustment: int
    violations_count: int
    band: str
    termination_risk: bool
    full_name: str = ""

    @classmethod
    def build(
        cls,
        employee: Employee,
        period_start: date,
        period_end: date,
        total_penalty: int,
        total_adjustment: int,
        violations_count: int,
    ) -> "RatingView":
        rating = clamp_rating(total_penalty, total_adjustment)
        return cls(
            employee_id=employee.id,
            period_start=period_start,
            period_end=period_end,
            rating=rating,
            total_penalty=total_penalty,
            total_adjustment=total_adjustment,
            violations_count=violations_count,
            band=band_for(rating),
            # Geschäftsregel: 0 % bedeutet drohende Kündigung
            termination_risk=rating <= 0,
            full_name=employee.full_name,
        )


def _check_period(period_start: date, period_end: date) -> None:
    if period_end < period_start:
        raise ValidationFailed("periodEnd must not be before periodStart")


class RatingService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_employee(self, employee_id: uuid.UUID, company_id: uuid.UUID | None = None) -> Employee:
        employee = await self.db.get(Employee, employee_id)
        if employee is None or (company_id is not None and employee.company_id != company_id):
            raise NotFound("Employee")
        return employee

    # ── Lesen ────────────────────────────────────────────────────────────────

    async def compute_rating(
        self,
        employee_id: uuid.UUID,
        period_start: date,
        period_end: date,
        company_id: uuid.UUID | None = None,
    ) -> RatingView:
        _check_period(period_start, period_end)
        employee = await self._get_employee(employee_id, company_id)
        company = await self.db.get(Company, employee.company_id)
        window_start, window_end = local_range_bounds(period_start, period_end, company_zone(company))

        # Regeln, die später deaktiviert wurden, zählen weiter
        v_result = await self.db.execute(
            select(func.coalesce(func.sum(Violation.penalty), 0), func.count(Violation.id)).where(
                Violation.employee_id == employee.id,
                Violation.created_at >= window_start,
                Violation.created_at < window_end,
            )
        )
        total_penalty, violations_count = v_result.one()

        a_result = await self.db.execute(
            select(func.coalesce(func.sum(RatingAdjustment.delta), 0)).where(
                RatingAdjustment.employee_id == employee.id,
                RatingAdjustment.period_start >= period_start,
                RatingAdjustment.period_end <= period_end,
            )
        )
        total_adjustment = a_result.scalar_one()

        return RatingView.build(
            employee, period_start, period_end,
            int(total_penalty), int(total_adjustment), int(violations_count),
        )

    async def company_ratings(
        self, company_id: uuid.UUID, period_start: date, period_end: date
    ) -> list[RatingView]:
        _check_period(period_start, period_end)
        result = await self.db.execute(
            select(Employee)
            .where(Employee.company_id == company_id, Employee.is_active == True)  # noqa: E712
            .order_by(Employee.full_name)
        )
        return [
            await self.compute_rating(employee.id, period_start, period_end)
            for employee in result.scalars().all()
        ]

    async def list_violations(
        self,
        company_id: uuid.UUID,
        employee_id: uuid.UUID | None = None,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> list[Violation]:
        query = select(Violation).where(Violation.company_id == company_id)
        if employee_id is not None:
            query = query.where(Violation.employee_id == employee_id)
        if period_start is not None or period_end is not None:
            company = await self.db.get(Company, company_id)
            tz = company_zone(company)
            if period_start is not None:
                query = query.where(Violation.created_at >= local_day_bounds(period_start, tz)[0])
            if period_end is not None:
                query = query.where(Violation.created_at < local_day_bounds(period_end, tz)[1])
        result = await self.db.execute(query.order_by(Violation.created_at.desc()))
        return list(result.scalars().all())

    # ── Schreiben (append-only) ──────────────────────────────────────────────

    async def add_violation(
        self,
        employee_id: uuid.UUID,
        company_id: uuid.UUID,
        rule_id: uuid.UUID,
        source: str = "manual",
        reason: str | None = None,
        created_by: uuid.UUID | None = None,
        shift_id: uuid.UUID | None = None,
        commit: bool = True,
    ) -> Violation:
        employee = await self._get_employee(employee_id, company_id)

        rule = await self.db.get(ViolationRule, rule_id)
        if rule is None or rule.company_id != company_id or not rule.is_active:
            raise ValidationFailed("No active rule")
        if source == "auto" and not rule.auto_detectable:
            raise ValidationFailed("Rule is not auto-detectable")

        violation = Violation(
            id=uuid.uuid4(),
            company_id=company_id,
            employee_id=employee.id,
            rule_id=rule.id,
            shift_id=shift_id,
            source=source,
            reason=reason,
            penalty=rule.penalty_percent,
            created_by=created_by,
        )
        self.db.add(violation)
        write_audit(
            self.db,
            company_id=company_id,
            actor=str(created_by) if created_by else "system",
            action="create",
            entity_type="violation",
            entity_id=violation.id,
            payload={"employee_id": str(employee.id), "rule": rule.code, "penalty": rule.penalty_percent,
                     "source": source},
        )
        if commit:
            await self.db.commit()
            await self.db.refresh(violation)

        logger.info(
            "Violation %s (%s, -%d) recorded for employee %s via %s",
            violation.id, rule.code, rule.penalty_percent, employee.id, source,
        )
        return violation

    async def adjust_rating(
        self,
        employee_id: uuid.UUID,
        delta: int,
        period_start: date,
        period_end: date,
        reason: str | None = None,
        created_by: uuid.UUID | None = None,
        company_id: uuid.UUID | None = None,
    ) -> RatingView:
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationFailed("delta must be an integer")
        if delta == 0 or abs(delta) > MAX_ADJUSTMENT:
            raise ValidationFailed(f"delta must be between -{MAX_ADJUSTMENT} and {MAX_ADJUSTMENT} and not 0")
        _check_period(period_start, period_end)
        employee = await self._get_employee(employee_id, company_id)

        adjustment = RatingAdjustment(
            id=uuid.uuid4(),
            company_id=employee.company_id,
            employee_id=employee.id,
            delta=delta,
            period_start=period_start,
            period_end=period_end,
            reason=reason,
            created_by=created_by,
        )
        self.db.add(adjustment)
        write_audit(
            self.db,
            company_id=employee.company_id,
            actor=str(created_by) if created_by else "system",
            action="adjust",
            entity_type="rating_adjustment",
            entity_id=adjustment.id,
            payload={"employee_id": str(employee.id), "delta": delta,
                     "period_start": period_start.isoformat(), "period_end": period_end.isoformat()},
        )
        await self.db.commit()

        logger.info("Rating of employee %s adjusted by %+d (%s..%s)", employee.id, delta, period_start, period_end)
        return await self.compute_rating(employee.id, period_start, period_end)

    # ── Regelverwaltung ──────────────────────────────────────────────────────

    async def list_rules(self, company_id: uuid.UUID, include_inactive: bool = False) -> list[ViolationRule]:
        query = select(ViolationRule).where(ViolationRule.company_id == company_id)
        if not include_inactive:
            query = query.where(ViolationRule.is_active == True)  # noqa: E712
        result = await self.db.execute(query.order_by(ViolationRule.code))
        return list(result.scalars().all())

    async def get_rule(self, rule_id: uuid.UUID, company_id: uuid.UUID) -> ViolationRule:
        rule = await self.db.get(ViolationRule, rule_id)
        if rule is None or rule.company_id != company_id:
            raise NotFound("Rule")
        return rule

    async def active_rule_by_code(self, company_id: uuid.UUID, code: str) -> ViolationRule | None:
        result = await self.db.execute(
            select(ViolationRule).where(
                ViolationRule.company_id == company_id,
                ViolationRule.code == code.lower(),
                ViolationRule.is_active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def create_rule(
        self,
        company_id: uuid.UUID,
        code: str,
        name: str,
        penalty_percent: int,
        auto_detectable: bool = False,
        actor: str = "system",
    ) -> ViolationRule:
        code = code.strip().lower()
        existing = await self.db.execute(
            select(ViolationRule).where(ViolationRule.company_id == company_id, ViolationRule.code == code)
        )
        if existing.scalar_one_or_none():
            raise ValidationFailed(f"Rule with code '{code}' already exists")

        rule = ViolationRule(
            id=uuid.uuid4(),
            company_id=company_id,
            code=code,
            name=name,
            penalty_percent=penalty_percent,
            auto_detectable=auto_detectable,
            is_active=True,
        )
        self.db.add(rule)
        write_audit(self.db, company_id=company_id, actor=actor, action="create",
                    entity_type="violation_rule", entity_id=rule.id,
                    payload={"code": code, "penalty_percent": penalty_percent})
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def update_rule(self, rule: ViolationRule, changes: dict, actor: str = "system") -> ViolationRule:
        old = {k: getattr(rule, k) for k in changes}
        for field_name, value in changes.items():
            setattr(rule, field_name, value)
        write_audit(self.db, company_id=rule.company_id, actor=actor, action="update",
                    entity_type="violation_rule", entity_id=rule.id,
                    payload={"old": old, "new": changes})
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def deactivate_rule(self, rule: ViolationRule, actor: str = "system") -> ViolationRule:
        """Soft delete – bereits erfasste Verstöße bleiben unverändert."""
        rule.is_active = False
        write_audit(self.db, company_id=rule.company_id, actor=actor, action="deactivate",
                    entity_type="violation_rule", entity_id=rule.id)
        await self.db.commit()
        await self.db.refresh(rule)
        return rule
