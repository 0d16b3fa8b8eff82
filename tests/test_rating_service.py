"""
Tests für RatingService – Bewertung aus Verstößen und Anpassungen, Regelverwaltung.
"""
import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select, func

from shiftkeeper.core.errors import NotFound, ValidationFailed
from shiftkeeper.models.audit import AuditLog
from shiftkeeper.models.violation import Violation, RatingAdjustment
from shiftkeeper.services.rating_service import RatingService, band_for, clamp_rating
from shiftkeeper.utils.periods import current_month
from tests.conftest import utc


def this_month():
    p = current_month(datetime.now(timezone.utc).date())
    return p.start, p.end


# ── Reine Funktionen ──────────────────────────────────────────────────────────

def test_clamp_rating_bounds():
    assert clamp_rating(0, 0) == 100
    assert clamp_rating(150, 0) == 0
    assert clamp_rating(0, 30) == 100
    assert clamp_rating(15, 5) == 90


@pytest.mark.parametrize("rating,band", [
    (100, "excellent"), (80, "excellent"), (79, "good"), (60, "good"),
    (59, "low"), (40, "low"), (39, "critical"), (0, "critical"),
])
def test_band_boundaries(rating, band):
    assert band_for(rating) == band


# ── compute_rating ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_rating_without_entries_is_100(db, employee):
    start, end = this_month()
    view = await RatingService(db).compute_rating(employee.id, start, end)
    assert view.rating == 100
    assert view.total_penalty == 0
    assert view.total_adjustment == 0
    assert view.violations_count == 0
    assert view.band == "excellent"
    assert view.termination_risk is False


@pytest.mark.asyncio
async def test_penalty_and_adjustment(db, employee, late_rule):
    """Strafe 15 + Anpassung +5 → 90."""
    start, end = this_month()
    svc = RatingService(db)
    await svc.add_violation(employee.id, employee.company_id, late_rule.id)
    view = await svc.adjust_rating(employee.id, 5, start, end, reason="Good week")

    assert view.total_penalty == 15
    assert view.total_adjustment == 5
    assert view.violations_count == 1
    assert view.rating == 90


@pytest.mark.asyncio
async def test_penalty_snapshot_survives_rule_change(db, employee, late_rule):
    start, end = this_month()
    svc = RatingService(db)
    violation = await svc.add_violation(employee.id, employee.company_id, late_rule.id)
    assert violation.penalty == 15

    await svc.update_rule(late_rule, {"penalty_percent": 50})
    await svc.deactivate_rule(late_rule)

    view = await svc.compute_rating(employee.id, start, end)
    assert view.total_penalty == 15


@pytest.mark.asyncio
async def test_rating_clamped_at_zero_with_termination_risk(db, employee, late_rule):
    start, end = this_month()
    svc = RatingService(db)
    for _ in range(8):
        await svc.add_violation(employee.id, employee.company_id, late_rule.id)

    view = await svc.compute_rating(employee.id, start, end)
    assert view.total_penalty == 120
    assert view.rating == 0
    assert view.band == "critical"
    assert view.termination_risk is True


@pytest.mark.asyncio
async def test_over_boost_is_wasted_by_clamp(db, employee):
    start, end = this_month()
    view = await RatingService(db).adjust_rating(employee.id, 50, start, end)
    assert view.total_adjustment == 50
    assert view.rating == 100


@pytest.mark.asyncio
async def test_violations_outside_period_not_counted(db, employee, late_rule):
    db.add(Violation(
        id=uuid.uuid4(), company_id=employee.company_id, employee_id=employee.id, rule_id=late_rule.id,
        shift_id=None, source="manual", reason=None, penalty=15, created_by=None,
        created_at=utc(2025, 8, 31, 23, 59),
    ))
    db.add(Violation(
        id=uuid.uuid4(), company_id=employee.company_id, employee_id=employee.id, rule_id=late_rule.id,
        shift_id=None, source="manual", reason=None, penalty=15, created_by=None,
        created_at=utc(2025, 9, 30, 23, 59),
    ))
    await db.commit()

    view = await RatingService(db).compute_rating(employee.id, date(2025, 9, 1), date(2025, 9, 30))
    assert view.violations_count == 1
    assert view.rating == 85


@pytest.mark.asyncio
async def test_adjustment_counted_only_inside_query_period(db, employee):
    db.add(RatingAdjustment(
        id=uuid.uuid4(), company_id=employee.company_id, employee_id=employee.id, delta=-10,
        period_start=date(2025, 8, 1), period_end=date(2025, 9, 30), reason=None, created_by=None,
    ))
    await db.commit()

    svc = RatingService(db)
    assert (await svc.compute_rating(employee.id, date(2025, 9, 1), date(2025, 9, 30))).rating == 100
    assert (await svc.compute_rating(employee.id, date(2025, 8, 1), date(2025, 9, 30))).rating == 90


@pytest.mark.asyncio
async def test_period_end_before_start_rejected(db, employee):
    with pytest.raises(ValidationFailed, match="periodEnd"):
        await RatingService(db).compute_rating(employee.id, date(2025, 9, 30), date(2025, 9, 1))


@pytest.mark.asyncio
async def test_unknown_employee_not_found(db, company):
    with pytest.raises(NotFound):
        await RatingService(db).compute_rating(uuid.uuid4(), date(2025, 9, 1), date(2025, 9, 30))


# ── add_violation ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_inactive_rule_rejected(db, employee, late_rule):
    late_rule.is_active = False
    await db.commit()
    with pytest.raises(ValidationFailed, match="No active rule"):
        await RatingService(db).add_violation(employee.id, employee.company_id, late_rule.id)


@pytest.mark.asyncio
async def test_rule_of_other_company_rejected(db, employee, other_company):
    svc = RatingService(db)
    foreign = await svc.create_rule(other_company.id, "late", "Late", 10)
    with pytest.raises(ValidationFailed, match="No active rule"):
        await svc.add_violation(employee.id, employee.company_id, foreign.id)


@pytest.mark.asyncio
async def test_auto_source_requires_auto_detectable_rule(db, employee, manual_rule):
    with pytest.raises(ValidationFailed, match="auto-detectable"):
        await RatingService(db).add_violation(employee.id, employee.company_id, manual_rule.id, source="auto")


@pytest.mark.asyncio
async def test_add_violation_writes_audit_row(db, employee, late_rule):
    violation = await RatingService(db).add_violation(
        employee.id, employee.company_id, late_rule.id, reason="20 min late"
    )
    result = await db.execute(
        select(func.count()).select_from(AuditLog).where(AuditLog.entity_id == violation.id)
    )
    assert result.scalar_one() == 1


# ── adjust_rating ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize("delta", [0, 101, -101])
async def test_adjust_delta_out_of_range(db, employee, delta):
    start, end = this_month()
    with pytest.raises(ValidationFailed):
        await RatingService(db).adjust_rating(employee.id, delta, start, end)


@pytest.mark.asyncio
async def test_adjust_delta_must_be_integer(db, employee):
    start, end = this_month()
    with pytest.raises(ValidationFailed, match="integer"):
        await RatingService(db).adjust_rating(employee.id, 2.5, start, end)


@pytest.mark.asyncio
async def test_adjust_period_end_before_start(db, employee):
    with pytest.raises(ValidationFailed):
        await RatingService(db).adjust_rating(employee.id, 5, date(2025, 9, 30), date(2025, 9, 1))


# ── Regeln ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_rule_code_unique_case_insensitive(db, company):
    svc = RatingService(db)
    rule = await svc.create_rule(company.id, "Late", "Late arrival", 15, auto_detectable=True)
    assert rule.code == "late"
    with pytest.raises(ValidationFailed, match="already exists"):
        await svc.create_rule(company.id, "LATE", "Duplicate", 10)


@pytest.mark.asyncio
async def test_list_rules_hides_inactive_by_default(db, company, late_rule, manual_rule):
    svc = RatingService(db)
    await svc.deactivate_rule(manual_rule)
    assert [r.code for r in await svc.list_rules(company.id)] == ["late"]
    assert len(await svc.list_rules(company.id, include_inactive=True)) == 2


@pytest.mark.asyncio
async def test_company_ratings_one_per_active_employee(db, company, employee, late_rule):
    from shiftkeeper.models.employee import Employee

    db.add(Employee(id=uuid.uuid4(), company_id=company.id, full_name="Bram Jansen", is_active=True))
    db.add(Employee(id=uuid.uuid4(), company_id=company.id, full_name="Cees Oud", is_active=False))
    await db.commit()

    svc = RatingService(db)
    await svc.add_violation(employee.id, company.id, late_rule.id)
    start, end = this_month()
    views = await svc.company_ratings(company.id, start, end)

    assert [v.full_name for v in views] == ["Anna de Vries", "Bram Jansen"]
    assert [v.rating for v in views] == [85, 100]
