from fastapi import APIRouter

from shiftkeeper.api.deps import CompanyScope, CurrentUser, DB
from shiftkeeper.schemas.shift import (
    GenerateShiftsRequest, GenerateShiftsOut, GeneratePreviewOut, GenerationStats, MonitorOut, ShiftOut,
)
from shiftkeeper.services.shift_generator_service import ShiftGeneratorService
from shiftkeeper.services.shift_monitor_service import ShiftMonitorService

router = APIRouter(prefix="/companies", tags=["companies"])


def _stats_out(stats) -> GenerationStats:
    return GenerationStats(
        created=stats.created,
        employees_without_schedule=stats.employees_without_schedule,
        skipped_existing=stats.skipped_existing,
    )


@router.post("/{company_id}/generate-shifts", response_model=GenerateShiftsOut)
async def generate_shifts(
    payload: GenerateShiftsRequest,
    company: CompanyScope,
    current_user: CurrentUser,
    db: DB,
):
    """Erzeugt geplante Schichten aus den Dienstplan-Zuweisungen."""
    result = await ShiftGeneratorService(db).generate(
        company,
        payload.start_date,
        payload.end_date,
        payload.employee_ids,
        actor=str(current_user.id),
    )
    return GenerateShiftsOut(
        shifts=[ShiftOut.model_validate(s) for s in result.shifts],
        stats=_stats_out(result.stats),
    )


@router.post("/{company_id}/generate-shifts/preview", response_model=GeneratePreviewOut)
async def preview_generate_shifts(
    payload: GenerateShiftsRequest,
    company: CompanyScope,
    db: DB,
):
    stats = await ShiftGeneratorService(db).preview(
        company, payload.start_date, payload.end_date, payload.employee_ids
    )
    return GeneratePreviewOut(stats=_stats_out(stats))


@router.post("/{company_id}/monitor", response_model=MonitorOut)
async def run_monitor(company: CompanyScope, db: DB):
    """Runs the shift monitor for the company right now."""
    result = await ShiftMonitorService(db).run(company)
    return MonitorOut(checked=result.checked, detected=result.detected, created=result.created)
