"""
Telegram-WebApp-Endpunkte: Status abfragen, Schicht/Pause beginnen und beenden.

Alle Aufrufe müssen ``X-Telegram-Init-Data`` mitsenden; der signierte
Telegram-Nutzer muss zur übergebenen ``telegramId`` passen.
"""
from fastapi import APIRouter

from shiftkeeper.api.deps import DB, TelegramAuth, ensure_telegram_identity
from shiftkeeper.schemas.shift import (
    TelegramAction, EmployeeStatusOut, ShiftOut, WorkIntervalOut, BreakIntervalOut,
    ShiftStartOut, ShiftEndOut, BreakStartOut, BreakEndOut,
)
from shiftkeeper.services.attendance_service import AttendanceService

router = APIRouter(prefix="/webapp", tags=["webapp"])


@router.get("/employee/{telegram_id}", response_model=EmployeeStatusOut)
async def get_employee_status(telegram_id: int, tg_user: TelegramAuth, db: DB):
    ensure_telegram_identity(tg_user, telegram_id)
    snapshot = await AttendanceService(db).get_snapshot(telegram_id)
    return EmployeeStatusOut.model_validate(snapshot)


@router.post("/shift/start", response_model=ShiftStartOut)
async def start_shift(payload: TelegramAction, tg_user: TelegramAuth, db: DB):
    ensure_telegram_identity(tg_user, payload.telegram_id)
    shift, work_interval = await AttendanceService(db).start_shift(payload.telegram_id)
    return ShiftStartOut(
        shift=ShiftOut.model_validate(shift),
        work_interval=WorkIntervalOut.model_validate(work_interval),
    )


@router.post("/shift/end", response_model=ShiftEndOut)
async def end_shift(payload: TelegramAction, tg_user: TelegramAuth, db: DB):
    ensure_telegram_identity(tg_user, payload.telegram_id)
    shift = await AttendanceService(db).end_shift(payload.telegram_id)
    return ShiftEndOut(shift=ShiftOut.model_validate(shift))


@router.post("/break/start", response_model=BreakStartOut)
async def start_break(payload: TelegramAction, tg_user: TelegramAuth, db: DB):
    ensure_telegram_identity(tg_user, payload.telegram_id)
    break_interval = await AttendanceService(db).start_break(payload.telegram_id)
    return BreakStartOut(break_interval=BreakIntervalOut.model_validate(break_interval))


@router.post("/break/end", response_model=BreakEndOut)
async def end_break(payload: TelegramAction, tg_user: TelegramAuth, db: DB):
    ensure_telegram_identity(tg_user, payload.telegram_id)
    work_interval = await AttendanceService(db).end_break(payload.telegram_id)
    return BreakEndOut(work_interval=WorkIntervalOut.model_validate(work_interval))
