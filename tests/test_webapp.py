"""
Tests für /api/v1/webapp – Telegram-Authentifizierung und Zustandswechsel über HTTP.
"""
import asyncio
import json
import time

import pytest
from sqlalchemy import select, func

from shiftkeeper.core.security import sign_init_data
from shiftkeeper.models.shift import Shift, WorkInterval, BreakInterval
from tests.conftest import TEST_BOT_TOKEN, TELEGRAM_ID, telegram_headers

WEBAPP_URL = "/api/v1/webapp"


async def post(client, action: str, telegram_id: int = TELEGRAM_ID, headers=None):
    return await client.post(
        f"{WEBAPP_URL}/{action}",
        json={"telegramId": telegram_id},
        headers=headers if headers is not None else telegram_headers(telegram_id),
    )


# ── Authentifizierung ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_init_data_unauthorized(client, employee):
    resp = await client.get(f"{WEBAPP_URL}/employee/{TELEGRAM_ID}")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_invalid_signature_unauthorized(client, employee):
    resp = await post(client, "shift/start", headers=telegram_headers(bot_token="999:wrong"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expired_init_data_unauthorized(client, employee):
    resp = await post(client, "shift/start", headers=telegram_headers(auth_date=int(time.time()) - 200000))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_init_data_without_auth_date_unauthorized(client, employee):
    init_data = sign_init_data({"user": json.dumps({"id": TELEGRAM_ID, "first_name": "Anna"})}, TEST_BOT_TOKEN)
    resp = await post(client, "shift/start", headers={"X-Telegram-Init-Data": init_data})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_foreign_telegram_user_forbidden(client, employee):
    """Signierter Nutzer 222222 darf nicht für 111111 stempeln."""
    resp = await post(client, "shift/start", headers=telegram_headers(222222))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_unknown_employee_not_found(client, employee):
    resp = await client.get(f"{WEBAPP_URL}/employee/333333", headers=telegram_headers(333333))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Employee not found"


# ── Status ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_status_off_work(client, employee):
    resp = await client.get(f"{WEBAPP_URL}/employee/{TELEGRAM_ID}", headers=telegram_headers())
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "off_work"
    assert data["activeShift"] is None
    assert data["workIntervals"] == []
    assert data["employee"]["fullName"] == "Anna de Vries"
    assert data["employee"]["telegramUserId"] == TELEGRAM_ID


# ── Zustandswechsel ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_start_shift(client, employee):
    resp = await post(client, "shift/start")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["shift"]["status"] == "active"
    assert data["workInterval"]["endAt"] is None
    assert data["workInterval"]["shiftId"] == data["shift"]["id"]


@pytest.mark.asyncio
async def test_double_start_returns_400(client, employee, db):
    await post(client, "shift/start")
    resp = await post(client, "shift/start")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Shift already active"

    work_count = (await db.execute(select(func.count()).select_from(WorkInterval))).scalar_one()
    assert work_count == 1


@pytest.mark.asyncio
async def test_concurrent_starts_only_one_wins(client, employee, db):
    """Drei gleichzeitige Schichtbeginne: genau einer gewinnt, die anderen bekommen 400."""
    responses = await asyncio.gather(*(post(client, "shift/start") for _ in range(3)))

    assert sorted(r.status_code for r in responses) == [200, 400, 400]
    assert sum(r.json().get("detail") == "Shift already active" for r in responses) == 2

    shift_count = (await db.execute(select(func.count()).select_from(Shift))).scalar_one()
    work_count = (await db.execute(select(func.count()).select_from(WorkInterval))).scalar_one()
    assert (shift_count, work_count) == (1, 1)


@pytest.mark.asyncio
async def test_end_shift_without_active_shift(client, employee, db):
    resp = await post(client, "shift/end")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No active shift"

    shift_count = (await db.execute(select(func.count()).select_from(Shift))).scalar_one()
    assert shift_count == 0


@pytest.mark.asyncio
async def test_end_break_without_break(client, employee):
    await post(client, "shift/start")
    resp = await post(client, "break/end")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No active break"


@pytest.mark.asyncio
async def test_full_cycle_over_http(client, employee, db):
    start = await post(client, "shift/start")
    shift_id = start.json()["shift"]["id"]

    brk = await post(client, "break/start")
    assert brk.status_code == 200
    assert brk.json()["breakInterval"]["kind"] == "lunch"

    status = await client.get(f"{WEBAPP_URL}/employee/{TELEGRAM_ID}", headers=telegram_headers())
    assert status.json()["status"] == "on_break"

    resume = await post(client, "break/end")
    assert resume.status_code == 200
    assert resume.json()["workInterval"]["endAt"] is None

    end = await post(client, "shift/end")
    assert end.status_code == 200
    assert end.json()["shift"]["status"] == "completed"
    assert end.json()["shift"]["id"] == shift_id

    open_work = (await db.execute(
        select(func.count()).select_from(WorkInterval).where(WorkInterval.end_at.is_(None))
    )).scalar_one()
    open_breaks = (await db.execute(
        select(func.count()).select_from(BreakInterval).where(BreakInterval.end_at.is_(None))
    )).scalar_one()
    assert (open_work, open_breaks) == (0, 0)

    status = await client.get(f"{WEBAPP_URL}/employee/{TELEGRAM_ID}", headers=telegram_headers())
    assert status.json()["status"] == "off_work"


@pytest.mark.asyncio
async def test_snake_case_body_accepted(client, employee):
    resp = await client.post(
        f"{WEBAPP_URL}/shift/start", json={"telegram_id": TELEGRAM_ID}, headers=telegram_headers()
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_missing_telegram_id_is_422(client, employee):
    resp = await client.post(f"{WEBAPP_URL}/shift/start", json={}, headers=telegram_headers())
    assert resp.status_code == 422
