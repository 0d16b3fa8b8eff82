"""
Tests für /api/v1/employees – Anlegen, Auflisten, Telegram-Verknüpfung.
"""
import uuid

import pytest

from tests.conftest import TELEGRAM_ID, auth_headers

EMPLOYEES_URL = "/api/v1/employees"

EMP_PAYLOAD = {
    "full_name": "Bram Jansen",
    "position": "Cook",
    "telegram_user_id": 222222,
}


@pytest.mark.asyncio
async def test_create_employee(client, admin_token, admin_user):
    resp = await client.post(EMPLOYEES_URL, json=EMP_PAYLOAD, headers=auth_headers(admin_token))
    assert resp.status_code == 201
    data = resp.json()
    assert data["full_name"] == "Bram Jansen"
    assert data["telegram_user_id"] == 222222
    assert data["company_id"] == str(admin_user.company_id)
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_create_employee_duplicate_telegram_id(client, admin_token, employee):
    resp = await client.post(
        EMPLOYEES_URL, json={**EMP_PAYLOAD, "telegram_user_id": TELEGRAM_ID}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_employees_only_own_company(client, admin_token, other_admin_token, employee):
    resp = await client.get(EMPLOYEES_URL, headers=auth_headers(admin_token))
    assert [e["full_name"] for e in resp.json()] == ["Anna de Vries"]

    resp = await client.get(EMPLOYEES_URL, headers=auth_headers(other_admin_token))
    assert resp.json() == []


@pytest.mark.asyncio
async def test_get_employee_other_company_404(client, other_admin_token, employee):
    resp = await client.get(f"{EMPLOYEES_URL}/{employee.id}", headers=auth_headers(other_admin_token))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_get_unknown_employee_404(client, admin_token):
    resp = await client.get(f"{EMPLOYEES_URL}/{uuid.uuid4()}", headers=auth_headers(admin_token))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_deactivate_employee_hides_from_list(client, admin_token, employee):
    resp = await client.put(
        f"{EMPLOYEES_URL}/{employee.id}", json={"is_active": False}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    assert (await client.get(EMPLOYEES_URL, headers=auth_headers(admin_token))).json() == []
    all_resp = await client.get(EMPLOYEES_URL, params={"active_only": "false"}, headers=auth_headers(admin_token))
    assert len(all_resp.json()) == 1


@pytest.mark.asyncio
async def test_update_keeps_own_telegram_id(client, admin_token, employee):
    resp = await client.put(
        f"{EMPLOYEES_URL}/{employee.id}",
        json={"telegram_user_id": TELEGRAM_ID, "position": "Head barista"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 200
    assert resp.json()["position"] == "Head barista"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["full_name", "is_active"])
async def test_update_null_for_required_field_rejected(client, admin_token, employee, field):
    resp = await client.put(
        f"{EMPLOYEES_URL}/{employee.id}", json={field: None}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 422

    stored = (await client.get(f"{EMPLOYEES_URL}/{employee.id}", headers=auth_headers(admin_token))).json()
    assert stored["full_name"] == "Anna de Vries"
    assert stored["is_active"] is True


@pytest.mark.asyncio
async def test_update_can_unlink_telegram(client, admin_token, employee):
    resp = await client.put(
        f"{EMPLOYEES_URL}/{employee.id}", json={"telegram_user_id": None}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 200
    assert resp.json()["telegram_user_id"] is None
