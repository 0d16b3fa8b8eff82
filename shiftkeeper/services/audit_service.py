import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from shiftkeeper.models.audit import AuditLog


def write_audit(
    db: AsyncSession,
    *,
    company_id: uuid.UUID | None,
    actor: str,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | None = None,
    payload: dict[str, Any] | None = None,
) -> AuditLog:
    """Adds an audit row to the current transaction (no commit)."""
    log = AuditLog(
        company_id=company_id,
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        payload=payload,
    )
    db.add(log)
    return log


def employee_actor(employee_id: uuid.UUID) -> str:
    return f"employee:{employee_id}"
