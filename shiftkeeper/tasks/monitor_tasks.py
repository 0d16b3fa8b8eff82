"""
Celery-Tasks für den Schicht-Monitor.
"""
import asyncio
import logging

from shiftkeeper.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="shiftkeeper.tasks.monitor_tasks.run_shift_monitor")
def run_shift_monitor():
    """Prüft die Schichten aller aktiven Firmen."""
    return asyncio.run(_run_for_all_companies())


async def _run_for_all_companies() -> dict:
    from sqlalchemy import select
    from shiftkeeper.core.database import AsyncSessionLocal
    from shiftkeeper.models.company import Company
    from shiftkeeper.services.shift_monitor_service import ShiftMonitorService

    totals = {"companies": 0, "checked": 0, "detected": 0, "created": 0}
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Company).where(Company.is_active == True))  # noqa: E712
        companies = result.scalars().all()
        for company in companies:
            outcome = await ShiftMonitorService(db).run(company)
            totals["companies"] += 1
            totals["checked"] += outcome.checked
            totals["detected"] += outcome.detected
            totals["created"] += outcome.created

    logger.info("Shift monitor run finished: %s", totals)
    return totals
