import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from stacka.domain.recurring_expenses import service as recurring_service
from stacka.infra.clock import local_today
from stacka.infra.metrics import metrics

logger = logging.getLogger(__name__)


async def run_recurring_expenses(
    session: AsyncSession, *, today: date | None = None, tz_name: str | None = None
) -> dict[str, int]:
    today = today or local_today(tz_name)
    report = await recurring_service.process_recurring_expenses(session, today=today)
    metrics.record_recurring_expenses("created", report.processed)
    metrics.record_recurring_expenses("skipped", report.skipped)
    logger.info(
        "recurring_expenses_job_complete",
        extra={"extra": {"date": today.isoformat(), "message": report.message}},
    )
    return {"processed": report.processed, "skipped": report.skipped}
