import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stacka.api.cron_auth import is_cron_request_authorized
from stacka.dependencies import get_db_session
from stacka.domain.recurring_expenses import service as recurring_service
from stacka.infra.clock import local_today
from stacka.infra.metrics import metrics

router = APIRouter(prefix="/api/cron", tags=["cron"])
logger = logging.getLogger(__name__)

JOB_NAME = "recurring-expenses"


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.api_route("/process-recurring-expenses", methods=["GET", "POST"])
async def process_recurring_expenses(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    app_settings = request.app.state.app_settings
    if not is_cron_request_authorized(request, app_settings):
        logger.warning("cron_unauthorized", extra={"extra": {"job": JOB_NAME}})
        return _error("Unauthorized", 401)

    today = local_today(app_settings.timezone)
    try:
        report = await recurring_service.process_recurring_expenses(session, today=today)
    except SQLAlchemyError as exc:
        metrics.record_job_error(JOB_NAME, "database")
        logger.error(
            "recurring_expenses_failed",
            exc_info=exc,
            extra={"extra": {"date": today.isoformat(), "reason": "database"}},
        )
        return _error("Database error", 500)
    except Exception as exc:  # noqa: BLE001
        metrics.record_job_error(JOB_NAME, type(exc).__name__)
        logger.exception(
            "recurring_expenses_failed",
            extra={"extra": {"date": today.isoformat(), "reason": type(exc).__name__}},
        )
        return _error("Internal server error", 500)

    metrics.record_recurring_expenses("created", report.processed)
    metrics.record_recurring_expenses("skipped", report.skipped)
    metrics.record_job_success(JOB_NAME)
    return JSONResponse(content=report.model_dump(mode="json"))
