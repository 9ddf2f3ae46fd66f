from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from stacka.api.problem_details import invalid_input
from stacka.dependencies import get_app_settings
from stacka.domain.ccm import service as ccm_service
from stacka.domain.ccm.schemas import InvoicePeriodResponse
from stacka.domain.periods import navigator
from stacka.domain.periods import service as periods_service
from stacka.domain.periods.schemas import (
    BudgetPeriodListResponse,
    BudgetPeriodResponse,
    CurrentPeriodResponse,
)
from stacka.infra.clock import local_today
from stacka.settings import Settings

router = APIRouter(tags=["periods"])

MAX_PERIOD_COUNT = 24


def _today(as_of: date | None, app_settings: Settings) -> date:
    return as_of or local_today(app_settings.timezone)


@router.get("/v1/periods/current", response_model=CurrentPeriodResponse)
async def current_period(
    salary_day: int | None = Query(None, ge=1, le=31),
    as_of: date | None = None,
    app_settings: Settings = Depends(get_app_settings),
):
    salary_day = salary_day or app_settings.default_salary_day
    today = _today(as_of, app_settings)
    period = periods_service.current_budget_period(salary_day, today)
    base = BudgetPeriodResponse.from_period(period)
    return CurrentPeriodResponse(
        **base.model_dump(),
        days_until_salary=periods_service.days_until_salary(salary_day, today),
        progress=round(periods_service.period_progress(salary_day, today), 2),
    )


@router.get("/v1/periods/recent", response_model=BudgetPeriodListResponse)
async def recent_periods(
    salary_day: int | None = Query(None, ge=1, le=31),
    count: int = Query(navigator.DEFAULT_PERIOD_COUNT, ge=0, le=MAX_PERIOD_COUNT),
    as_of: date | None = None,
    app_settings: Settings = Depends(get_app_settings),
):
    periods = navigator.recent_periods(
        salary_day or app_settings.default_salary_day,
        count,
        today=_today(as_of, app_settings),
    )
    return BudgetPeriodListResponse(
        periods=[BudgetPeriodResponse.from_period(period) for period in periods]
    )


@router.get("/v1/periods/next", response_model=BudgetPeriodListResponse)
async def next_periods(
    salary_day: int | None = Query(None, ge=1, le=31),
    count: int = Query(navigator.DEFAULT_PERIOD_COUNT, ge=0, le=MAX_PERIOD_COUNT),
    as_of: date | None = None,
    app_settings: Settings = Depends(get_app_settings),
):
    periods = navigator.next_periods(
        salary_day or app_settings.default_salary_day,
        count,
        today=_today(as_of, app_settings),
    )
    return BudgetPeriodListResponse(
        periods=[BudgetPeriodResponse.from_period(period) for period in periods]
    )


@router.get("/v1/periods/{label}", response_model=BudgetPeriodResponse)
async def period_by_label(
    label: str,
    request: Request,
    salary_day: int | None = Query(None, ge=1, le=31),
    app_settings: Settings = Depends(get_app_settings),
):
    try:
        period = periods_service.budget_period_for_label(
            label, salary_day or app_settings.default_salary_day
        )
    except ValueError as exc:
        return invalid_input(request, exc, field="label")
    return BudgetPeriodResponse.from_period(period)


@router.get("/v1/ccm/invoice-period", response_model=InvoicePeriodResponse)
async def invoice_period(
    request: Request,
    date_: date = Query(..., alias="date"),
    break_day: int | None = None,
    app_settings: Settings = Depends(get_app_settings),
):
    if break_day is None:
        break_day = app_settings.default_invoice_break_day
    try:
        label = ccm_service.invoice_period_for(date_, break_day)
        start_date, end_date = ccm_service.invoice_period_bounds(label, break_day)
    except ValueError as exc:
        return invalid_input(request, exc, field="break_day")
    return InvoicePeriodResponse(
        invoice_period=label,
        break_day=break_day,
        start_date=start_date,
        end_date=end_date,
    )
