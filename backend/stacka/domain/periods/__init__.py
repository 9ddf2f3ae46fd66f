from stacka.domain.periods.navigator import next_periods, recent_periods
from stacka.domain.periods.schemas import BudgetPeriod
from stacka.domain.periods.service import (
    adjusted_salary_date,
    budget_period_for,
    budget_period_for_label,
    current_budget_period,
    days_until_salary,
    period_dates_for_label,
    period_progress,
)

__all__ = [
    "BudgetPeriod",
    "adjusted_salary_date",
    "budget_period_for",
    "budget_period_for_label",
    "current_budget_period",
    "days_until_salary",
    "next_periods",
    "period_dates_for_label",
    "period_progress",
    "recent_periods",
]
