from __future__ import annotations

from datetime import date

from stacka.domain.periods.schemas import BudgetPeriod
from stacka.domain.periods.service import (
    budget_period_for_label,
    current_budget_period,
    shift_period_label,
)

DEFAULT_PERIOD_COUNT = 6


def _walk(salary_day: int, count: int, step: int, today: date | None) -> list[BudgetPeriod]:
    if count < 0:
        raise ValueError("invalid_period_count")
    if count == 0:
        return []
    current = current_budget_period(salary_day, today)
    periods = [current]
    for offset in range(1, count):
        label = shift_period_label(current.label, offset * step)
        periods.append(budget_period_for_label(label, salary_day))
    return periods


def recent_periods(
    salary_day: int, count: int = DEFAULT_PERIOD_COUNT, today: date | None = None
) -> list[BudgetPeriod]:
    """Current period followed by the ``count - 1`` periods before it, newest first.

    Walks period labels rather than calendar months so that month-end clamping
    and weekend-shifted boundaries never yield the same period twice.
    """
    return _walk(salary_day, count, -1, today)


def next_periods(
    salary_day: int, count: int = DEFAULT_PERIOD_COUNT, today: date | None = None
) -> list[BudgetPeriod]:
    """Current period followed by the ``count - 1`` upcoming periods, soonest first."""
    return _walk(salary_day, count, 1, today)
