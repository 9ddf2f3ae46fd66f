"""Budget period calculations anchored on a household member's salary day.

A budget period starts on the (weekend-adjusted) salary day of month M and
ends the day before the salary day of month M+1. It is labelled after month
M+1, the month whose expenses the salary funds: with salary day 25 the
"2024-06" period runs from 2024-05-24 (25th is a Saturday) to 2024-06-24.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, timedelta

from stacka.domain.periods.schemas import BudgetPeriod
from stacka.infra.clock import local_today

MIN_SALARY_DAY = 1
MAX_SALARY_DAY = 31

SWEDISH_MONTHS = (
    "januari",
    "februari",
    "mars",
    "april",
    "maj",
    "juni",
    "juli",
    "augusti",
    "september",
    "oktober",
    "november",
    "december",
)

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


def validate_salary_day(salary_day: int) -> int:
    if isinstance(salary_day, bool) or not isinstance(salary_day, int):
        raise ValueError("invalid_salary_day")
    if not MIN_SALARY_DAY <= salary_day <= MAX_SALARY_DAY:
        raise ValueError("invalid_salary_day")
    return salary_day


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def format_period_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_period_label(label: str) -> tuple[int, int]:
    match = _LABEL_RE.match(label or "")
    if match is None:
        raise ValueError("invalid_period_label")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValueError("invalid_period_label")
    return year, month


def shift_period_label(label: str, months: int) -> str:
    year, month = parse_period_label(label)
    return format_period_label(*shift_month(year, month, months))


def format_period_display(label: str) -> str:
    year, month = parse_period_label(label)
    return f"{SWEDISH_MONTHS[month - 1]} {year}"


def adjusted_salary_date(year: int, month: int, salary_day: int) -> date:
    """Salary date for a month: clamped to the month length, moved back off weekends."""
    validate_salary_day(salary_day)
    candidate = date(year, month, min(salary_day, days_in_month(year, month)))
    weekday = candidate.weekday()
    if weekday == 5:
        return candidate - timedelta(days=1)
    if weekday == 6:
        return candidate - timedelta(days=2)
    return candidate


def _period_from_anchor(year: int, month: int, salary_day: int) -> BudgetPeriod:
    label_year, label_month = shift_month(year, month, 1)
    label = format_period_label(label_year, label_month)
    start_date = adjusted_salary_date(year, month, salary_day)
    end_date = adjusted_salary_date(label_year, label_month, salary_day) - timedelta(days=1)
    return BudgetPeriod(
        label=label,
        start_date=start_date,
        end_date=end_date,
        display_name=format_period_display(label),
    )


def budget_period_for(day: date, salary_day: int) -> BudgetPeriod:
    validate_salary_day(salary_day)
    next_year, next_month = shift_month(day.year, day.month, 1)
    # Salary days 1-2 can be pulled back into the previous month by the weekend rule.
    if day >= adjusted_salary_date(next_year, next_month, salary_day):
        return _period_from_anchor(next_year, next_month, salary_day)
    if day >= adjusted_salary_date(day.year, day.month, salary_day):
        return _period_from_anchor(day.year, day.month, salary_day)
    prev_year, prev_month = shift_month(day.year, day.month, -1)
    return _period_from_anchor(prev_year, prev_month, salary_day)


def budget_period_for_label(label: str, salary_day: int) -> BudgetPeriod:
    year, month = parse_period_label(label)
    anchor_year, anchor_month = shift_month(year, month, -1)
    return _period_from_anchor(anchor_year, anchor_month, validate_salary_day(salary_day))


def period_dates_for_label(label: str, salary_day: int) -> tuple[date, date]:
    period = budget_period_for_label(label, salary_day)
    return period.start_date, period.end_date


def current_budget_period(salary_day: int, today: date | None = None) -> BudgetPeriod:
    return budget_period_for(today or local_today(), salary_day)


def previous_budget_period(salary_day: int, today: date | None = None) -> BudgetPeriod:
    current = current_budget_period(salary_day, today)
    return budget_period_for_label(shift_period_label(current.label, -1), salary_day)


def next_budget_period(salary_day: int, today: date | None = None) -> BudgetPeriod:
    current = current_budget_period(salary_day, today)
    return budget_period_for_label(shift_period_label(current.label, 1), salary_day)


def is_date_in_period(day: date, period: BudgetPeriod) -> bool:
    return period.contains(day)


def days_until_salary(salary_day: int, today: date | None = None) -> int:
    today = today or local_today()
    period = budget_period_for(today, salary_day)
    if today == period.start_date:
        return 0
    return (period.end_date - today).days + 1


def period_progress(salary_day: int, today: date | None = None) -> float:
    today = today or local_today()
    period = budget_period_for(today, salary_day)
    days_elapsed = (today - period.start_date).days + 1
    progress = days_elapsed / period.total_days * 100
    return min(100.0, max(0.0, progress))
