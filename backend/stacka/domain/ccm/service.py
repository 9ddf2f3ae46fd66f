"""Credit-card (CCM) invoice bucketing.

A card statement closes on the household's break day: purchases made on or
after the break day are billed on the following month's invoice, earlier
purchases on the current month's.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from operator import attrgetter
from typing import Callable, Iterable, Protocol, Sequence, TypeVar

from stacka.domain.allocation.service import split_shared
from stacka.domain.ccm.schemas import PaymentSplit
from stacka.domain.expenses.statuses import CostAssignment, normalize_cost_assignment
from stacka.domain.periods.service import (
    format_period_label,
    parse_period_label,
    shift_month,
)

MIN_BREAK_DAY = 1
MAX_BREAK_DAY = 28

T = TypeVar("T")


class CcmExpense(Protocol):
    user_id: uuid.UUID
    amount_cents: int
    cost_assignment: str | None


def validate_break_day(break_day: int) -> int:
    if isinstance(break_day, bool) or not isinstance(break_day, int):
        raise ValueError("invalid_break_day")
    if not MIN_BREAK_DAY <= break_day <= MAX_BREAK_DAY:
        raise ValueError("invalid_break_day")
    return break_day


def invoice_period_for(expense_date: date, break_day: int) -> str:
    validate_break_day(break_day)
    if expense_date.day >= break_day:
        return format_period_label(*shift_month(expense_date.year, expense_date.month, 1))
    return format_period_label(expense_date.year, expense_date.month)


def invoice_period_bounds(label: str, break_day: int) -> tuple[date, date]:
    """Calendar range of purchases billed on the ``label`` invoice."""
    validate_break_day(break_day)
    year, month = parse_period_label(label)
    prev_year, prev_month = shift_month(year, month, -1)
    start_date = date(prev_year, prev_month, break_day)
    end_date = date(year, month, break_day) - timedelta(days=1)
    return start_date, end_date


def group_by_invoice_period(
    expenses: Iterable[T],
    break_day: int,
    *,
    date_of: Callable[[T], date] = attrgetter("date"),
) -> dict[str, list[T]]:
    validate_break_day(break_day)
    grouped: dict[str, list[T]] = {}
    for expense in expenses:
        grouped.setdefault(invoice_period_for(date_of(expense), break_day), []).append(expense)
    return {label: grouped[label] for label in sorted(grouped, reverse=True)}


def calculate_payment_split(
    expenses: Sequence[CcmExpense],
    actual_invoice_cents: int,
    user_id: uuid.UUID,
    partner_id: uuid.UUID | None,
) -> PaymentSplit:
    """Work out how much of a card invoice each member pays.

    Personal purchases are owed by whoever registered them, ``partner``
    purchases by the partner, shared purchases are halved. Any amount on the
    invoice that was never registered is halved as well.
    """
    user_amount = 0
    partner_amount = 0
    registered_total = 0
    for expense in expenses:
        amount = expense.amount_cents
        registered_total += amount
        if partner_id is None:
            user_amount += amount
            continue
        assignment = normalize_cost_assignment(expense.cost_assignment)
        if assignment is CostAssignment.shared:
            user_share, partner_share = split_shared(amount)
            user_amount += user_share
            partner_amount += partner_share
        elif assignment is CostAssignment.partner:
            partner_amount += amount
        elif expense.user_id == user_id:
            user_amount += amount
        else:
            partner_amount += amount

    difference = actual_invoice_cents - registered_total
    unregistered_difference = max(0, difference)
    if unregistered_difference:
        if partner_id is None:
            user_amount += unregistered_difference
        else:
            user_share, partner_share = split_shared(unregistered_difference)
            user_amount += user_share
            partner_amount += partner_share

    return PaymentSplit(
        user_amount=user_amount,
        partner_amount=partner_amount,
        unregistered_difference=unregistered_difference,
        registered_total=registered_total,
        actual_invoice=actual_invoice_cents,
        has_warning=registered_total > actual_invoice_cents and actual_invoice_cents > 0,
    )
