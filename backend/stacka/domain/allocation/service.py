"""Splitting expense amounts between a user and their partner.

Amounts are integer minor units. A shared amount is halved with the odd
unit kept by the user, so both halves always sum back to the original.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stacka.domain.allocation.schemas import Allocation, SpendingLine, SpendingSummary
from stacka.domain.expenses.db_models import Expense
from stacka.domain.expenses.statuses import (
    COST_TYPE_SAVINGS,
    CostAssignment,
    CostType,
    normalize_cost_assignment,
)
from stacka.domain.households.service import load_household_context
from stacka.domain.periods.service import period_dates_for_label

__all__ = [
    "Allocation",
    "CostAssignment",
    "CostType",
    "SpendingLine",
    "SpendingSummary",
    "allocate",
    "household_spending_for_period",
    "is_savings",
    "split_shared",
    "summarize_spending",
]


def split_shared(amount_cents: int) -> tuple[int, int]:
    """Return ``(user_share, partner_share)``; the odd unit stays with the user."""
    sign = -1 if amount_cents < 0 else 1
    partner_share = sign * (abs(amount_cents) // 2)
    return amount_cents - partner_share, partner_share


def allocate(
    amount_cents: int,
    assignment: CostAssignment | str | None,
    *,
    has_partner: bool,
) -> Allocation:
    if not has_partner:
        return Allocation(user_amount=amount_cents, partner_amount=0)
    resolved = normalize_cost_assignment(assignment)
    if resolved is CostAssignment.shared:
        user_share, partner_share = split_shared(amount_cents)
        return Allocation(user_amount=user_share, partner_amount=partner_share)
    if resolved is CostAssignment.partner:
        return Allocation(user_amount=0, partner_amount=amount_cents)
    return Allocation(user_amount=amount_cents, partner_amount=0)


def is_savings(cost_type: CostType | str | None) -> bool:
    if cost_type is None:
        return False
    value = cost_type.value if isinstance(cost_type, CostType) else cost_type
    return value == COST_TYPE_SAVINGS


def summarize_spending(
    lines: Iterable[SpendingLine],
    *,
    has_partner: bool,
    viewer_id: uuid.UUID | None = None,
) -> SpendingSummary:
    """Aggregate lines into spent totals, with Savings lines kept apart.

    Assignment tags are relative to whoever entered the expense. When
    ``viewer_id`` is given, lines entered by the other member are mirrored so
    ``user_spent`` always belongs to the viewer.
    """
    total_spent = 0
    user_spent = 0
    partner_spent = 0
    actual_savings = 0
    for line in lines:
        if is_savings(line.cost_type):
            actual_savings += line.amount_cents
            continue
        allocation = allocate(line.amount_cents, line.cost_assignment, has_partner=has_partner)
        entered_by_other = (
            has_partner
            and viewer_id is not None
            and line.user_id is not None
            and line.user_id != viewer_id
        )
        total_spent += line.amount_cents
        if entered_by_other:
            user_spent += allocation.partner_amount
            partner_spent += allocation.user_amount
        else:
            user_spent += allocation.user_amount
            partner_spent += allocation.partner_amount
    return SpendingSummary(
        total_spent=total_spent,
        user_spent=user_spent,
        partner_spent=partner_spent,
        actual_savings=actual_savings,
    )


async def household_spending_for_period(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    label: str,
    salary_day: int | None = None,
) -> SpendingSummary:
    household = await load_household_context(session, user_id)
    start_date, end_date = period_dates_for_label(label, salary_day or household.salary_day)
    stmt = (
        select(Expense)
        .options(selectinload(Expense.category))
        .where(
            Expense.user_id.in_(household.member_ids),
            Expense.date >= start_date,
            Expense.date <= end_date,
        )
        .order_by(Expense.date, Expense.expense_id)
    )
    result = await session.execute(stmt)
    lines = [
        SpendingLine(
            amount_cents=expense.amount_cents,
            cost_assignment=expense.cost_assignment,
            cost_type=expense.category.cost_type if expense.category else None,
            user_id=expense.user_id,
        )
        for expense in result.scalars().all()
    ]
    return summarize_spending(lines, has_partner=household.has_partner, viewer_id=user_id)
