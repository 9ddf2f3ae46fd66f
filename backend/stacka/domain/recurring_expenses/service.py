"""Daily materialization of recurring expense templates into concrete expenses.

Each active template produces at most one expense per calendar month. The
month is stored on the generated row as ``recurring_period`` and guarded by a
unique constraint, so overlapping runs never insert a second copy.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from stacka.domain.expenses.db_models import Expense
from stacka.domain.expenses.statuses import normalize_cost_assignment
from stacka.domain.periods.service import days_in_month, format_period_label
from stacka.domain.recurring_expenses import schemas
from stacka.domain.recurring_expenses.db_models import RecurringExpense
from stacka.infra.clock import local_today
from stacka.infra.db import dialect_name

logger = logging.getLogger(__name__)

MESSAGE_NOTHING_DUE = "No recurring expenses scheduled for today"
MESSAGE_ALL_PROCESSED = "All recurring expenses already processed this month"


def is_last_day_of_month(day: date) -> bool:
    return day.day == days_in_month(day.year, day.month)


def is_template_due(day_of_month: int, today: date) -> bool:
    if day_of_month == today.day:
        return True
    # Days the month does not have (e.g. the 31st in April) fire on its last day.
    return is_last_day_of_month(today) and day_of_month > today.day


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def target_date_for(day_of_month: int, year: int, month: int) -> date:
    return date(year, month, min(day_of_month, days_in_month(year, month)))


async def _due_templates(session: AsyncSession, today: date) -> list[RecurringExpense]:
    day_filter = RecurringExpense.day_of_month == today.day
    if is_last_day_of_month(today):
        day_filter = or_(day_filter, RecurringExpense.day_of_month > today.day)
    stmt = (
        select(RecurringExpense)
        .where(RecurringExpense.is_active.is_(True), day_filter)
        .order_by(RecurringExpense.created_at, RecurringExpense.recurring_expense_id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _already_processed_ids(
    session: AsyncSession, template_ids: list[uuid.UUID], today: date
) -> set[uuid.UUID]:
    month_start, month_end = month_bounds(today.year, today.month)
    stmt = select(Expense.recurring_expense_id).where(
        Expense.recurring_expense_id.in_(template_ids),
        Expense.date >= month_start,
        Expense.date <= month_end,
    )
    result = await session.execute(stmt)
    return {row for row in result.scalars().all() if row is not None}


def _expense_values(template: RecurringExpense, today: date) -> dict:
    return {
        "expense_id": uuid.uuid4(),
        "user_id": template.user_id,
        "category_id": template.category_id,
        "amount_cents": template.amount_cents,
        "description": template.description,
        "date": target_date_for(template.day_of_month, today.year, today.month),
        "cost_assignment": normalize_cost_assignment(template.cost_assignment).value,
        "is_ccm": bool(template.is_ccm),
        "is_recurring": True,
        "recurring_expense_id": template.recurring_expense_id,
        "recurring_period": format_period_label(today.year, today.month),
    }


def _insert_ignoring_duplicates(session: AsyncSession, rows: list[dict]):
    if dialect_name(session) == "postgresql":
        stmt = pg_insert(Expense).values(rows)
    else:
        stmt = sqlite_insert(Expense).values(rows)
    return stmt.on_conflict_do_nothing(
        index_elements=["recurring_expense_id", "recurring_period"]
    ).returning(Expense.recurring_expense_id)


async def process_recurring_expenses(
    session: AsyncSession, *, today: date | None = None
) -> schemas.RecurringRunReport:
    today = today or local_today()
    templates = await _due_templates(session, today)
    if not templates:
        return schemas.RecurringRunReport(message=MESSAGE_NOTHING_DUE)

    processed_ids = await _already_processed_ids(
        session, [template.recurring_expense_id for template in templates], today
    )
    pending = [
        template for template in templates if template.recurring_expense_id not in processed_ids
    ]
    if not pending:
        logger.info(
            "recurring_expenses_already_processed",
            extra={"extra": {"date": today.isoformat(), "skipped": len(templates)}},
        )
        return schemas.RecurringRunReport(
            skipped=len(templates),
            message=MESSAGE_ALL_PROCESSED,
        )

    rows = [_expense_values(template, today) for template in pending]
    try:
        result = await session.execute(_insert_ignoring_duplicates(session, rows))
        inserted_ids = set(result.scalars().all())
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    created = [
        template for template in pending if template.recurring_expense_id in inserted_ids
    ]
    skipped = len(templates) - len(created)
    logger.info(
        "recurring_expenses_processed",
        extra={
            "extra": {
                "date": today.isoformat(),
                "processed": len(created),
                "skipped": skipped,
                "conflicts": len(pending) - len(created),
            }
        },
    )
    return schemas.RecurringRunReport(
        processed=len(created),
        skipped=skipped,
        details=[
            schemas.ProcessedExpense(
                description=template.description,
                amount=template.amount_cents,
                user_id=template.user_id,
            )
            for template in created
        ],
        message=f"Successfully processed {len(created)} recurring expenses",
    )
