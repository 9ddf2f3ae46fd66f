"""Household income lookups with a degraded own-income fallback.

The household view sums both partners' monthly income rows. When that query
fails the caller still gets a usable answer built from their own rows only,
with ``partner_income`` reported as zero.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Awaitable, Callable, Protocol, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stacka.domain.errors import DomainError
from stacka.domain.households.db_models import Profile
from stacka.domain.households.service import resolve_partner_id
from stacka.domain.incomes.db_models import MonthlyIncome
from stacka.domain.incomes.schemas import HouseholdIncomeRow, HouseholdIncomeTotal, IncomeReminder
from stacka.domain.periods.service import current_budget_period, shift_period_label
from stacka.infra.metrics import metrics

logger = logging.getLogger(__name__)

NOTHING_TO_COPY_DETAIL = "Inga inkomster att kopiera från förra månaden"
DEFAULT_OWNER_NAME = "Du"

T = TypeVar("T")


class IncomeSource(Protocol):
    name: str

    async def total(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> HouseholdIncomeTotal: ...

    async def has_income(self, session: AsyncSession, user_id: uuid.UUID, period: str) -> bool: ...

    async def rows(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> list[HouseholdIncomeRow]: ...


async def _own_rows(session: AsyncSession, user_id: uuid.UUID, period: str) -> list[MonthlyIncome]:
    stmt = (
        select(MonthlyIncome)
        .where(MonthlyIncome.user_id == user_id, MonthlyIncome.period == period)
        .order_by(MonthlyIncome.created_at, MonthlyIncome.income_id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _first_name(session: AsyncSession, user_id: uuid.UUID) -> str | None:
    return await session.scalar(select(Profile.first_name).where(Profile.user_id == user_id))


def _row(income: MonthlyIncome, *, is_own: bool, owner_name: str | None) -> HouseholdIncomeRow:
    return HouseholdIncomeRow(
        income_id=income.income_id,
        user_id=income.user_id,
        period=income.period,
        name=income.name,
        amount_cents=income.amount_cents,
        is_own=is_own,
        owner_name=owner_name,
        created_at=income.created_at,
    )


class HouseholdAggregateSource:
    """Both members' rows, summed per member by the database."""

    name = "household"

    async def total(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> HouseholdIncomeTotal:
        partner_id = await resolve_partner_id(session, user_id)
        member_ids = [user_id] if partner_id is None else [user_id, partner_id]
        stmt = (
            select(MonthlyIncome.user_id, func.coalesce(func.sum(MonthlyIncome.amount_cents), 0))
            .where(MonthlyIncome.user_id.in_(member_ids), MonthlyIncome.period == period)
            .group_by(MonthlyIncome.user_id)
        )
        result = await session.execute(stmt)
        sums = {member_id: int(amount) for member_id, amount in result.all()}
        user_income = sums.get(user_id, 0)
        partner_income = sums.get(partner_id, 0) if partner_id is not None else 0
        return HouseholdIncomeTotal(
            total_income=user_income + partner_income,
            user_income=user_income,
            partner_income=partner_income,
        )

    async def has_income(self, session: AsyncSession, user_id: uuid.UUID, period: str) -> bool:
        stmt = select(func.count(MonthlyIncome.income_id)).where(
            MonthlyIncome.user_id == user_id, MonthlyIncome.period == period
        )
        return bool(await session.scalar(stmt))

    async def rows(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> list[HouseholdIncomeRow]:
        partner_id = await resolve_partner_id(session, user_id)
        member_ids = [user_id] if partner_id is None else [user_id, partner_id]
        stmt = (
            select(MonthlyIncome, Profile.first_name)
            .outerjoin(Profile, Profile.user_id == MonthlyIncome.user_id)
            .where(MonthlyIncome.user_id.in_(member_ids), MonthlyIncome.period == period)
            .order_by(MonthlyIncome.created_at, MonthlyIncome.income_id)
        )
        result = await session.execute(stmt)
        return [
            _row(income, is_own=income.user_id == user_id, owner_name=first_name)
            for income, first_name in result.all()
        ]


class OwnIncomeSource:
    """The caller's rows only; never sees the partner."""

    name = "own"

    async def total(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> HouseholdIncomeTotal:
        stmt = select(func.coalesce(func.sum(MonthlyIncome.amount_cents), 0)).where(
            MonthlyIncome.user_id == user_id, MonthlyIncome.period == period
        )
        total = int(await session.scalar(stmt) or 0)
        return HouseholdIncomeTotal(total_income=total, user_income=total, partner_income=0)

    async def has_income(self, session: AsyncSession, user_id: uuid.UUID, period: str) -> bool:
        stmt = (
            select(MonthlyIncome.income_id)
            .where(MonthlyIncome.user_id == user_id, MonthlyIncome.period == period)
            .limit(1)
        )
        return (await session.scalar(stmt)) is not None

    async def rows(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> list[HouseholdIncomeRow]:
        owner_name = await _first_name(session, user_id) or DEFAULT_OWNER_NAME
        return [
            _row(income, is_own=True, owner_name=owner_name)
            for income in await _own_rows(session, user_id, period)
        ]


class IncomeAggregator:
    def __init__(self, primary: IncomeSource, fallback: IncomeSource) -> None:
        self.primary = primary
        self.fallback = fallback

    async def _with_fallback(
        self,
        session: AsyncSession,
        operation: str,
        call: Callable[[IncomeSource], Awaitable[T]],
        *,
        user_id: uuid.UUID,
        period: str,
    ) -> T:
        # Savepoint so a failing primary query leaves the caller's pending writes intact.
        try:
            async with session.begin_nested():
                return await call(self.primary)
        except SQLAlchemyError as exc:
            logger.warning(
                "household_income_fallback",
                extra={
                    "extra": {
                        "operation": operation,
                        "source": self.primary.name,
                        "fallback": self.fallback.name,
                        "user_id": str(user_id),
                        "period": period,
                        "error": type(exc).__name__,
                    }
                },
            )
            metrics.record_income_fallback(operation)
            return await call(self.fallback)

    async def household_income_total(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> HouseholdIncomeTotal:
        return await self._with_fallback(
            session,
            "total",
            lambda source: source.total(session, user_id, period),
            user_id=user_id,
            period=period,
        )

    async def has_income_for_period(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> bool:
        return await self._with_fallback(
            session,
            "has_income",
            lambda source: source.has_income(session, user_id, period),
            user_id=user_id,
            period=period,
        )

    async def household_monthly_incomes(
        self, session: AsyncSession, user_id: uuid.UUID, period: str
    ) -> list[HouseholdIncomeRow]:
        return await self._with_fallback(
            session,
            "rows",
            lambda source: source.rows(session, user_id, period),
            user_id=user_id,
            period=period,
        )


default_aggregator = IncomeAggregator(HouseholdAggregateSource(), OwnIncomeSource())


async def household_income_total(
    session: AsyncSession, user_id: uuid.UUID, period: str
) -> HouseholdIncomeTotal:
    return await default_aggregator.household_income_total(session, user_id, period)


async def has_income_for_period(session: AsyncSession, user_id: uuid.UUID, period: str) -> bool:
    return await default_aggregator.has_income_for_period(session, user_id, period)


async def household_monthly_incomes(
    session: AsyncSession, user_id: uuid.UUID, period: str
) -> list[HouseholdIncomeRow]:
    return await default_aggregator.household_monthly_incomes(session, user_id, period)


def should_prompt_for_income(has_income: bool, *, reminder_dismissed: bool) -> bool:
    return not has_income and not reminder_dismissed


async def income_reminder_decision(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    salary_day: int,
    reminder_dismissed: bool,
    today: date | None = None,
    aggregator: IncomeAggregator | None = None,
) -> IncomeReminder:
    """Whether to remind the member to register income for the current period.

    ``reminder_dismissed`` is owned by the caller's session; this module keeps
    no state between calls.
    """
    period = current_budget_period(salary_day, today).label
    aggregator = aggregator or default_aggregator
    has_income = await aggregator.has_income_for_period(session, user_id, period)
    return IncomeReminder(
        period=period,
        has_income=has_income,
        should_prompt=should_prompt_for_income(has_income, reminder_dismissed=reminder_dismissed),
    )


async def copy_previous_period_incomes(
    session: AsyncSession, user_id: uuid.UUID, target_period: str
) -> list[MonthlyIncome]:
    source_period = shift_period_label(target_period, -1)
    previous = await _own_rows(session, user_id, source_period)
    if not previous:
        raise DomainError(detail=NOTHING_TO_COPY_DETAIL)

    copies = [
        MonthlyIncome(
            user_id=user_id,
            period=target_period,
            name=income.name,
            amount_cents=income.amount_cents,
        )
        for income in previous
    ]
    session.add_all(copies)
    await session.commit()
    logger.info(
        "monthly_incomes_copied",
        extra={
            "extra": {
                "user_id": str(user_id),
                "source_period": source_period,
                "target_period": target_period,
                "count": len(copies),
            }
        },
    )
    return copies
