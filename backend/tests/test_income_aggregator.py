import logging
import uuid
from datetime import date

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import OperationalError

from stacka.domain.errors import DomainError
from stacka.domain.incomes import service as incomes
from stacka.domain.incomes.db_models import MonthlyIncome


async def _seed_incomes(async_session_maker, rows):
    async with async_session_maker() as session:
        session.add_all(
            [
                MonthlyIncome(user_id=user_id, period=period, name=name, amount_cents=amount)
                for user_id, period, name, amount in rows
            ]
        )
        await session.commit()


class FailingSource:
    name = "broken"

    async def total(self, session, user_id, period):
        raise OperationalError("SELECT household_total", {}, Exception("function missing"))

    async def has_income(self, session, user_id, period):
        raise OperationalError("SELECT has_income", {}, Exception("function missing"))

    async def rows(self, session, user_id, period):
        raise OperationalError("SELECT rows", {}, Exception("function missing"))


@pytest.mark.anyio
async def test_household_total_sums_both_members(async_session_maker, household):
    user_id, partner_id = household
    await _seed_incomes(
        async_session_maker,
        [
            (user_id, "2024-05", "Lön", 30_000_00),
            (user_id, "2024-05", "Barnbidrag", 1_250_00),
            (partner_id, "2024-05", "Lön", 25_000_00),
            (partner_id, "2024-04", "Lön", 99_999_00),
        ],
    )

    async with async_session_maker() as session:
        total = await incomes.household_income_total(session, user_id, "2024-05")

    assert total.user_income == 31_250_00
    assert total.partner_income == 25_000_00
    assert total.total_income == total.user_income + total.partner_income


@pytest.mark.anyio
async def test_household_total_without_partner(async_session_maker):
    user_id = uuid.uuid4()
    await _seed_incomes(async_session_maker, [(user_id, "2024-05", "Lön", 1000)])

    async with async_session_maker() as session:
        total = await incomes.household_income_total(session, user_id, "2024-05")

    assert (total.total_income, total.user_income, total.partner_income) == (1000, 1000, 0)


@pytest.mark.anyio
async def test_fallback_uses_own_rows_and_logs(async_session_maker, household, caplog):
    user_id, partner_id = household
    await _seed_incomes(
        async_session_maker,
        [(user_id, "2024-05", "Lön", 2000), (partner_id, "2024-05", "Lön", 3000)],
    )
    aggregator = incomes.IncomeAggregator(FailingSource(), incomes.OwnIncomeSource())

    with caplog.at_level(logging.WARNING):
        async with async_session_maker() as session:
            total = await aggregator.household_income_total(session, user_id, "2024-05")

    assert total.total_income == 2000
    assert total.user_income == 2000
    assert total.partner_income == 0
    assert any(record.getMessage() == "household_income_fallback" for record in caplog.records)


@pytest.mark.anyio
async def test_fallback_keeps_pending_writes_in_session(async_session_maker):
    user_id = uuid.uuid4()
    aggregator = incomes.IncomeAggregator(FailingSource(), incomes.OwnIncomeSource())

    async with async_session_maker() as session:
        session.add(MonthlyIncome(user_id=user_id, period="2024-05", name="Lön", amount_cents=1000))
        await session.flush()

        total = await aggregator.household_income_total(session, user_id, "2024-05")
        await session.commit()

    assert total.total_income == 1000

    async with async_session_maker() as session:
        stored = await session.scalar(
            sa.select(sa.func.sum(MonthlyIncome.amount_cents)).where(MonthlyIncome.user_id == user_id)
        )
    assert stored == 1000


@pytest.mark.anyio
async def test_has_income_only_counts_calling_member(async_session_maker, household):
    user_id, partner_id = household
    await _seed_incomes(async_session_maker, [(partner_id, "2024-05", "Lön", 3000)])

    async with async_session_maker() as session:
        assert await incomes.has_income_for_period(session, user_id, "2024-05") is False
        assert await incomes.has_income_for_period(session, partner_id, "2024-05") is True


@pytest.mark.anyio
async def test_has_income_fallback(async_session_maker):
    user_id = uuid.uuid4()
    await _seed_incomes(async_session_maker, [(user_id, "2024-05", "Lön", 3000)])
    aggregator = incomes.IncomeAggregator(FailingSource(), incomes.OwnIncomeSource())

    async with async_session_maker() as session:
        assert await aggregator.has_income_for_period(session, user_id, "2024-05") is True
        assert await aggregator.has_income_for_period(session, user_id, "2024-06") is False


@pytest.mark.parametrize(
    ("has_income", "dismissed", "expected"),
    [(False, False, True), (False, True, False), (True, False, False), (True, True, False)],
)
def test_should_prompt_for_income(has_income, dismissed, expected):
    assert incomes.should_prompt_for_income(has_income, reminder_dismissed=dismissed) is expected


@pytest.mark.anyio
async def test_income_reminder_decision(async_session_maker):
    user_id = uuid.uuid4()

    async with async_session_maker() as session:
        decision = await incomes.income_reminder_decision(
            session, user_id, salary_day=25, reminder_dismissed=False, today=date(2024, 5, 20)
        )
        dismissed = await incomes.income_reminder_decision(
            session, user_id, salary_day=25, reminder_dismissed=True, today=date(2024, 5, 20)
        )

    assert decision.period == "2024-05"
    assert decision.has_income is False
    assert decision.should_prompt is True
    assert dismissed.should_prompt is False


@pytest.mark.anyio
async def test_household_monthly_incomes_flags_ownership(async_session_maker, household):
    user_id, partner_id = household
    await _seed_incomes(
        async_session_maker,
        [(user_id, "2024-05", "Lön", 2000), (partner_id, "2024-05", "Pension", 3000)],
    )

    async with async_session_maker() as session:
        rows = await incomes.household_monthly_incomes(session, user_id, "2024-05")

    by_owner = {row.user_id: row for row in rows}
    assert by_owner[user_id].is_own is True
    assert by_owner[user_id].owner_name == "Alex"
    assert by_owner[partner_id].is_own is False
    assert by_owner[partner_id].owner_name == "Sam"


@pytest.mark.anyio
async def test_household_monthly_incomes_fallback_returns_own_rows(async_session_maker, household):
    user_id, partner_id = household
    await _seed_incomes(
        async_session_maker,
        [(user_id, "2024-05", "Lön", 2000), (partner_id, "2024-05", "Pension", 3000)],
    )
    aggregator = incomes.IncomeAggregator(FailingSource(), incomes.OwnIncomeSource())

    async with async_session_maker() as session:
        rows = await aggregator.household_monthly_incomes(session, user_id, "2024-05")

    assert [row.user_id for row in rows] == [user_id]
    assert rows[0].is_own is True


@pytest.mark.anyio
async def test_copy_previous_period_incomes(async_session_maker):
    user_id = uuid.uuid4()
    await _seed_incomes(
        async_session_maker,
        [(user_id, "2024-04", "Lön", 2000), (user_id, "2024-04", "Barnbidrag", 1250)],
    )

    async with async_session_maker() as session:
        copies = await incomes.copy_previous_period_incomes(session, user_id, "2024-05")

    assert len(copies) == 2
    async with async_session_maker() as session:
        result = await session.execute(
            sa.select(MonthlyIncome.name, MonthlyIncome.amount_cents).where(
                MonthlyIncome.user_id == user_id, MonthlyIncome.period == "2024-05"
            )
        )
        assert sorted(tuple(row) for row in result.all()) == [("Barnbidrag", 1250), ("Lön", 2000)]


@pytest.mark.anyio
async def test_copy_previous_period_incomes_requires_rows(async_session_maker):
    async with async_session_maker() as session:
        with pytest.raises(DomainError) as excinfo:
            await incomes.copy_previous_period_incomes(session, uuid.uuid4(), "2024-05")

    assert excinfo.value.detail == incomes.NOTHING_TO_COPY_DETAIL
