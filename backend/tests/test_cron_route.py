import asyncio
import uuid
from datetime import date

import sqlalchemy as sa
from sqlalchemy.exc import OperationalError

from stacka.domain.expenses.db_models import Expense
from stacka.domain.recurring_expenses.db_models import RecurringExpense
from stacka.main import app
from stacka.settings import settings

CRON_PATH = "/api/cron/process-recurring-expenses"
CRON_SECRET = "cron-secret-for-tests"


def _freeze_today(monkeypatch, today: date) -> None:
    monkeypatch.setattr("stacka.api.routes_cron.local_today", lambda tz_name=None: today)


def _use_prod_settings() -> None:
    app.state.app_settings = settings.model_copy(
        update={"app_env": "prod", "cron_secret": CRON_SECRET}
    )


def _seed_template(async_session_maker, day_of_month: int) -> uuid.UUID:
    template = RecurringExpense(
        user_id=uuid.uuid4(),
        amount_cents=49_900,
        description="Hyra",
        day_of_month=day_of_month,
        cost_assignment="shared",
    )

    async def seed() -> None:
        async with async_session_maker() as session:
            session.add(template)
            await session.commit()

    asyncio.run(seed())
    return template.recurring_expense_id


def _count_expenses(async_session_maker) -> int:
    async def count() -> int:
        async with async_session_maker() as session:
            return await session.scalar(sa.select(sa.func.count(Expense.expense_id)))

    return asyncio.run(count())


def test_cron_processes_due_templates(client, async_session_maker, monkeypatch):
    _freeze_today(monkeypatch, date(2024, 5, 25))
    _seed_template(async_session_maker, 25)

    response = client.get(CRON_PATH)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["processed"] == 1
    assert body["skipped"] == 0
    assert body["message"] == "Successfully processed 1 recurring expenses"
    assert body["details"][0]["description"] == "Hyra"
    assert body["details"][0]["amount"] == 49_900
    assert _count_expenses(async_session_maker) == 1

    repeat = client.post(CRON_PATH)

    assert repeat.status_code == 200
    assert repeat.json()["processed"] == 0
    assert repeat.json()["message"] == "All recurring expenses already processed this month"
    assert _count_expenses(async_session_maker) == 1


def test_cron_nothing_scheduled(client, monkeypatch):
    _freeze_today(monkeypatch, date(2024, 5, 2))

    response = client.get(CRON_PATH)

    assert response.status_code == 200
    assert response.json()["message"] == "No recurring expenses scheduled for today"


def test_cron_rejects_missing_secret_in_prod(client, async_session_maker, monkeypatch):
    _freeze_today(monkeypatch, date(2024, 5, 25))
    _seed_template(async_session_maker, 25)
    _use_prod_settings()

    missing = client.get(CRON_PATH)
    wrong = client.get(CRON_PATH, headers={"Authorization": "Bearer not-the-secret"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "Unauthorized"}
    assert wrong.status_code == 401
    assert _count_expenses(async_session_maker) == 0


def test_cron_accepts_bearer_secret_in_prod(client, async_session_maker, monkeypatch):
    _freeze_today(monkeypatch, date(2024, 5, 25))
    _seed_template(async_session_maker, 25)
    _use_prod_settings()

    response = client.post(CRON_PATH, headers={"Authorization": f"Bearer {CRON_SECRET}"})

    assert response.status_code == 200
    assert response.json()["processed"] == 1


def test_cron_database_error_returns_500(client_no_raise, monkeypatch):
    _freeze_today(monkeypatch, date(2024, 5, 25))

    async def broken(session, *, today=None):
        raise OperationalError("INSERT INTO expenses", {}, Exception("connection lost"))

    monkeypatch.setattr(
        "stacka.domain.recurring_expenses.service.process_recurring_expenses", broken
    )

    response = client_no_raise.get(CRON_PATH)

    assert response.status_code == 500
    assert response.json() == {"error": "Database error"}


def test_cron_unexpected_error_returns_500(client_no_raise, monkeypatch):
    _freeze_today(monkeypatch, date(2024, 5, 25))

    async def broken(session, *, today=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(
        "stacka.domain.recurring_expenses.service.process_recurring_expenses", broken
    )

    response = client_no_raise.get(CRON_PATH)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
