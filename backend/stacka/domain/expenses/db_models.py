from __future__ import annotations

import uuid
import datetime as dt

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stacka.domain.expenses.statuses import COST_ASSIGNMENT_PERSONAL, COST_TYPE_VARIABLE
from stacka.infra.db import Base, UUID_TYPE


class Category(Base):
    __tablename__ = "categories"

    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID_TYPE,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID_TYPE, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    cost_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=COST_TYPE_VARIABLE
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    expenses: Mapped[list["Expense"]] = relationship(
        "Expense",
        back_populates="category",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_categories_user_id", "user_id"),)


class Expense(Base):
    __tablename__ = "expenses"

    expense_id: Mapped[uuid.UUID] = mapped_column(
        UUID_TYPE,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID_TYPE, nullable=False)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.category_id", ondelete="SET NULL"), nullable=True
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    cost_assignment: Mapped[str] = mapped_column(
        String(16), nullable=False, default=COST_ASSIGNMENT_PERSONAL
    )
    is_ccm: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    is_recurring: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    recurring_expense_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("recurring_expenses.recurring_expense_id", ondelete="SET NULL"),
        nullable=True,
    )
    # Calendar month ("YYYY-MM") a scheduler-created row was materialized for.
    recurring_period: Mapped[str | None] = mapped_column(String(7), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    category: Mapped[Category | None] = relationship("Category", back_populates="expenses")

    __table_args__ = (
        UniqueConstraint(
            "recurring_expense_id",
            "recurring_period",
            name="uq_expenses_recurring_period",
        ),
        Index("ix_expenses_user_date", "user_id", "date"),
        Index("ix_expenses_recurring_expense_id", "recurring_expense_id"),
    )
