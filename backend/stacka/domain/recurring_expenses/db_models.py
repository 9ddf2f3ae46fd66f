from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stacka.domain.expenses.statuses import COST_ASSIGNMENT_PERSONAL
from stacka.infra.db import Base, UUID_TYPE


class RecurringExpense(Base):
    __tablename__ = "recurring_expenses"

    recurring_expense_id: Mapped[uuid.UUID] = mapped_column(
        UUID_TYPE,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID_TYPE, nullable=False)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.category_id", ondelete="SET NULL"), nullable=True
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    day_of_month: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_assignment: Mapped[str] = mapped_column(
        String(16), nullable=False, default=COST_ASSIGNMENT_PERSONAL
    )
    is_ccm: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="1"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    category = relationship("Category")

    __table_args__ = (
        CheckConstraint("day_of_month BETWEEN 1 AND 31", name="ck_recurring_expenses_day_of_month"),
        Index("ix_recurring_expenses_active_day", "is_active", "day_of_month"),
    )
