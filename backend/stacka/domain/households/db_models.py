from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from stacka.infra.db import Base, UUID_TYPE
from stacka.settings import settings

PARTNER_STATUS_PENDING = "pending"
PARTNER_STATUS_ACTIVE = "active"


class Profile(Base):
    __tablename__ = "profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID_TYPE,
        primary_key=True,
        default=uuid.uuid4,
    )
    first_name: Mapped[str | None] = mapped_column(String(120))
    salary_day: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=lambda: settings.default_salary_day,
    )
    ccm_invoice_break_date: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=lambda: settings.default_invoice_break_day,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("salary_day BETWEEN 1 AND 31", name="ck_profiles_salary_day"),
        CheckConstraint(
            "ccm_invoice_break_date BETWEEN 1 AND 28", name="ck_profiles_ccm_invoice_break_date"
        ),
    )


class PartnerConnection(Base):
    __tablename__ = "partner_connections"

    connection_id: Mapped[uuid.UUID] = mapped_column(
        UUID_TYPE,
        primary_key=True,
        default=uuid.uuid4,
    )
    user1_id: Mapped[uuid.UUID] = mapped_column(UUID_TYPE, nullable=False)
    user2_id: Mapped[uuid.UUID] = mapped_column(UUID_TYPE, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PARTNER_STATUS_PENDING
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_partner_connections_user1", "user1_id"),
        Index("ix_partner_connections_user2", "user2_id"),
    )
