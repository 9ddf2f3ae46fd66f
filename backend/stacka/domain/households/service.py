from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stacka.domain.households.db_models import (
    PARTNER_STATUS_ACTIVE,
    PartnerConnection,
    Profile,
)
from stacka.settings import settings


@dataclass(frozen=True)
class HouseholdContext:
    user_id: uuid.UUID
    partner_id: uuid.UUID | None
    salary_day: int
    invoice_break_day: int

    @property
    def has_partner(self) -> bool:
        return self.partner_id is not None

    @property
    def member_ids(self) -> list[uuid.UUID]:
        if self.partner_id is None:
            return [self.user_id]
        return [self.user_id, self.partner_id]


async def resolve_partner_id(session: AsyncSession, user_id: uuid.UUID) -> uuid.UUID | None:
    stmt = (
        select(PartnerConnection)
        .where(
            or_(PartnerConnection.user1_id == user_id, PartnerConnection.user2_id == user_id),
            PartnerConnection.status == PARTNER_STATUS_ACTIVE,
        )
        .order_by(PartnerConnection.created_at.desc())
        .limit(1)
    )
    connection = await session.scalar(stmt)
    if connection is None:
        return None
    return connection.user2_id if connection.user1_id == user_id else connection.user1_id


async def load_household_context(session: AsyncSession, user_id: uuid.UUID) -> HouseholdContext:
    profile = await session.get(Profile, user_id)
    partner_id = await resolve_partner_id(session, user_id)
    return HouseholdContext(
        user_id=user_id,
        partner_id=partner_id,
        salary_day=profile.salary_day if profile else settings.default_salary_day,
        invoice_break_day=(
            profile.ccm_invoice_break_date if profile else settings.default_invoice_break_day
        ),
    )
