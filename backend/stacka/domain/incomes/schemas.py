from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, model_validator


class HouseholdIncomeTotal(BaseModel):
    total_income: int = 0
    user_income: int = 0
    partner_income: int = 0

    @model_validator(mode="after")
    def validate_total(self) -> "HouseholdIncomeTotal":
        if self.total_income != self.user_income + self.partner_income:
            raise ValueError("total_income must equal user_income + partner_income")
        return self


class HouseholdIncomeRow(BaseModel):
    income_id: uuid.UUID
    user_id: uuid.UUID
    period: str
    name: str
    amount_cents: int
    is_own: bool
    owner_name: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class IncomeReminder:
    period: str
    has_income: bool
    should_prompt: bool
