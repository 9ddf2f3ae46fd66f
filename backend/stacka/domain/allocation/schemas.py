from __future__ import annotations

import uuid
from dataclasses import dataclass

from stacka.domain.expenses.statuses import CostAssignment, CostType


@dataclass(frozen=True)
class Allocation:
    user_amount: int
    partner_amount: int

    @property
    def total(self) -> int:
        return self.user_amount + self.partner_amount


@dataclass(frozen=True)
class SpendingLine:
    amount_cents: int
    cost_assignment: CostAssignment | str | None = None
    cost_type: CostType | str | None = None
    user_id: uuid.UUID | None = None


@dataclass(frozen=True)
class SpendingSummary:
    total_spent: int
    user_spent: int
    partner_spent: int
    actual_savings: int
