from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel


@dataclass(frozen=True)
class BudgetPeriod:
    label: str
    start_date: date
    end_date: date
    display_name: str

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class BudgetPeriodResponse(BaseModel):
    period: str
    start_date: date
    end_date: date
    display_name: str

    @classmethod
    def from_period(cls, period: BudgetPeriod) -> "BudgetPeriodResponse":
        return cls(
            period=period.label,
            start_date=period.start_date,
            end_date=period.end_date,
            display_name=period.display_name,
        )


class CurrentPeriodResponse(BudgetPeriodResponse):
    days_until_salary: int
    progress: float


class BudgetPeriodListResponse(BaseModel):
    periods: list[BudgetPeriodResponse]
