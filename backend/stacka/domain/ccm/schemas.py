from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel


@dataclass(frozen=True)
class PaymentSplit:
    user_amount: int
    partner_amount: int
    unregistered_difference: int
    registered_total: int
    actual_invoice: int
    has_warning: bool


class InvoicePeriodResponse(BaseModel):
    invoice_period: str
    break_day: int
    start_date: date
    end_date: date
