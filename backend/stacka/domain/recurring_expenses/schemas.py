from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class ProcessedExpense(BaseModel):
    description: str
    amount: int
    user_id: uuid.UUID


class RecurringRunReport(BaseModel):
    success: bool = True
    processed: int = 0
    skipped: int = 0
    details: list[ProcessedExpense] = Field(default_factory=list)
    message: str
