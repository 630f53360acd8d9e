"""
Analytics schemas.
"""

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Optional


class CategoryTotal(BaseModel):
    category: str
    total: Decimal
    count: int


class MonthTotal(BaseModel):
    year: int
    month: int
    total: Decimal


class WeeklySummary(BaseModel):
    week_start: date
    week_end: date
    target_amount: Optional[Decimal]
    spent: Decimal
    remaining: Optional[Decimal]


class LedgerSummary(BaseModel):
    total_balance: Decimal
    uncategorized_count: int
    transaction_count: int
