"""
Weekly spending limit schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal


class WeeklyLimitSet(BaseModel):
    week_of: date
    target_amount: Decimal = Field(..., ge=0)


class WeeklyLimitResponse(BaseModel):
    id: int
    week_start: date
    week_end: date
    target_amount: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
