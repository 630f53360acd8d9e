"""
Multi-categorization schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


class SplitListCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    transaction_id: int


class SplitItemCreate(BaseModel):
    category_item_id: int
    amount: Decimal = Field(..., gt=0)


class SplitItemResponse(BaseModel):
    id: int
    category_item_id: int
    amount: Decimal

    class Config:
        from_attributes = True


class SplitListResponse(BaseModel):
    id: int
    name: str
    transaction_id: int
    is_applied: bool
    items: list[SplitItemResponse] = []
    total: Decimal = Decimal("0")
    can_apply: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
