"""
Account Pydantic schemas for API validation.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional


class AccountBase(BaseModel):
    """Base account schema."""
    name: str = Field(..., min_length=1, max_length=100)
    sender_pattern: str = Field("MPESA", min_length=1, max_length=50)


class AccountCreate(AccountBase):
    """Schema for creating an account."""
    balance: Decimal = Decimal("0")


class AccountUpdate(BaseModel):
    """Schema for updating an account."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    sender_pattern: Optional[str] = Field(None, min_length=1, max_length=50)


class AccountResponse(AccountBase):
    """Schema for account response."""
    id: int
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AccountList(BaseModel):
    """Schema for listing accounts."""
    items: list[AccountResponse]
    total: int


class TotalBalance(BaseModel):
    total_balance: Decimal
