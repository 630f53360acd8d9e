"""
Transaction schemas.
"""

from pydantic import BaseModel, Field, computed_field, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from pesaledger.models.transaction import TransactionKind, TransactionStatus
from pesaledger.services.transaction_service import strip_category_marker


class TransactionCreate(BaseModel):
    """Manual entry; message-derived rows come in through /sms."""
    account_id: int
    amount: Decimal = Field(..., ge=0)
    fee: Decimal = Field(Decimal("0"), ge=0)
    kind: TransactionKind
    date: datetime
    description: str = ""
    category_item_id: Optional[int] = None
    exclude_from_weekly: bool = False
    destination_account_id: Optional[int] = None

    @model_validator(mode="after")
    def check_destination(self):
        if self.destination_account_id is None:
            return self
        if self.kind not in (TransactionKind.TRANSFER, TransactionKind.WITHDRAW):
            raise ValueError("Only transfers and withdrawals have a destination account")
        if self.destination_account_id == self.account_id:
            raise ValueError("Destination account must differ from the source account")
        return self


class TransactionUpdate(BaseModel):
    description: Optional[str] = None
    exclude_from_weekly: Optional[bool] = None


class CategorizeRequest(BaseModel):
    category_item_id: int


class CategorizeCategoryRequest(BaseModel):
    category_id: int


class TransactionResponse(BaseModel):
    id: int
    account_id: int
    destination_account_id: Optional[int] = None
    category_item_id: Optional[int]
    category_id: Optional[int]
    amount: Decimal
    fee: Decimal
    kind: TransactionKind
    description: str
    date: datetime
    status: TransactionStatus
    fingerprint: Optional[str]
    remote_id: Optional[str] = None
    exclude_from_weekly: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @computed_field
    @property
    def display_description(self) -> str:
        return strip_category_marker(self.description)


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    pages: int


class UncategorizedCount(BaseModel):
    count: int
