"""
Inbound message schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pesaledger.models.transaction import TransactionKind, TransactionStatus
from pesaledger.services.ingestion import MessageSource


class InboundSms(BaseModel):
    sender: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    timestamp: Union[int, datetime]  # Epoch seconds/milliseconds or ISO-8601
    source: MessageSource = MessageSource.FOREGROUND


class ProcessResponse(BaseModel):
    outcome: str
    fingerprint: Optional[str] = None
    transaction_id: Optional[int] = None
    rule: Optional[str] = None


class BalanceDeltaResponse(BaseModel):
    account_name: str
    amount: Decimal


class ParsePreview(BaseModel):
    recognized: bool
    error: Optional[str] = None
    rule: Optional[str] = None
    kind: Optional[TransactionKind] = None
    account_name: Optional[str] = None
    destination_account_name: Optional[str] = None
    amount: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    date: Optional[datetime] = None
    description: Optional[str] = None
    status: Optional[TransactionStatus] = None
    category_item_name: Optional[str] = None
    deltas: list[BalanceDeltaResponse] = []


class CatchupRequest(BaseModel):
    messages: list[InboundSms]


class CatchupResponse(BaseModel):
    watermark: datetime
    scanned: int
    created: int
    failed: int
    outcomes: dict[str, int]
