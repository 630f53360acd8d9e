"""
Base parser class for provider message parsing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pesaledger.models.transaction import TransactionKind, TransactionStatus


@dataclass(frozen=True)
class BalanceDelta:
    """Signed change to apply to one account's running balance."""
    account_name: str
    amount: Decimal
    sender_pattern: str = "MPESA"


@dataclass
class ParsedTransaction:
    """Transaction-creation intent extracted from one message."""
    rule: str
    kind: TransactionKind
    account_name: str
    amount: Decimal
    fee: Decimal
    date: datetime
    description: str
    status: TransactionStatus = TransactionStatus.UNCATEGORIZED
    account_sender_pattern: str = "MPESA"
    destination_account_name: Optional[str] = None
    category_item_name: Optional[str] = None
    deltas: List[BalanceDelta] = field(default_factory=list)


class BaseMessageParser(ABC):
    """Base class for provider message parsers"""

    @abstractmethod
    def can_parse(self, sender: str) -> bool:
        """Check if this parser handles messages from the sender"""
        pass

    @abstractmethod
    def parse(self, body: str) -> Optional[ParsedTransaction]:
        """
        Classify a message body.

        Returns None when no known shape matches. Raises ExtractionError when a
        shape matched but amount or date could not be read.
        """
        pass
