"""
Provider message parsers.
"""

from pesaledger.parsers.base import BaseMessageParser, BalanceDelta, ParsedTransaction
from pesaledger.parsers.mpesa_parser import MpesaParser, MessageRule, RULES

__all__ = [
    "BaseMessageParser",
    "BalanceDelta",
    "ParsedTransaction",
    "MpesaParser",
    "MessageRule",
    "RULES",
]
