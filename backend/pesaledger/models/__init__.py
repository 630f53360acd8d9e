"""
Database models package.
"""

from pesaledger.models.account import Account
from pesaledger.models.category import Category, CategoryItem
from pesaledger.models.transaction import Transaction, TransactionKind, TransactionStatus
from pesaledger.models.multi_categorization import MultiCategorizationList, MultiCategorizationItem
from pesaledger.models.weekly_limit import WeeklySpendingLimit
from pesaledger.models.schema_version import SchemaVersion

__all__ = [
    "Account",
    "Category",
    "CategoryItem",
    "Transaction",
    "TransactionKind",
    "TransactionStatus",
    "MultiCategorizationList",
    "MultiCategorizationItem",
    "WeeklySpendingLimit",
    "SchemaVersion",
]
