"""
Transaction database model.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Numeric, Text, Enum, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from pesaledger.database import Base, utcnow


class TransactionKind(str, enum.Enum):
    """Movement shape; direction is encoded here, never in the amount sign."""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    TRANSFER = "TRANSFER"
    WITHDRAW = "WITHDRAW"


class TransactionStatus(str, enum.Enum):
    """Categorization status."""
    UNCATEGORIZED = "UNCATEGORIZED"
    CATEGORIZED = "CATEGORIZED"


class Transaction(Base):
    """
    Transaction model.

    Transfers and withdrawals are a single row on the source account; the
    destination is remembered so the credit it received can be reversed.

    Message-derived rows are identified across devices by fingerprint,
    manual rows by remote_id.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    destination_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    category_item_id = Column(Integer, ForeignKey("category_items.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    fee = Column(Numeric(12, 2), nullable=False, default=0)
    kind = Column(Enum(TransactionKind), nullable=False)
    description = Column(Text, nullable=False, default="")
    date = Column(DateTime, nullable=False, index=True)  # Effective date parsed from the message
    status = Column(Enum(TransactionStatus), nullable=False, default=TransactionStatus.UNCATEGORIZED)
    fingerprint = Column(String(64), unique=True, nullable=True, index=True)  # Null for manual entries
    remote_id = Column(String(64), unique=True, nullable=True, index=True)  # Null for message-derived rows
    exclude_from_weekly = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions", foreign_keys=[account_id])
    destination_account = relationship("Account", foreign_keys=[destination_account_id])
    category_item = relationship("CategoryItem", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_date_account", "date", "account_id"),
        Index("idx_transaction_status", "status"),
        CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
    )
