"""
Account ("wallet") database model.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from pesaledger.database import Base, utcnow


class Account(Base):
    """A named money source with a running balance."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    sender_pattern = Column(String(50), nullable=False, default="MPESA")  # Provider sender id
    balance = Column(Numeric(12, 2), nullable=False, default=0)  # Maintained by deltas only
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="account",
        foreign_keys="Transaction.account_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
