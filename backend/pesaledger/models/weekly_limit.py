"""
Weekly spending limit database model.
"""

from sqlalchemy import Column, Integer, Date, DateTime, Numeric

from pesaledger.database import Base, utcnow


class WeeklySpendingLimit(Base):
    """Spending target for one Monday-to-Sunday week."""

    __tablename__ = "weekly_spending_limits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    week_start = Column(Date, nullable=False, unique=True)
    week_end = Column(Date, nullable=False)
    target_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
