"""
Multi-categorization (split) database models.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from pesaledger.database import Base, utcnow


class MultiCategorizationList(Base):
    """Splits one transaction across several category items."""

    __tablename__ = "multi_categorization_lists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    is_applied = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    transaction = relationship("Transaction")
    items = relationship(
        "MultiCategorizationItem",
        back_populates="multi_list",
        cascade="all, delete-orphan",
        order_by="MultiCategorizationItem.id",
    )


class MultiCategorizationItem(Base):
    """One share of a split."""

    __tablename__ = "multi_categorization_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    list_id = Column(Integer, ForeignKey("multi_categorization_lists.id", ondelete="CASCADE"), nullable=False)
    category_item_id = Column(Integer, ForeignKey("category_items.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    multi_list = relationship("MultiCategorizationList", back_populates="items")
    category_item = relationship("CategoryItem")
