"""
Category and category item database models.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from pesaledger.database import Base, utcnow


class Category(Base):
    """Top level of the two-level taxonomy."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    items = relationship(
        "CategoryItem",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="CategoryItem.name",
    )
    transactions = relationship("Transaction", back_populates="category")


class CategoryItem(Base):
    """Leaf of the taxonomy, e.g. Transport -> Uber."""

    __tablename__ = "category_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="items")
    transactions = relationship("Transaction", back_populates="category_item")

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_category_item_name"),
    )
