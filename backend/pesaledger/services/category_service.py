"""Service for the category / category item taxonomy."""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from pesaledger.models.category import Category, CategoryItem
from pesaledger.models.transaction import Transaction, TransactionStatus


def list_categories_with_items(db: Session) -> List[Category]:
    return db.query(Category).options(selectinload(Category.items)).order_by(Category.name).all()


def get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise ValueError(f"Category {category_id} not found")
    return category


def get_category_by_name(db: Session, name: str) -> Optional[Category]:
    return db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()


def create_category(db: Session, name: str) -> Category:
    if get_category_by_name(db, name):
        raise ValueError(f"Category '{name}' already exists")
    category = Category(name=name.strip())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def rename_category(db: Session, category_id: int, name: str) -> Category:
    category = get_category(db, category_id)
    existing = get_category_by_name(db, name)
    if existing and existing.id != category.id:
        raise ValueError(f"Category '{name}' already exists")
    category.name = name.strip()
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> None:
    """
    Delete a category and its items.

    Transactions that pointed at the category or one of its items lose the
    reference and go back to the uncategorized queue.
    """
    from pesaledger.services.transaction_service import strip_category_marker

    category = get_category(db, category_id)
    item_ids = [item.id for item in category.items]

    affected = db.query(Transaction).filter(
        (Transaction.category_id == category.id) | (Transaction.category_item_id.in_(item_ids))
    ).all()
    for txn in affected:
        txn.category_id = None
        txn.category_item_id = None
        txn.description = strip_category_marker(txn.description)
        txn.status = TransactionStatus.UNCATEGORIZED

    db.delete(category)
    db.commit()


def get_category_item(db: Session, item_id: int) -> CategoryItem:
    item = db.query(CategoryItem).filter(CategoryItem.id == item_id).first()
    if not item:
        raise ValueError(f"Category item {item_id} not found")
    return item


def create_category_item(db: Session, category_id: int, name: str) -> CategoryItem:
    category = get_category(db, category_id)
    duplicate = db.query(CategoryItem).filter(
        CategoryItem.category_id == category.id,
        func.lower(CategoryItem.name) == name.strip().lower()
    ).first()
    if duplicate:
        raise ValueError(f"Item '{name}' already exists in '{category.name}'")
    item = CategoryItem(category_id=category.id, name=name.strip())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def find_category_item_by_name(db: Session, name: str) -> Optional[CategoryItem]:
    """Case-insensitive exact name match across all categories."""
    return db.query(CategoryItem).filter(
        func.lower(CategoryItem.name) == name.strip().lower()
    ).order_by(CategoryItem.id).first()


def find_category_item(db: Session, category_name: str, item_name: str) -> Optional[CategoryItem]:
    return (
        db.query(CategoryItem)
        .join(Category, CategoryItem.category_id == Category.id)
        .filter(
            func.lower(Category.name) == category_name.strip().lower(),
            func.lower(CategoryItem.name) == item_name.strip().lower(),
        )
        .first()
    )


def search_category_items(db: Session, query: str, limit: int = 20) -> List[CategoryItem]:
    return (
        db.query(CategoryItem)
        .filter(CategoryItem.name.ilike(f"%{query}%"))
        .order_by(CategoryItem.name)
        .limit(limit)
        .all()
    )


def delete_category_item(db: Session, item_id: int) -> None:
    item = get_category_item(db, item_id)
    for txn in list(item.transactions):
        txn.category_item_id = None
        txn.category_id = None
        txn.status = TransactionStatus.UNCATEGORIZED
    db.delete(item)
    db.commit()
