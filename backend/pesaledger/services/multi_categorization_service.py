"""Service for splitting one transaction across several category items."""

from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from pesaledger.models.multi_categorization import MultiCategorizationItem, MultiCategorizationList
from pesaledger.services import category_service, transaction_service

APPLY_TOLERANCE = Decimal("0.01")


def get_list(db: Session, list_id: int) -> MultiCategorizationList:
    multi_list = db.query(MultiCategorizationList).filter(MultiCategorizationList.id == list_id).first()
    if not multi_list:
        raise ValueError(f"Multi-categorization list {list_id} not found")
    return multi_list


def create_list(db: Session, name: str, transaction_id: int) -> MultiCategorizationList:
    transaction_service.get_transaction(db, transaction_id)
    multi_list = MultiCategorizationList(name=name, transaction_id=transaction_id)
    db.add(multi_list)
    db.commit()
    db.refresh(multi_list)
    return multi_list


def list_unapplied(db: Session) -> List[MultiCategorizationList]:
    return (
        db.query(MultiCategorizationList)
        .filter(MultiCategorizationList.is_applied == False)  # noqa: E712
        .order_by(MultiCategorizationList.created_at.desc())
        .all()
    )


def add_item(db: Session, list_id: int, category_item_id: int, amount: Decimal) -> MultiCategorizationItem:
    multi_list = get_list(db, list_id)
    if multi_list.is_applied:
        raise ValueError("List has already been applied")
    if amount <= 0:
        raise ValueError("Split amount must be positive")
    category_service.get_category_item(db, category_item_id)

    item = MultiCategorizationItem(list_id=multi_list.id, category_item_id=category_item_id, amount=amount)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, list_id: int, item_id: int) -> None:
    item = db.query(MultiCategorizationItem).filter(
        MultiCategorizationItem.id == item_id,
        MultiCategorizationItem.list_id == list_id
    ).first()
    if not item:
        raise ValueError(f"Split item {item_id} not found")
    db.delete(item)
    db.commit()


def list_total(multi_list: MultiCategorizationList) -> Decimal:
    return sum((Decimal(str(item.amount)) for item in multi_list.items), Decimal("0"))


def can_apply_list(db: Session, list_id: int) -> bool:
    """Splits may only be applied once they add up to the transaction amount."""
    multi_list = get_list(db, list_id)
    if not multi_list.items:
        return False
    parent_amount = Decimal(str(multi_list.transaction.amount))
    return abs(list_total(multi_list) - parent_amount) < APPLY_TOLERANCE


def apply_list(db: Session, list_id: int) -> MultiCategorizationList:
    """Mark the split applied and categorize the parent by its largest share."""
    if not can_apply_list(db, list_id):
        raise ValueError("Split amounts do not add up to the transaction amount")
    multi_list = get_list(db, list_id)
    largest = max(multi_list.items, key=lambda item: Decimal(str(item.amount)))

    multi_list.is_applied = True
    db.commit()
    transaction_service.categorize(db, multi_list.transaction_id, largest.category_item_id)
    db.refresh(multi_list)
    return multi_list


def delete_list(db: Session, list_id: int) -> None:
    multi_list = get_list(db, list_id)
    db.delete(multi_list)
    db.commit()
