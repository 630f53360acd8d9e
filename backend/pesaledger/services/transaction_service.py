"""Service for ledger transactions and categorization."""

import logging
import re
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pesaledger.models.category import Category, CategoryItem
from pesaledger.models.transaction import Transaction, TransactionKind, TransactionStatus
from pesaledger.parsers.base import ParsedTransaction
from pesaledger.services import account_service, category_service

logger = logging.getLogger(__name__)

# Category-only categorization is mirrored into the description so older
# clients that only read the text still see it.
CATEGORY_MARKER = re.compile(r"^\[CATEGORY_ONLY:([^\]]+)\]")


def format_category_marker(category_name: str, description: str) -> str:
    return f"[CATEGORY_ONLY:{category_name}]{strip_category_marker(description)}"


def parse_category_marker(description: Optional[str]) -> Tuple[Optional[str], str]:
    """Return (category name or None, original free text)."""
    text = description or ""
    match = CATEGORY_MARKER.match(text)
    if not match:
        return None, text
    return match.group(1), text[match.end():]


def strip_category_marker(description: Optional[str]) -> str:
    return parse_category_marker(description)[1]


def get_transaction(db: Session, transaction_id: int) -> Transaction:
    txn = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not txn:
        raise ValueError(f"Transaction {transaction_id} not found")
    return txn


def list_transactions(
    db: Session,
    account_id: Optional[int] = None,
    status: Optional[TransactionStatus] = None,
    kind: Optional[TransactionKind] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 50,
) -> Tuple[List[Transaction], int]:
    """Filtered, newest-first page of transactions plus the total match count."""
    query = db.query(Transaction)

    if account_id:
        query = query.filter(Transaction.account_id == account_id)
    if status:
        query = query.filter(Transaction.status == status)
    if kind:
        query = query.filter(Transaction.kind == kind)
    if start:
        query = query.filter(Transaction.date >= start)
    if end:
        query = query.filter(Transaction.date < end)
    if search:
        search_term = f"%{search}%"
        query = query.outerjoin(CategoryItem, Transaction.category_item_id == CategoryItem.id).filter(
            or_(
                Transaction.description.ilike(search_term),
                CategoryItem.name.ilike(search_term)
            )
        )

    total = query.count()
    items = query.order_by(Transaction.date.desc(), Transaction.id.desc()).offset(offset).limit(limit).all()
    return items, total


def list_uncategorized(db: Session) -> List[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.status == TransactionStatus.UNCATEGORIZED)
        .order_by(Transaction.date.desc())
        .all()
    )


def count_uncategorized(db: Session) -> int:
    return db.query(Transaction).filter(Transaction.status == TransactionStatus.UNCATEGORIZED).count()


def new_remote_id() -> str:
    """Cross-device identity for a transaction that has no fingerprint."""
    return uuid.uuid4().hex


MOVEMENT_KINDS = (TransactionKind.TRANSFER, TransactionKind.WITHDRAW)


def create_transaction(
    db: Session,
    account_id: int,
    amount: Decimal,
    kind: TransactionKind,
    date: datetime,
    description: str = "",
    fee: Decimal = Decimal("0"),
    fingerprint: Optional[str] = None,
    category_item_id: Optional[int] = None,
    exclude_from_weekly: bool = False,
    apply_to_balance: bool = True,
    destination_account_id: Optional[int] = None,
) -> Transaction:
    """
    Record a transaction entered by hand (fingerprint normally None).

    The balance deltas for the owning account and, for transfers and
    withdrawals, the destination account are applied in the same commit.
    """
    if amount < 0:
        raise ValueError("Amount must be non-negative; use the kind for direction")
    account = account_service.get_account(db, account_id)

    destination = None
    if destination_account_id is not None:
        if kind not in MOVEMENT_KINDS:
            raise ValueError("Only transfers and withdrawals have a destination account")
        destination = account_service.get_account(db, destination_account_id)
        if destination.id == account.id:
            raise ValueError("Destination account must differ from the source account")

    txn = Transaction(
        account_id=account.id,
        destination_account_id=destination.id if destination else None,
        amount=amount,
        fee=fee,
        kind=kind,
        date=date,
        description=description,
        fingerprint=fingerprint,
        remote_id=None if fingerprint else new_remote_id(),
        exclude_from_weekly=exclude_from_weekly,
        status=TransactionStatus.UNCATEGORIZED,
    )
    if category_item_id is not None:
        item = category_service.get_category_item(db, category_item_id)
        _assign_item(txn, item)

    try:
        db.add(txn)
        db.flush()
        if apply_to_balance:
            delta = amount if kind == TransactionKind.CREDIT else -(amount + fee)
            account_service.apply_balance_delta(db, account.id, delta)
            if destination is not None:
                account_service.apply_balance_delta(db, destination.id, amount)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(txn)
    return txn


def record_classified_transaction(
    db: Session,
    parsed: ParsedTransaction,
    fingerprint: str,
    auto_categorize: bool = True,
) -> Transaction:
    """
    Persist a classified message as one unit of work.

    Account creation, the transaction insert and every balance delta commit
    together. A second insert of the same fingerprint fails on the unique
    constraint and leaves no balance change behind.
    """
    try:
        account = account_service.get_or_create_account(db, parsed.account_name, parsed.account_sender_pattern)
        targets = [
            (account_service.get_or_create_account(db, delta.account_name, delta.sender_pattern), delta)
            for delta in parsed.deltas
        ]
        destination_id = next(
            (target.id for target, delta in targets if delta.account_name == parsed.destination_account_name),
            None,
        )

        txn = Transaction(
            account_id=account.id,
            destination_account_id=destination_id,
            amount=parsed.amount,
            fee=parsed.fee,
            kind=parsed.kind,
            description=parsed.description,
            date=parsed.date,
            status=parsed.status,
            fingerprint=fingerprint,
        )
        if auto_categorize and parsed.category_item_name:
            item = category_service.find_category_item_by_name(db, parsed.category_item_name)
            if item:
                _assign_item(txn, item)

        db.add(txn)
        db.flush()

        for target, delta in targets:
            account_service.apply_balance_delta(db, target.id, delta.amount)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(txn)
    return txn


def update_transaction(
    db: Session,
    transaction_id: int,
    description: Optional[str] = None,
    exclude_from_weekly: Optional[bool] = None,
) -> Transaction:
    txn = get_transaction(db, transaction_id)
    if description is not None:
        category_name, _ = parse_category_marker(txn.description)
        txn.description = format_category_marker(category_name, description) if category_name else description
    if exclude_from_weekly is not None:
        txn.exclude_from_weekly = exclude_from_weekly
    db.commit()
    db.refresh(txn)
    return txn


def delete_transaction(db: Session, transaction_id: int, revert_balance: bool = False) -> None:
    """
    Delete a transaction; balances are only touched when asked to.

    Reverting a transfer or withdrawal also takes the credit back from the
    destination account. A message-derived movement whose destination is no
    longer known cannot be reverted and raises ValueError.
    """
    txn = get_transaction(db, transaction_id)
    if revert_balance and txn.kind in MOVEMENT_KINDS and txn.fingerprint and txn.destination_account_id is None:
        raise ValueError("Destination account is unknown; the balances cannot be reverted")

    try:
        if revert_balance:
            delta = -txn.amount if txn.kind == TransactionKind.CREDIT else txn.amount + txn.fee
            account_service.apply_balance_delta(db, txn.account_id, delta)
            if txn.destination_account_id is not None:
                account_service.apply_balance_delta(db, txn.destination_account_id, -txn.amount)
        db.delete(txn)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _assign_item(txn: Transaction, item: CategoryItem) -> None:
    txn.category_item_id = item.id
    txn.category_id = item.category_id
    txn.status = TransactionStatus.CATEGORIZED


def categorize(db: Session, transaction_id: int, category_item_id: int) -> Transaction:
    """Attach a category item and mark the transaction categorized."""
    txn = get_transaction(db, transaction_id)
    item = category_service.get_category_item(db, category_item_id)
    _assign_item(txn, item)
    txn.description = strip_category_marker(txn.description)
    db.commit()
    db.refresh(txn)
    return txn


def categorize_by_category_only(db: Session, transaction_id: int, category_id: int) -> Transaction:
    """
    Categorize to a category without picking an item.

    Sets the category column and also writes the bracketed description
    marker; strip_category_marker recovers the original text.
    """
    txn = get_transaction(db, transaction_id)
    category: Category = category_service.get_category(db, category_id)
    txn.category_item_id = None
    txn.category_id = category.id
    txn.description = format_category_marker(category.name, txn.description)
    txn.status = TransactionStatus.CATEGORIZED
    db.commit()
    db.refresh(txn)
    return txn


def uncategorize(db: Session, transaction_id: int) -> Transaction:
    txn = get_transaction(db, transaction_id)
    txn.category_item_id = None
    txn.category_id = None
    txn.description = strip_category_marker(txn.description)
    txn.status = TransactionStatus.UNCATEGORIZED
    db.commit()
    db.refresh(txn)
    return txn


def latest_fingerprinted_date(db: Session) -> Optional[datetime]:
    """Effective date of the newest transaction that came from a message."""
    row = (
        db.query(Transaction.date)
        .filter(Transaction.fingerprint.isnot(None))
        .order_by(Transaction.date.desc())
        .first()
    )
    return row[0] if row else None
