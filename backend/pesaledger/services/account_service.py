"""Service for accounts and their running balances."""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from pesaledger.database import utcnow
from pesaledger.models.account import Account
from pesaledger.models.transaction import Transaction

logger = logging.getLogger(__name__)


def list_accounts(db: Session) -> List[Account]:
    return db.query(Account).order_by(Account.id).all()


def get_account(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise ValueError(f"Account {account_id} not found")
    return account


def get_account_by_name(db: Session, name: str) -> Optional[Account]:
    return db.query(Account).filter(func.lower(Account.name) == name.strip().lower()).first()


def create_account(
    db: Session,
    name: str,
    sender_pattern: str = "MPESA",
    balance: Decimal = Decimal("0"),
) -> Account:
    if get_account_by_name(db, name):
        raise ValueError(f"Account '{name}' already exists")
    account = Account(name=name.strip(), sender_pattern=sender_pattern, balance=balance)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def get_or_create_account(db: Session, name: str, sender_pattern: str = "MPESA") -> Account:
    """
    Find an account by name or stage a new zero-balance one.

    Does not commit; the caller owns the unit of work.
    """
    account = get_account_by_name(db, name)
    if account:
        return account
    account = Account(name=name, sender_pattern=sender_pattern, balance=Decimal("0"))
    db.add(account)
    db.flush()
    logger.info("Created account '%s' on first reference", name)
    return account


def update_account(
    db: Session,
    account_id: int,
    name: Optional[str] = None,
    sender_pattern: Optional[str] = None,
) -> Account:
    account = get_account(db, account_id)
    if name is not None and name != account.name:
        existing = get_account_by_name(db, name)
        if existing and existing.id != account.id:
            raise ValueError(f"Account '{name}' already exists")
        account.name = name.strip()
    if sender_pattern is not None:
        account.sender_pattern = sender_pattern
    db.commit()
    db.refresh(account)
    return account


def delete_account(db: Session, account_id: int) -> None:
    """Delete an account together with its transactions."""
    account = get_account(db, account_id)
    db.delete(account)
    db.commit()


def apply_balance_delta(db: Session, account_id: int, delta: Decimal) -> None:
    """
    Add a signed delta to the stored balance inside the current unit of work.

    The increment happens in SQL so concurrent deltas commute.
    """
    db.query(Account).filter(Account.id == account_id).update(
        {Account.balance: Account.balance + delta, Account.updated_at: utcnow()},
        synchronize_session=False,
    )


def get_total_balance(db: Session) -> Decimal:
    total = db.query(func.sum(Account.balance)).scalar()
    return Decimal(str(total)) if total is not None else Decimal("0")


def list_accounts_with_transaction_counts(db: Session) -> List[Tuple[Account, int]]:
    rows = (
        db.query(Account, func.count(Transaction.id))
        .outerjoin(Transaction, Transaction.account_id == Account.id)
        .group_by(Account.id)
        .order_by(Account.id)
        .all()
    )
    return [(account, count) for account, count in rows]
