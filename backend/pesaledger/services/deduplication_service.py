"""
Deduplication service for SMS-derived transactions.
"""

import hashlib
from typing import Optional

from sqlalchemy.orm import Session

from pesaledger.models.transaction import Transaction


def generate_sms_fingerprint(sender: str, body: str, timestamp: int) -> str:
    """
    Generate SHA256 fingerprint for a physical message.
    Uses sender|body|timestamp with the timestamp in epoch milliseconds.
    """
    combined = "|".join([sender, body, str(timestamp)])
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


def find_transaction_by_fingerprint(db: Session, fingerprint: str) -> Optional[Transaction]:
    """Indexed equality lookup on the unique fingerprint column."""
    return db.query(Transaction).filter(Transaction.fingerprint == fingerprint).first()


def is_duplicate(db: Session, fingerprint: str) -> bool:
    """Check if a transaction with this fingerprint already exists"""
    return find_transaction_by_fingerprint(db, fingerprint) is not None
