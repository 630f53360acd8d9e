"""
Seed data for default categories and accounts.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from pesaledger.models import Account, Category, CategoryItem, WeeklySpendingLimit
from pesaledger.parsers.mpesa_parser import (
    BUSINESS_ACCOUNT, CASH_ACCOUNT, CASH_SENDER, MPESA_ACCOUNT, PROVIDER_SENDER, SAVINGS_ACCOUNT,
)
from pesaledger.services.analytics_service import week_bounds

logger = logging.getLogger(__name__)

DEFAULT_WEEKLY_LIMIT = Decimal("5000.00")

DEFAULT_CATEGORIES = {
    "Transport": ["Uber", "Matatu", "Boda Boda", "Fuel", "Parking"],
    "Food": ["Restaurant", "Groceries", "Fast Food", "Coffee", "Delivery"],
    "Bills": ["Electricity", "Water", "Internet", "Phone", "Rent"],
    "Airtime & Data": ["Airtime", "Data Bundles"],
    "Fees": ["M-Pesa Charges", "Bank Charges", "ATM Fees", "Transfer Fees"],
    "Savings": ["Emergency Fund", "Investment", "Fixed Deposit"],
    "Income": ["Salary", "Freelance", "Business", "Investment Returns"],
    "Shopping": ["Clothes", "Electronics", "Home Items", "Personal Care"],
    "Entertainment": ["Movies", "Games", "Sports", "Music", "Events"],
}

DEFAULT_ACCOUNTS = [
    (MPESA_ACCOUNT, PROVIDER_SENDER),
    (BUSINESS_ACCOUNT, PROVIDER_SENDER),
    (SAVINGS_ACCOUNT, PROVIDER_SENDER),
    (CASH_ACCOUNT, CASH_SENDER),
]


def seed_categories(db: Session) -> int:
    """Seed default categories with their items. Returns categories created."""
    existing_count = db.query(Category).count()
    if existing_count > 0:
        logger.info("Categories already seeded (%d categories exist)", existing_count)
        return 0

    for name, items in DEFAULT_CATEGORIES.items():
        category = Category(name=name)
        category.items = [CategoryItem(name=item) for item in items]
        db.add(category)
    db.commit()

    logger.info("Seeded %d default categories", len(DEFAULT_CATEGORIES))
    return len(DEFAULT_CATEGORIES)


def ensure_default_accounts(db: Session) -> int:
    """Stage any missing default account with a zero balance. Does not commit."""
    existing = {name.lower() for (name,) in db.query(Account.name).all()}
    created = 0
    for name, sender in DEFAULT_ACCOUNTS:
        if name.lower() not in existing:
            db.add(Account(name=name, sender_pattern=sender, balance=Decimal("0")))
            created += 1
    db.flush()
    return created


def ensure_week_limit(db: Session, amount: Decimal = DEFAULT_WEEKLY_LIMIT, today: Optional[date] = None) -> None:
    """Stage the current week's limit if there is none. Does not commit."""
    monday, sunday = week_bounds(today or date.today())
    if not db.query(WeeklySpendingLimit).filter(WeeklySpendingLimit.week_start == monday).first():
        db.add(WeeklySpendingLimit(week_start=monday, week_end=sunday, target_amount=amount))
        db.flush()


def seed_defaults(db: Session, weekly_limit: Decimal = DEFAULT_WEEKLY_LIMIT) -> None:
    """First-run seed: categories, accounts and this week's spending limit."""
    seed_categories(db)
    created = ensure_default_accounts(db)
    ensure_week_limit(db, weekly_limit)
    db.commit()
    if created:
        logger.info("Seeded %d default accounts", created)
