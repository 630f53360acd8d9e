"""Aggregate spending queries over the ledger."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from pesaledger.models.category import Category
from pesaledger.models.transaction import Transaction, TransactionKind
from pesaledger.services.account_service import get_total_balance

UNCATEGORIZED_LABEL = "Uncategorized"


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))


def spending_by_category(db: Session, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    """
    Debit totals per category name for start <= date < end.

    Transactions without a category are reported under "Uncategorized".
    """
    label = func.coalesce(Category.name, UNCATEGORIZED_LABEL)
    rows = (
        db.query(label.label("category"), func.sum(Transaction.amount), func.count(Transaction.id))
        .select_from(Transaction)
        .outerjoin(Category, Transaction.category_id == Category.id)
        .filter(
            Transaction.kind == TransactionKind.DEBIT,
            Transaction.date >= start,
            Transaction.date < end,
        )
        .group_by(label)
        .all()
    )

    results = [
        {"category": name, "total": _to_decimal(total), "count": count}
        for name, total, count in rows
    ]
    return sorted(results, key=lambda r: r["total"], reverse=True)


def monthly_spending(db: Session, year: int) -> List[Dict[str, Any]]:
    """Debit totals per (year, month) for one calendar year."""
    year_col = extract("year", Transaction.date)
    month_col = extract("month", Transaction.date)
    rows = (
        db.query(year_col, month_col, func.sum(Transaction.amount))
        .filter(
            Transaction.kind == TransactionKind.DEBIT,
            Transaction.date >= datetime(year, 1, 1),
            Transaction.date < datetime(year + 1, 1, 1),
        )
        .group_by(year_col, month_col)
        .order_by(month_col)
        .all()
    )
    return [
        {"year": int(y), "month": int(m), "total": _to_decimal(total)}
        for y, m, total in rows
    ]


def week_bounds(day: date) -> tuple:
    """Monday and Sunday of the week containing day."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def weekly_spending(db: Session, day: date, exclude_selected: bool = False) -> Decimal:
    """
    Debit total for the Monday-start week containing day.

    With exclude_selected, transactions flagged exclude_from_weekly are left out.
    """
    monday, _ = week_bounds(day)
    start = datetime(monday.year, monday.month, monday.day)
    query = db.query(func.sum(Transaction.amount)).filter(
        Transaction.kind == TransactionKind.DEBIT,
        Transaction.date >= start,
        Transaction.date < start + timedelta(days=7),
    )
    if exclude_selected:
        query = query.filter(Transaction.exclude_from_weekly == False)  # noqa: E712
    return _to_decimal(query.scalar())


def ledger_summary(db: Session) -> Dict[str, Any]:
    from pesaledger.services.transaction_service import count_uncategorized

    return {
        "total_balance": get_total_balance(db),
        "uncategorized_count": count_uncategorized(db),
        "transaction_count": db.query(Transaction).count(),
    }
