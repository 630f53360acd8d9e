"""Service for weekly spending limits."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pesaledger.models.weekly_limit import WeeklySpendingLimit
from pesaledger.services.analytics_service import week_bounds, weekly_spending


def get_limit_for_date(db: Session, day: date) -> Optional[WeeklySpendingLimit]:
    monday, _ = week_bounds(day)
    return db.query(WeeklySpendingLimit).filter(WeeklySpendingLimit.week_start == monday).first()


def list_limits(db: Session) -> List[WeeklySpendingLimit]:
    return db.query(WeeklySpendingLimit).order_by(WeeklySpendingLimit.week_start.desc()).all()


def set_weekly_limit(db: Session, day: date, target_amount: Decimal) -> WeeklySpendingLimit:
    """Create or replace the limit for the week containing day."""
    if target_amount < 0:
        raise ValueError("Weekly limit must be non-negative")
    limit = get_limit_for_date(db, day)
    if limit is None:
        monday, sunday = week_bounds(day)
        limit = WeeklySpendingLimit(week_start=monday, week_end=sunday, target_amount=target_amount)
        db.add(limit)
    else:
        limit.target_amount = target_amount
    db.commit()
    db.refresh(limit)
    return limit


def ensure_current_week_limit(db: Session, default_amount: Decimal, today: Optional[date] = None) -> WeeklySpendingLimit:
    today = today or date.today()
    limit = get_limit_for_date(db, today)
    if limit:
        return limit
    return set_weekly_limit(db, today, default_amount)


def delete_limit(db: Session, limit_id: int) -> None:
    limit = db.query(WeeklySpendingLimit).filter(WeeklySpendingLimit.id == limit_id).first()
    if not limit:
        raise ValueError(f"Weekly limit {limit_id} not found")
    db.delete(limit)
    db.commit()


def weekly_summary(db: Session, day: date, exclude_selected: bool = False) -> Dict[str, Any]:
    monday, sunday = week_bounds(day)
    limit = get_limit_for_date(db, day)
    spent = weekly_spending(db, day, exclude_selected=exclude_selected)
    target = Decimal(str(limit.target_amount)) if limit else None
    return {
        "week_start": monday,
        "week_end": sunday,
        "target_amount": target,
        "spent": spent,
        "remaining": (target - spent) if target is not None else None,
    }
