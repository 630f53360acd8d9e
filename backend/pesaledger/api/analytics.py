"""
Analytics API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date, datetime, timedelta
from typing import Optional

from pesaledger.container import AppContainer
from pesaledger.dependencies import get_container, get_db
from pesaledger.schemas.analytics import CategoryTotal, LedgerSummary, MonthTotal, WeeklySummary
from pesaledger.services import analytics_service, weekly_limit_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/by-category", response_model=list[CategoryTotal])
def spending_by_category(
    start_date: Optional[date] = Query(None, description="Defaults to the first of this month"),
    end_date: Optional[date] = Query(None, description="Inclusive; defaults to today"),
    db: Session = Depends(get_db)
):
    """Debit totals per category over a date range."""
    today = date.today()
    start_date = start_date or date(today.year, today.month, 1)
    end_date = end_date or today
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date is before start_date")

    start = datetime.combine(start_date, datetime.min.time())
    end = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
    return analytics_service.spending_by_category(db, start, end)


@router.get("/monthly", response_model=list[MonthTotal])
def monthly_spending(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db)
):
    """Debit totals per month for one year."""
    return analytics_service.monthly_spending(db, year or date.today().year)


@router.get("/weekly", response_model=WeeklySummary)
def weekly_spending(
    week_of: Optional[date] = None,
    db: Session = Depends(get_db),
    container: AppContainer = Depends(get_container),
):
    """Spending against the limit for the Monday-start week containing week_of."""
    return weekly_limit_service.weekly_summary(
        db,
        week_of or date.today(),
        exclude_selected=container.settings.exclude_selected_from_weekly,
    )


@router.get("/summary", response_model=LedgerSummary)
def summary(db: Session = Depends(get_db)):
    """Total balance plus the uncategorized badge count."""
    return analytics_service.ledger_summary(db)
