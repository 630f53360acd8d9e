"""
Weekly spending limit API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import date

from pesaledger.dependencies import get_db
from pesaledger.schemas.weekly_limit import WeeklyLimitResponse, WeeklyLimitSet
from pesaledger.services import weekly_limit_service

router = APIRouter(prefix="/weekly-limits", tags=["weekly-limits"])


@router.get("", response_model=list[WeeklyLimitResponse])
def list_limits(db: Session = Depends(get_db)):
    return weekly_limit_service.list_limits(db)


@router.put("", response_model=WeeklyLimitResponse)
def set_limit(request: WeeklyLimitSet, db: Session = Depends(get_db)):
    """Create or replace the limit for the week containing week_of."""
    try:
        return weekly_limit_service.set_weekly_limit(db, request.week_of, request.target_amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/current", response_model=WeeklyLimitResponse)
def current_limit(db: Session = Depends(get_db)):
    limit = weekly_limit_service.get_limit_for_date(db, date.today())
    if not limit:
        raise HTTPException(status_code=404, detail="No limit set for this week")
    return limit


@router.delete("/{limit_id}", status_code=204)
def delete_limit(limit_id: int, db: Session = Depends(get_db)):
    try:
        weekly_limit_service.delete_limit(db, limit_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Weekly limit not found")
    return None
