"""
Account API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pesaledger.dependencies import get_db
from pesaledger.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountResponse,
    AccountList,
    TotalBalance,
)
from pesaledger.services import account_service

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=AccountList)
def list_accounts(db: Session = Depends(get_db)):
    """List all accounts."""
    accounts = account_service.list_accounts(db)
    return AccountList(
        items=[AccountResponse.model_validate(a) for a in accounts],
        total=len(accounts)
    )


@router.get("/total-balance", response_model=TotalBalance)
def total_balance(db: Session = Depends(get_db)):
    return TotalBalance(total_balance=account_service.get_total_balance(db))


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    account: AccountCreate,
    db: Session = Depends(get_db)
):
    """Create a new account."""
    try:
        return account_service.create_account(db, account.name, account.sender_pattern, account.balance)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db)
):
    """Get a specific account."""
    try:
        return account_service.get_account(db, account_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Account not found")


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    account_update: AccountUpdate,
    db: Session = Depends(get_db)
):
    """Rename an account or change its sender pattern."""
    try:
        account_service.get_account(db, account_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Account not found")
    try:
        return account_service.update_account(
            db, account_id, name=account_update.name, sender_pattern=account_update.sender_pattern
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{account_id}", status_code=204)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db)
):
    """Delete an account and all of its transactions."""
    try:
        account_service.delete_account(db, account_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Account not found")
    return None
