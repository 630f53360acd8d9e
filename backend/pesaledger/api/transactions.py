"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date, datetime, timedelta

from pesaledger.dependencies import get_db
from pesaledger.models.transaction import TransactionKind, TransactionStatus
from pesaledger.schemas.transaction import (
    CategorizeCategoryRequest,
    CategorizeRequest,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
    TransactionListResponse,
    UncategorizedCount,
)
from pesaledger.services import transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    account_id: Optional[int] = None,
    status: Optional[TransactionStatus] = None,
    kind: Optional[TransactionKind] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List transactions with filtering and pagination"""
    start = datetime.combine(start_date, datetime.min.time()) if start_date else None
    end = datetime.combine(end_date + timedelta(days=1), datetime.min.time()) if end_date else None

    transactions, total = transaction_service.list_transactions(
        db,
        account_id=account_id,
        status=status,
        kind=kind,
        start=start,
        end=end,
        search=search,
        offset=(page - 1) * per_page,
        limit=per_page,
    )
    pages = (total + per_page - 1) // per_page

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        pages=pages
    )


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(txn: TransactionCreate, db: Session = Depends(get_db)):
    """Record a manual transaction and apply it to the account balance"""
    try:
        created = transaction_service.create_transaction(
            db,
            account_id=txn.account_id,
            amount=txn.amount,
            kind=txn.kind,
            date=txn.date,
            description=txn.description,
            fee=txn.fee,
            category_item_id=txn.category_item_id,
            exclude_from_weekly=txn.exclude_from_weekly,
            destination_account_id=txn.destination_account_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TransactionResponse.model_validate(created)


@router.get("/uncategorized", response_model=list[TransactionResponse])
def list_uncategorized(db: Session = Depends(get_db)):
    return [TransactionResponse.model_validate(t) for t in transaction_service.list_uncategorized(db)]


@router.get("/uncategorized/count", response_model=UncategorizedCount)
def uncategorized_count(db: Session = Depends(get_db)):
    return UncategorizedCount(count=transaction_service.count_uncategorized(db))


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db)
):
    """Get a single transaction"""
    try:
        return TransactionResponse.model_validate(transaction_service.get_transaction(db, transaction_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Transaction not found")


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    update: TransactionUpdate,
    db: Session = Depends(get_db)
):
    try:
        txn = transaction_service.update_transaction(
            db, transaction_id, description=update.description, exclude_from_weekly=update.exclude_from_weekly
        )
    except ValueError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(txn)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    revert_balance: bool = False,
    db: Session = Depends(get_db)
):
    try:
        transaction_service.get_transaction(db, transaction_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    try:
        transaction_service.delete_transaction(db, transaction_id, revert_balance=revert_balance)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return None


@router.post("/{transaction_id}/categorize", response_model=TransactionResponse)
def categorize(
    transaction_id: int,
    request: CategorizeRequest,
    db: Session = Depends(get_db)
):
    """Assign a category item"""
    try:
        txn = transaction_service.categorize(db, transaction_id, request.category_item_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TransactionResponse.model_validate(txn)


@router.post("/{transaction_id}/categorize-category", response_model=TransactionResponse)
def categorize_category(
    transaction_id: int,
    request: CategorizeCategoryRequest,
    db: Session = Depends(get_db)
):
    """Assign a category without choosing an item"""
    try:
        txn = transaction_service.categorize_by_category_only(db, transaction_id, request.category_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TransactionResponse.model_validate(txn)


@router.post("/{transaction_id}/uncategorize", response_model=TransactionResponse)
def uncategorize(transaction_id: int, db: Session = Depends(get_db)):
    try:
        txn = transaction_service.uncategorize(db, transaction_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(txn)
