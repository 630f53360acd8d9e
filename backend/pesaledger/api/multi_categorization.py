"""
Multi-categorization (split) API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pesaledger.dependencies import get_db
from pesaledger.models.multi_categorization import MultiCategorizationList
from pesaledger.schemas.multi_categorization import (
    SplitItemCreate,
    SplitItemResponse,
    SplitListCreate,
    SplitListResponse,
)
from pesaledger.services import multi_categorization_service as splits

router = APIRouter(prefix="/multi-categorization", tags=["multi-categorization"])


def _to_response(db: Session, multi_list: MultiCategorizationList) -> SplitListResponse:
    response = SplitListResponse.model_validate(multi_list)
    response.total = splits.list_total(multi_list)
    response.can_apply = not multi_list.is_applied and splits.can_apply_list(db, multi_list.id)
    return response


def _get_or_404(db: Session, list_id: int) -> MultiCategorizationList:
    try:
        return splits.get_list(db, list_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Split list not found")


@router.get("", response_model=list[SplitListResponse])
def list_unapplied(db: Session = Depends(get_db)):
    return [_to_response(db, multi_list) for multi_list in splits.list_unapplied(db)]


@router.post("", response_model=SplitListResponse, status_code=201)
def create_list(request: SplitListCreate, db: Session = Depends(get_db)):
    try:
        multi_list = splits.create_list(db, request.name, request.transaction_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _to_response(db, multi_list)


@router.get("/{list_id}", response_model=SplitListResponse)
def get_list(list_id: int, db: Session = Depends(get_db)):
    return _to_response(db, _get_or_404(db, list_id))


@router.post("/{list_id}/items", response_model=SplitItemResponse, status_code=201)
def add_item(list_id: int, request: SplitItemCreate, db: Session = Depends(get_db)):
    _get_or_404(db, list_id)
    try:
        return splits.add_item(db, list_id, request.category_item_id, request.amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{list_id}/items/{item_id}", status_code=204)
def remove_item(list_id: int, item_id: int, db: Session = Depends(get_db)):
    try:
        splits.remove_item(db, list_id, item_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Split item not found")
    return None


@router.post("/{list_id}/apply", response_model=SplitListResponse)
def apply_list(list_id: int, db: Session = Depends(get_db)):
    """Apply a split whose shares add up to the transaction amount."""
    _get_or_404(db, list_id)
    try:
        multi_list = splits.apply_list(db, list_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(db, multi_list)


@router.delete("/{list_id}", status_code=204)
def delete_list(list_id: int, db: Session = Depends(get_db)):
    _get_or_404(db, list_id)
    splits.delete_list(db, list_id)
    return None
