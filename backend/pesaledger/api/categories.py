"""
Category API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pesaledger.dependencies import get_db
from pesaledger.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryItemCreate,
    CategoryItemResponse,
)
from pesaledger.services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    """List categories with their items."""
    return category_service.list_categories_with_items(db)


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(category: CategoryCreate, db: Session = Depends(get_db)):
    try:
        created = category_service.create_category(db, category.name)
        for item_name in category.items:
            category_service.create_category_item(db, created.id, item_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.refresh(created)
    return created


@router.get("/items/search", response_model=list[CategoryItemResponse])
def search_items(q: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return category_service.search_category_items(db, q)


@router.delete("/items/{item_id}", status_code=204)
def delete_item(item_id: int, db: Session = Depends(get_db)):
    """Delete an item; transactions using it become uncategorized."""
    try:
        category_service.delete_category_item(db, item_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Category item not found")
    return None


@router.patch("/{category_id}", response_model=CategoryResponse)
def rename_category(category_id: int, update: CategoryUpdate, db: Session = Depends(get_db)):
    try:
        category_service.get_category(db, category_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Category not found")
    try:
        return category_service.rename_category(db, category_id, update.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{category_id}", status_code=204)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    """Delete a category together with its items."""
    try:
        category_service.delete_category(db, category_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Category not found")
    return None


@router.post("/{category_id}/items", response_model=CategoryItemResponse, status_code=201)
def create_item(category_id: int, item: CategoryItemCreate, db: Session = Depends(get_db)):
    try:
        category_service.get_category(db, category_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Category not found")
    try:
        return category_service.create_category_item(db, category_id, item.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
