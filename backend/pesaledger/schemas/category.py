"""
Category schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class CategoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryItemResponse(BaseModel):
    id: int
    category_id: int
    name: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    items: list[str] = []


class CategoryUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    id: int
    name: str
    items: list[CategoryItemResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
