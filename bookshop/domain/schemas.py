# bookshop/domain/schemas.py
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class BookRead(BaseModel):
    """Book as seen from the cart (response)."""

    id: int
    title: str
    author: str
    year: int
    price: int
    stock: int
    category_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class CartItemIn(BaseModel):
    """Schema for adding or removing a book."""

    book_id: int = Field(..., gt=0, description="Book ID (must be > 0)")


class PurchaseResult(BaseModel):
    """Outcome of a completed purchase."""

    user_id: int
    book_ids: List[int]
    remaining_stock: Dict[int, int]


class HealthOut(BaseModel):
    status: str
    database: str
