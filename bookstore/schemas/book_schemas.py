from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    cover_image_url: Optional[str] = None

    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)

    author_id: Optional[int] = None
    publisher_id: Optional[int] = None
    category_id: Optional[int] = None


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    cover_image_url: Optional[str] = None

    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)

    author_id: Optional[int] = None
    publisher_id: Optional[int] = None
    category_id: Optional[int] = None


class BookRead(BaseModel):
    id: int
    title: str
    slug: str
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    price: Decimal
    stock: int
    in_stock: bool

    author_id: Optional[int] = None
    author_name: Optional[str] = None
    publisher_id: Optional[int] = None
    publisher_name: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None

    review_count: int
    average_rating: float

    created_at: datetime
    updated_at: datetime


class StockUpdate(BaseModel):
    stock: int = Field(..., ge=0)
