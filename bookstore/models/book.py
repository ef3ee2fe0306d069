from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from typing import Optional
from datetime import datetime
from decimal import Decimal


class Book(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_book_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_book_price_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None
    cover_image_url: Optional[str] = None

    #Shop Details
    price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    stock: int = Field(default=0)

    #catalog references
    author_id: Optional[int] = Field(default=None, foreign_key="author.id")
    publisher_id: Optional[int] = Field(default=None, foreign_key="publisher.id")
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def in_stock(self) -> bool:
        return self.stock is not None and self.stock > 0
