from sqlmodel import SQLModel, Field
from typing import Optional
from decimal import Decimal


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    book_id: int = Field(foreign_key="book.id")

    # captured at checkout
    book_title: str
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
