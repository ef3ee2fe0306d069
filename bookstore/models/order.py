from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from bookstore.constants.order_status import OrderStatus


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    shipping_address: str

    # always the sum of the order's line totals
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)

    status: str = Field(default=OrderStatus.pending.value, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
