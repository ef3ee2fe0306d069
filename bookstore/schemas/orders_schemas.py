from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from bookstore.constants.order_status import OrderStatus


class OrderCreate(BaseModel):
    shipping_address: str = Field(..., min_length=1, max_length=500)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemRead(BaseModel):
    book_id: int
    title: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderRead(BaseModel):
    id: int
    user_id: int
    status: str
    shipping_address: str
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead]


class OrderEventRead(BaseModel):
    id: str
    event_type: str
    label: str
    meta: Optional[dict] = None
    created_by: str
    created_at: datetime


class OrderListResponse(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    limit: int
    results: List[OrderRead]
