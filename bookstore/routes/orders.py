from typing import List
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.schemas.orders_schemas import OrderCreate, OrderEventRead, OrderRead
from bookstore.services import order_service
from bookstore.services.order_event_service import list_order_events
from bookstore.utils.token import get_current_user

router = APIRouter()


# Place Order from Cart

@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = order_service.create_order(session, current_user.id, data.shipping_address)
    return order_service.order_to_read(session, order)


# My Orders

@router.get("/", response_model=List[OrderRead])
def my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    orders = order_service.list_user_orders(session, current_user.id)
    return [order_service.order_to_read(session, o) for o in orders]


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = order_service.get_order(session, order_id, current_user.id)
    return order_service.order_to_read(session, order)


@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = order_service.cancel_order(
        session,
        order_id,
        actor=f"user:{current_user.id}",
        user_id=current_user.id,
    )
    return order_service.order_to_read(session, order)


# Order Timeline

@router.get("/{order_id}/events", response_model=List[OrderEventRead])
def order_events(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order_service.get_order(session, order_id, current_user.id)
    return [
        OrderEventRead(
            id=e.id,
            event_type=e.event_type,
            label=e.label,
            meta=e.meta,
            created_by=e.created_by,
            created_at=e.created_at,
        )
        for e in list_order_events(session, order_id)
    ]
