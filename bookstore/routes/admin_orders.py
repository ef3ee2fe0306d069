# -------- ADMIN ORDERS --------
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from bookstore.constants.order_status import OrderStatus
from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.user import User
from bookstore.schemas.orders_schemas import OrderListResponse, OrderRead, OrderStatusUpdate
from bookstore.services import order_service

router = APIRouter()


@router.get("", response_model=OrderListResponse)
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: OrderStatus | None = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin)
):
    data = order_service.list_orders(
        session,
        status=status.value if status else None,
        page=page,
        limit=limit,
    )
    data["results"] = [order_service.order_to_read(session, o) for o in data["results"]]
    return data


@router.get("/{order_id}", response_model=OrderRead)
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = order_service.get_order(session, order_id)
    return order_service.order_to_read(session, order)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = order_service.update_status(
        session, order_id, data.status, actor=f"admin:{admin.id}"
    )
    return order_service.order_to_read(session, order)


@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = order_service.cancel_order(session, order_id, actor=f"admin:{admin.id}")
    return order_service.order_to_read(session, order)
