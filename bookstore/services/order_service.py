"""Cart-to-order checkout and the order status lifecycle.

Every mutating operation here is one database transaction: stock
reservations, the order rows, the cart clear and the timeline entry are
committed together or not at all. A write that loses a race against a
concurrent transaction surfaces as ConflictError and is retried once.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from bookstore.constants.order_status import (
    OrderStatus,
    TERMINAL_STATUSES,
    can_transition,
)
from bookstore.errors import (
    ConflictError,
    EmptyCartError,
    InvalidInputError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.schemas.orders_schemas import OrderItemRead, OrderRead
from bookstore.services import cart_service, inventory_service
from bookstore.services.order_event_service import log_order_event
from bookstore.utils.pagination import paginate
from bookstore.utils.retry import conflict_retry
from bookstore.utils.transaction import atomic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Queries
# ---------------------------------------------------------

def get_order(session: Session, order_id: int, user_id: Optional[int] = None) -> Order:
    """Fetch an order, optionally checking ownership."""
    order = session.get(Order, order_id, populate_existing=True)

    if not order or (user_id is not None and order.user_id != user_id):
        raise OrderNotFoundError(order_id)

    return order


def get_order_items(session: Session, order_id: int) -> List[OrderItem]:
    return session.exec(
        select(OrderItem)
        .where(OrderItem.order_id == order_id)
        .order_by(OrderItem.id)
    ).all()


def list_user_orders(session: Session, user_id: int) -> List[Order]:
    return session.exec(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()


def list_orders(
    session: Session,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    query = select(Order)

    if status:
        query = query.where(Order.status == status)

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    return paginate(session=session, query=query, page=page, limit=limit)


def order_to_read(session: Session, order: Order) -> OrderRead:
    items = get_order_items(session, order.id)

    return OrderRead(
        id=order.id,
        user_id=order.user_id,
        status=order.status,
        shipping_address=order.shipping_address,
        total_amount=order.total_amount,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderItemRead(
                book_id=i.book_id,
                title=i.book_title,
                quantity=i.quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
            )
            for i in items
        ],
    )


# ---------------------------------------------------------
# Checkout
# ---------------------------------------------------------

def _place_order(session: Session, user_id: int, shipping_address: str) -> Order:
    cart_items = cart_service.list_items(session, user_id)

    if not cart_items:
        raise EmptyCartError(user_id)

    # claims the cart lines first so a concurrent checkout of the same cart
    # fails before it touches stock
    cart_service.consume(session, cart_items)

    lines = []
    for item in cart_items:
        # raises and aborts the whole transaction on the first shortfall
        inventory_service.reserve(session, item.book_id, item.quantity)
        book = session.get(Book, item.book_id, populate_existing=True)
        lines.append((item, book))

    total = sum(
        (book.price * item.quantity for item, book in lines),
        Decimal("0.00"),
    )

    order = Order(
        user_id=user_id,
        shipping_address=shipping_address,
        total_amount=total,
        status=OrderStatus.pending.value,
    )
    session.add(order)
    session.flush()

    for item, book in lines:
        session.add(OrderItem(
            order_id=order.id,
            book_id=book.id,
            book_title=book.title,
            unit_price=book.price,
            quantity=item.quantity,
        ))

    log_order_event(
        session,
        order_id=order.id,
        event_type="order_created",
        label="Order placed",
        created_by=f"user:{user_id}",
        meta={"items": len(lines), "total_amount": str(total)},
    )

    return order


def create_order(session: Session, user_id: int, shipping_address: str) -> Order:
    """Turn the user's cart into a pending order.

    Raises EmptyCartError, InsufficientStockError or BookNotFoundError without
    leaving any trace: the cart, stock levels and order tables are exactly as
    they were before the call.
    """
    shipping_address = (shipping_address or "").strip()
    if not shipping_address:
        raise InvalidInputError("Shipping address is required")

    @conflict_retry()
    def _attempt() -> Order:
        with atomic(session):
            return _place_order(session, user_id, shipping_address)

    order = _attempt()
    session.refresh(order)

    logger.info(
        f"Order {order.id} created for user {user_id}, total {order.total_amount}"
    )
    return order


# ---------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------

def _swap_status(session: Session, order: Order, target: str) -> None:
    """Compare-and-set the status so two writers cannot both move the order."""
    result = session.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == order.status)
        .values(status=target, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        raise ConflictError(
            f"Order {order.id} was modified concurrently, please retry"
        )


def cancel_order(
    session: Session,
    order_id: int,
    actor: str = "system",
    user_id: Optional[int] = None,
) -> Order:
    """Cancel a non-terminal order and put its stock back.

    ``user_id`` restricts the call to the order's owner.
    """

    @conflict_retry()
    def _attempt() -> Order:
        with atomic(session):
            order = get_order(session, order_id, user_id)
            previous = order.status

            if previous in TERMINAL_STATUSES:
                raise InvalidTransitionError(previous, OrderStatus.cancelled.value)

            _swap_status(session, order, OrderStatus.cancelled.value)

            items = get_order_items(session, order.id)
            for item in items:
                inventory_service.release(session, item.book_id, item.quantity)

            log_order_event(
                session,
                order_id=order.id,
                event_type="order_cancelled",
                label="Order cancelled",
                created_by=actor,
                meta={
                    "from": previous,
                    "restocked": {str(i.book_id): i.quantity for i in items},
                },
            )
            return order

    order = _attempt()
    session.refresh(order)

    logger.info(f"Order {order_id} cancelled by {actor}")
    return order


def update_status(
    session: Session,
    order_id: int,
    new_status: str,
    actor: str = "system",
) -> Order:
    target = new_status.value if isinstance(new_status, OrderStatus) else str(new_status)

    if target == OrderStatus.cancelled.value:
        return cancel_order(session, order_id, actor=actor)

    @conflict_retry()
    def _attempt() -> Order:
        with atomic(session):
            order = get_order(session, order_id)
            previous = order.status

            if not can_transition(previous, target):
                raise InvalidTransitionError(previous, target)

            _swap_status(session, order, target)

            log_order_event(
                session,
                order_id=order.id,
                event_type=f"status_{target}",
                label=f"Order {target}",
                created_by=actor,
                meta={"from": previous, "to": target},
            )
            return order

    order = _attempt()
    session.refresh(order)

    logger.info(f"Order {order_id} moved to {target} by {actor}")
    return order
