import logging
from decimal import Decimal
from typing import List

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bookstore.errors import (
    BookNotFoundError,
    CartItemNotFoundError,
    ConflictError,
    InvalidInputError,
)
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.utils.retry import conflict_retry
from bookstore.utils.transaction import atomic

logger = logging.getLogger(__name__)


def _get_item(session: Session, user_id: int, book_id: int) -> CartItem | None:
    return session.exec(
        select(CartItem)
        .where(
            CartItem.user_id == user_id,
            CartItem.book_id == book_id
        )
        .execution_options(populate_existing=True)
    ).first()


def _increment(session: Session, user_id: int, book_id: int, quantity: int) -> int:
    result = session.execute(
        update(CartItem)
        .where(CartItem.user_id == user_id, CartItem.book_id == book_id)
        .values(quantity=CartItem.quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def add(session: Session, user_id: int, book_id: int, quantity: int = 1) -> CartItem:
    """Put a book in the user's cart, merging into the existing row if any.

    The merge is an in-database increment, so concurrent adds of the same
    book all count. Stock is not checked here; it is validated when the cart
    is checked out.
    """
    if quantity < 1:
        raise InvalidInputError("Quantity must be at least 1")

    @conflict_retry()
    def _attempt() -> None:
        with atomic(session):
            if not session.get(Book, book_id):
                raise BookNotFoundError(book_id)

            if _increment(session, user_id, book_id, quantity):
                return

            session.add(CartItem(user_id=user_id, book_id=book_id, quantity=quantity))
            try:
                session.flush()
            except IntegrityError as e:
                # another request created the row first; the retry merges into it
                raise ConflictError("Cart changed concurrently, please retry") from e

    _attempt()
    item = _get_item(session, user_id, book_id)

    logger.info(f"Cart of user {user_id}: book {book_id} now x{item.quantity}")
    return item


def update_quantity(session: Session, user_id: int, book_id: int, quantity: int) -> CartItem | None:
    """Set the quantity of a cart line. Zero or less removes the line."""
    item = _get_item(session, user_id, book_id)
    if not item:
        raise CartItemNotFoundError(book_id)

    if quantity <= 0:
        session.delete(item)
        session.commit()
        return None

    item.quantity = quantity
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def remove(session: Session, user_id: int, book_id: int) -> None:
    item = _get_item(session, user_id, book_id)
    if not item:
        raise CartItemNotFoundError(book_id)

    session.delete(item)
    session.commit()


def list_items(session: Session, user_id: int) -> List[CartItem]:
    return session.exec(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at, CartItem.id)
        .execution_options(populate_existing=True)
    ).all()


def clear(session: Session, user_id: int, commit: bool = True) -> int:
    result = session.execute(
        delete(CartItem)
        .where(CartItem.user_id == user_id)
        .execution_options(synchronize_session=False)
    )

    if commit:
        session.commit()

    return result.rowcount


def consume(session: Session, items: List[CartItem]) -> None:
    """Delete exactly the cart lines a checkout was priced from.

    Each line must still exist with the quantity that was read; otherwise a
    concurrent request has already checked out or changed the cart and
    ConflictError aborts the caller's transaction. Does not commit.
    """
    for item in items:
        result = session.execute(
            delete(CartItem)
            .where(CartItem.id == item.id, CartItem.quantity == item.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Cart changed during checkout, please retry")


def cart_summary(session: Session, user_id: int) -> dict:
    rows = session.exec(
        select(CartItem, Book)
        .join(Book, CartItem.book_id == Book.id)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at, CartItem.id)
    ).all()

    items_response = []
    total = Decimal("0.00")

    for cart_item, book in rows:
        line_total = book.price * cart_item.quantity
        total += line_total

        items_response.append({
            "item_id": cart_item.id,
            "book_id": book.id,
            "title": book.title,
            "price": book.price,
            "quantity": cart_item.quantity,
            "line_total": line_total,
            "stock": book.stock,
            "in_stock": book.stock >= cart_item.quantity,
        })

    return {
        "items": items_response,
        "total_items": sum(i["quantity"] for i in items_response),
        "total": total,
    }
