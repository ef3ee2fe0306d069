import logging
from datetime import datetime

from sqlalchemy import func, update
from sqlmodel import Session, select

from bookstore.config import settings
from bookstore.errors import BookNotFoundError, InsufficientStockError, InvalidInputError
from bookstore.models.book import Book

logger = logging.getLogger(__name__)


def _check_quantity(quantity: int):
    if quantity < 1:
        raise InvalidInputError(f"Quantity must be at least 1, got {quantity}")


def reserve(session: Session, book_id: int, quantity: int) -> None:
    """Take ``quantity`` copies of a book out of stock.

    The decrement is one conditional UPDATE, so the row lock the database
    takes for it serializes concurrent reservations on the same book: the
    stock can never be driven below zero. Runs inside the caller's
    transaction and does not commit.
    """
    _check_quantity(quantity)

    result = session.execute(
        update(Book)
        .where(Book.id == book_id, Book.stock >= quantity)
        .values(stock=Book.stock - quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        logger.info(f"Reserved {quantity} of book {book_id}")
        return

    book = session.get(Book, book_id, populate_existing=True)
    if not book:
        raise BookNotFoundError(book_id)

    logger.warning(
        f"Insufficient stock for book {book_id}: "
        f"available {book.stock}, requested {quantity}"
    )
    raise InsufficientStockError(
        book_id=book.id,
        title=book.title,
        requested=quantity,
        available=book.stock,
    )


def release(session: Session, book_id: int, quantity: int) -> None:
    """Put ``quantity`` copies back in stock. Compensates a reservation."""
    _check_quantity(quantity)

    result = session.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(stock=Book.stock + quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        raise BookNotFoundError(book_id)

    logger.info(f"Released {quantity} of book {book_id}")


def get_stock(session: Session, book_id: int) -> int:
    book = session.get(Book, book_id, populate_existing=True)
    if not book:
        raise BookNotFoundError(book_id)
    return book.stock


def set_stock(session: Session, book_id: int, stock: int) -> Book:
    if stock < 0:
        raise InvalidInputError("Stock cannot be negative")

    book = session.get(Book, book_id)
    if not book:
        raise BookNotFoundError(book_id)

    old_stock = book.stock
    book.stock = stock
    book.updated_at = datetime.utcnow()

    session.add(book)
    session.commit()
    session.refresh(book)

    logger.info(f"Stock of book {book_id} set from {old_stock} to {stock}")
    return book


def stock_status(stock: int) -> str:
    if stock == 0:
        return "OUT_OF_STOCK"
    if stock <= settings.LOW_STOCK_THRESHOLD:
        return "LOW_STOCK"
    return "IN_STOCK"


def inventory_summary(session: Session) -> dict:
    threshold = settings.LOW_STOCK_THRESHOLD

    total = session.exec(select(func.count(Book.id))).one()

    low_stock = session.exec(
        select(func.count(Book.id)).where(Book.stock <= threshold, Book.stock > 0)
    ).one()

    out_of_stock = session.exec(
        select(func.count(Book.id)).where(Book.stock == 0)
    ).one()

    return {
        "total_books": total,
        "low_stock": low_stock,
        "out_of_stock": out_of_stock
    }


def list_inventory(session: Session, status: str | None = None):
    threshold = settings.LOW_STOCK_THRESHOLD
    query = select(Book)

    if status == "low_stock":
        query = query.where(Book.stock <= threshold, Book.stock > 0)
    elif status == "out_of_stock":
        query = query.where(Book.stock == 0)
    elif status == "in_stock":
        query = query.where(Book.stock > threshold)

    books = session.exec(query.order_by(Book.id)).all()

    return [
        {
            "id": b.id,
            "title": b.title,
            "stock": b.stock,
            "status": stock_status(b.stock),
        }
        for b in books
    ]
