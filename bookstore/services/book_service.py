import logging
from datetime import datetime
from typing import Optional

from slugify import slugify
from sqlmodel import Session, select

from bookstore.errors import BookInUseError, BookNotFoundError, NotFoundError
from bookstore.models.author import Author
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.models.category import Category
from bookstore.models.order_item import OrderItem
from bookstore.models.publisher import Publisher
from bookstore.models.review import Review
from bookstore.schemas.book_schemas import BookCreate, BookRead, BookUpdate
from bookstore.services import review_service
from bookstore.utils.pagination import paginate

logger = logging.getLogger(__name__)

_REFERENCES = (
    ("author_id", Author, "Author"),
    ("publisher_id", Publisher, "Publisher"),
    ("category_id", Category, "Category"),
)


def _check_references(session: Session, data: dict):
    for field, model, label in _REFERENCES:
        ref_id = data.get(field)
        if ref_id is not None and not session.get(model, ref_id):
            raise NotFoundError(f"{label} {ref_id} not found", **{field: ref_id})


def _unique_slug(session: Session, base: str, book_id: Optional[int] = None) -> str:
    slug = base or "book"
    suffix = 2
    while True:
        existing = session.exec(select(Book).where(Book.slug == slug)).first()
        if not existing or existing.id == book_id:
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1


def get_book(session: Session, book_id: int) -> Book:
    book = session.get(Book, book_id)
    if not book:
        raise BookNotFoundError(book_id)
    return book


def get_book_by_slug(session: Session, slug: str) -> Book:
    book = session.exec(select(Book).where(Book.slug == slug)).first()
    if not book:
        raise NotFoundError(f"Book '{slug}' not found", slug=slug)
    return book


def create_book(session: Session, data: BookCreate) -> Book:
    values = data.model_dump()
    _check_references(session, values)

    slug = values.pop("slug", None)
    if not slug or slug.strip() == "":
        slug = slugify(data.title)

    book = Book(**values, slug=_unique_slug(session, slugify(slug)))

    session.add(book)
    session.commit()
    session.refresh(book)

    logger.info(f"Book {book.id} '{book.title}' created")
    return book


def update_book(session: Session, book_id: int, data: BookUpdate) -> Book:
    book = get_book(session, book_id)
    values = data.model_dump(exclude_unset=True)
    _check_references(session, values)

    if values.get("slug"):
        values["slug"] = _unique_slug(session, slugify(values["slug"]), book.id)
    else:
        values.pop("slug", None)

    for key, value in values.items():
        setattr(book, key, value)
    book.updated_at = datetime.utcnow()

    session.add(book)
    session.commit()
    session.refresh(book)
    return book


def delete_book(session: Session, book_id: int) -> None:
    book = get_book(session, book_id)

    ordered = session.exec(
        select(OrderItem.id).where(OrderItem.book_id == book_id)
    ).first()
    if ordered is not None:
        raise BookInUseError(book_id)

    # carts and reviews do not outlive the book
    for model in (CartItem, Review):
        for row in session.exec(select(model).where(model.book_id == book_id)).all():
            session.delete(row)
    session.flush()

    session.delete(book)
    session.commit()
    logger.info(f"Book {book_id} deleted")


def list_books(
    session: Session,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    author_id: Optional[int] = None,
    publisher_id: Optional[int] = None,
    in_stock: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    query = select(Book)

    if search:
        query = query.where(Book.title.ilike(f"%{search}%"))

    if category_id is not None:
        query = query.where(Book.category_id == category_id)

    if author_id is not None:
        query = query.where(Book.author_id == author_id)

    if publisher_id is not None:
        query = query.where(Book.publisher_id == publisher_id)

    if in_stock is True:
        query = query.where(Book.stock > 0)
    elif in_stock is False:
        query = query.where(Book.stock == 0)

    query = query.order_by(Book.title, Book.id)

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["results"] = [book_to_read(session, b) for b in data["results"]]
    return data


def _name_of(session: Session, model, ref_id: Optional[int]) -> Optional[str]:
    if ref_id is None:
        return None
    row = session.get(model, ref_id)
    return row.name if row else None


def book_to_read(session: Session, book: Book) -> BookRead:
    return BookRead(
        id=book.id,
        title=book.title,
        slug=book.slug,
        description=book.description,
        cover_image_url=book.cover_image_url,
        price=book.price,
        stock=book.stock,
        in_stock=book.in_stock,
        author_id=book.author_id,
        author_name=_name_of(session, Author, book.author_id),
        publisher_id=book.publisher_id,
        publisher_name=_name_of(session, Publisher, book.publisher_id),
        category_id=book.category_id,
        category_name=_name_of(session, Category, book.category_id),
        review_count=review_service.review_count(session, book.id),
        average_rating=review_service.average_rating(session, book.id),
        created_at=book.created_at,
        updated_at=book.updated_at,
    )
