from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional

from bookstore.database import get_session
from bookstore.schemas.book_schemas import BookRead
from bookstore.services import book_service

router = APIRouter()


@router.get("/")
def list_books(
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    author_id: Optional[int] = None,
    publisher_id: Optional[int] = None,
    in_stock: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session)
):
    return book_service.list_books(
        session,
        search=search,
        category_id=category_id,
        author_id=author_id,
        publisher_id=publisher_id,
        in_stock=in_stock,
        page=page,
        limit=limit,
    )


@router.get("/slug/{slug}", response_model=BookRead)
def get_book_by_slug(slug: str, session: Session = Depends(get_session)):
    book = book_service.get_book_by_slug(session, slug)
    return book_service.book_to_read(session, book)


@router.get("/{book_id}", response_model=BookRead)
def get_book(book_id: int, session: Session = Depends(get_session)):
    book = book_service.get_book(session, book_id)
    return book_service.book_to_read(session, book)
