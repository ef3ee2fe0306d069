from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.user import User
from bookstore.schemas.book_schemas import BookCreate, BookRead, BookUpdate
from bookstore.services import book_service

router = APIRouter()


@router.post("/", response_model=BookRead, status_code=status.HTTP_201_CREATED)
def create_book(
    data: BookCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = book_service.create_book(session, data)
    return book_service.book_to_read(session, book)


@router.put("/{book_id}", response_model=BookRead)
def update_book(
    book_id: int,
    data: BookUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = book_service.update_book(session, book_id, data)
    return book_service.book_to_read(session, book)


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book_service.delete_book(session, book_id)
    return {"message": "Book deleted successfully"}
