from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.author import Author
from bookstore.models.book import Book
from bookstore.models.user import User
from bookstore.schemas.catalog_schemas import AuthorCreate, AuthorUpdate

router = APIRouter()


@router.get("/")
def list_authors(
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = select(Author)

    if search:
        query = query.where(Author.name.ilike(f"%{search}%"))

    return session.exec(query.order_by(Author.name)).all()


@router.get("/{author_id}")
def get_author(author_id: int, session: Session = Depends(get_session)):
    author = session.get(Author, author_id)
    if not author:
        raise HTTPException(404, "Author not found")

    books = session.exec(
        select(Book).where(Book.author_id == author_id).order_by(Book.title)
    ).all()

    return {
        "id": author.id,
        "name": author.name,
        "biography": author.biography,
        "books": [{"id": b.id, "title": b.title, "slug": b.slug} for b in books],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_author(
    data: AuthorCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    if session.exec(select(Author).where(Author.name == data.name)).first():
        raise HTTPException(400, "Author already exists")

    author = Author(name=data.name, biography=data.biography)
    session.add(author)
    session.commit()
    session.refresh(author)
    return author


@router.put("/{author_id}")
def update_author(
    author_id: int,
    data: AuthorUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    author = session.get(Author, author_id)
    if not author:
        raise HTTPException(404, "Author not found")

    if data.name is not None and data.name != author.name:
        if session.exec(select(Author).where(Author.name == data.name)).first():
            raise HTTPException(400, "Author already exists")
        author.name = data.name

    if data.biography is not None:
        author.biography = data.biography

    session.add(author)
    session.commit()
    session.refresh(author)
    return author


@router.delete("/{author_id}")
def delete_author(
    author_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    author = session.get(Author, author_id)
    if not author:
        raise HTTPException(404, "Author not found")

    if session.exec(select(Book.id).where(Book.author_id == author_id)).first() is not None:
        raise HTTPException(409, "Author still has books")

    session.delete(author)
    session.commit()
    return {"message": "Author deleted successfully"}
