from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.book import Book
from bookstore.models.publisher import Publisher
from bookstore.models.user import User
from bookstore.schemas.catalog_schemas import PublisherCreate, PublisherUpdate

router = APIRouter()


@router.get("/")
def list_publishers(
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = select(Publisher)

    if search:
        query = query.where(Publisher.name.ilike(f"%{search}%"))

    return session.exec(query.order_by(Publisher.name)).all()


@router.get("/{publisher_id}")
def get_publisher(publisher_id: int, session: Session = Depends(get_session)):
    publisher = session.get(Publisher, publisher_id)
    if not publisher:
        raise HTTPException(404, "Publisher not found")

    books = session.exec(
        select(Book).where(Book.publisher_id == publisher_id).order_by(Book.title)
    ).all()

    return {
        "id": publisher.id,
        "name": publisher.name,
        "description": publisher.description,
        "books": [{"id": b.id, "title": b.title, "slug": b.slug} for b in books],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_publisher(
    data: PublisherCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    if session.exec(select(Publisher).where(Publisher.name == data.name)).first():
        raise HTTPException(400, "Publisher already exists")

    publisher = Publisher(name=data.name, description=data.description)
    session.add(publisher)
    session.commit()
    session.refresh(publisher)
    return publisher


@router.put("/{publisher_id}")
def update_publisher(
    publisher_id: int,
    data: PublisherUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    publisher = session.get(Publisher, publisher_id)
    if not publisher:
        raise HTTPException(404, "Publisher not found")

    if data.name is not None and data.name != publisher.name:
        if session.exec(select(Publisher).where(Publisher.name == data.name)).first():
            raise HTTPException(400, "Publisher already exists")
        publisher.name = data.name

    if data.description is not None:
        publisher.description = data.description

    session.add(publisher)
    session.commit()
    session.refresh(publisher)
    return publisher


@router.delete("/{publisher_id}")
def delete_publisher(
    publisher_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    publisher = session.get(Publisher, publisher_id)
    if not publisher:
        raise HTTPException(404, "Publisher not found")

    if session.exec(select(Book.id).where(Book.publisher_id == publisher_id)).first() is not None:
        raise HTTPException(409, "Publisher still has books")

    session.delete(publisher)
    session.commit()
    return {"message": "Publisher deleted successfully"}
