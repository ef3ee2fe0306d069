from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, func, select

from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.book import Book
from bookstore.models.category import Category
from bookstore.models.user import User
from bookstore.schemas.catalog_schemas import CategoryCreate, CategoryUpdate

router = APIRouter()


@router.get("/")
def list_categories(session: Session = Depends(get_session)):
    rows = session.exec(
        select(Category, func.count(Book.id))
        .join(Book, Book.category_id == Category.id, isouter=True)
        .group_by(Category.id)
        .order_by(Category.name)
    ).all()

    return [
        {
            "id": c.id,
            "name": c.name,
            "description": c.description,
            "book_count": count,
        }
        for c, count in rows
    ]


@router.get("/{category_id}")
def get_category(category_id: int, session: Session = Depends(get_session)):
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")
    return category


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    existing = session.exec(select(Category).where(Category.name == data.name)).first()
    if existing:
        raise HTTPException(400, "Category already exists")

    category = Category(name=data.name, description=data.description)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.put("/{category_id}")
def update_category(
    category_id: int,
    data: CategoryUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    if data.name is not None and data.name != category.name:
        if session.exec(select(Category).where(Category.name == data.name)).first():
            raise HTTPException(400, "Category already exists")
        category.name = data.name

    if data.description is not None:
        category.description = data.description

    category.updated_at = datetime.utcnow()
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    in_use = session.exec(select(Book.id).where(Book.category_id == category_id)).first()
    if in_use is not None:
        raise HTTPException(409, "Category still has books")

    session.delete(category)
    session.commit()
    return {"message": "Category deleted successfully"}
