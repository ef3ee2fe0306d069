from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.user import User
from bookstore.schemas.book_schemas import StockUpdate
from bookstore.services import inventory_service

router = APIRouter()


@router.get("/summary")
def inventory_summary(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    return inventory_service.inventory_summary(session)


@router.get("")
def list_inventory(
    status: Optional[str] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    return inventory_service.list_inventory(session, status)


@router.patch("/{book_id}")
def update_book_inventory(
    book_id: int,
    data: StockUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    book = inventory_service.set_stock(session, book_id, data.stock)

    return {
        "message": "Stock updated",
        "book_id": book.id,
        "stock": book.stock,
        "status": inventory_service.stock_status(book.stock),
    }
