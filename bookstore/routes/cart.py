from fastapi import APIRouter, Depends
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from bookstore.services import cart_service
from bookstore.utils.token import get_current_user  # JWT dependency

router = APIRouter()


# View Cart

@router.get("/")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return cart_service.cart_summary(session, current_user.id)


# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = cart_service.add(session, current_user.id, data.book_id, data.quantity)
    return {"message": "Added to cart", "item": item}


# Clear Cart

@router.delete("/clear")
def clear_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    removed = cart_service.clear(session, current_user.id)
    return {"message": "Cart cleared", "removed": removed}


# Update Cart

@router.put("/{book_id}")
def update_cart_item(
    book_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = cart_service.update_quantity(session, current_user.id, book_id, data.quantity)

    if item is None:
        return {"message": "Item removed"}

    return {"message": "Quantity updated", "item": item}


# Remove from Cart

@router.delete("/{book_id}")
def remove_item(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart_service.remove(session, current_user.id, book_id)
    return {"message": "Item removed from cart"}
