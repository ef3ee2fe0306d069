from fastapi import APIRouter, Depends

from bookstore.models.user import User
from bookstore.schemas.user_schemas import UserRead
from bookstore.utils.token import get_current_user

router = APIRouter()


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return UserRead(
        id=current_user.id,
        username=current_user.username,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role,
        created_at=current_user.created_at,
    )
