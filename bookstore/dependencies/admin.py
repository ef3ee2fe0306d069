from fastapi import Depends, HTTPException
from bookstore.models.user import User
from bookstore.utils.token import get_current_user

def require_admin(current_user: User = Depends(get_current_user)):
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
