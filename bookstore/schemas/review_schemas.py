
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

class ReviewCreate(SQLModel):
    book_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)

class ReviewRead(SQLModel):
    id: int
    book_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime | None = None

class ReviewUpdate(SQLModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
