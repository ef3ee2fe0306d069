from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, UniqueConstraint
from typing import Optional
from datetime import datetime


class Review(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_review_user_book"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating_range"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key="book.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    rating: int
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
