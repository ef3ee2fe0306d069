import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bookstore.errors import (
    BookNotFoundError,
    DuplicateReviewError,
    ForbiddenError,
    InvalidInputError,
    ReviewNotFoundError,
)
from bookstore.models.book import Book
from bookstore.models.review import Review
from bookstore.utils.transaction import atomic

logger = logging.getLogger(__name__)


def _check_rating(rating: int):
    if rating < 1 or rating > 5:
        raise InvalidInputError("Rating must be between 1 and 5")


def average_rating(session: Session, book_id: int) -> float:
    """Mean rating of a book; exactly 0.0 when it has no reviews."""
    avg = session.exec(
        select(func.avg(Review.rating)).where(Review.book_id == book_id)
    ).one()
    return float(avg) if avg is not None else 0.0


def review_count(session: Session, book_id: int) -> int:
    return session.exec(
        select(func.count(Review.id)).where(Review.book_id == book_id)
    ).one()


def has_user_reviewed(session: Session, user_id: int, book_id: int) -> bool:
    return session.exec(
        select(Review.id).where(Review.user_id == user_id, Review.book_id == book_id)
    ).first() is not None


def get_review(session: Session, review_id: int) -> Review:
    review = session.get(Review, review_id)
    if not review:
        raise ReviewNotFoundError(review_id)
    return review


def list_reviews_for_book(session: Session, book_id: int) -> List[Review]:
    return session.exec(
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()


def list_reviews_by_user(session: Session, user_id: int) -> List[Review]:
    return session.exec(
        select(Review)
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()


def create_review(
    session: Session,
    user_id: int,
    book_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    _check_rating(rating)

    if not session.get(Book, book_id):
        raise BookNotFoundError(book_id)

    if has_user_reviewed(session, user_id, book_id):
        raise DuplicateReviewError(book_id)

    review = Review(
        book_id=book_id,
        user_id=user_id,
        rating=rating,
        comment=comment,
    )

    with atomic(session):
        session.add(review)
        try:
            session.flush()
        except IntegrityError as e:
            # a concurrent request stored this user's review first
            raise DuplicateReviewError(book_id) from e
    session.refresh(review)

    logger.info(f"User {user_id} reviewed book {book_id} ({rating}/5)")
    return review


def update_review(
    session: Session,
    review_id: int,
    user_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    _check_rating(rating)
    review = get_review(session, review_id)

    if review.user_id != user_id:
        raise ForbiddenError("You can only update your own reviews")

    review.rating = rating
    review.comment = comment
    review.updated_at = datetime.utcnow()

    session.add(review)
    session.commit()
    session.refresh(review)
    return review


def delete_review(
    session: Session,
    review_id: int,
    user_id: int,
    is_admin: bool = False,
) -> None:
    review = get_review(session, review_id)

    if review.user_id != user_id and not is_admin:
        raise ForbiddenError("You can only delete your own reviews")

    session.delete(review)
    session.commit()
