from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.schemas.review_schemas import ReviewCreate, ReviewUpdate
from bookstore.services import book_service, review_service
from bookstore.utils.token import get_current_user

router = APIRouter()


# ---------------------------------------------------------
# CREATE A REVIEW
# ---------------------------------------------------------

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_review(
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    review = review_service.create_review(
        session,
        user_id=current_user.id,
        book_id=data.book_id,
        rating=data.rating,
        comment=data.comment,
    )
    return {"message": "Review added", "review": review}


# ---------------------------------------------------------
# MY REVIEWS
# ---------------------------------------------------------

@router.get("/me")
def my_reviews(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return review_service.list_reviews_by_user(session, current_user.id)


# ---------------------------------------------------------
# LIST REVIEWS FOR A BOOK
# ---------------------------------------------------------

@router.get("/book/{book_id}")
def list_reviews(
    book_id: int,
    session: Session = Depends(get_session)
):
    book = book_service.get_book(session, book_id)
    reviews = review_service.list_reviews_for_book(session, book.id)

    return {
        "book_id": book.id,
        "average_rating": review_service.average_rating(session, book.id),
        "total_reviews": len(reviews),
        "reviews": reviews,
    }


# ---------------------------------------------------------
# UPDATE A REVIEW
# ---------------------------------------------------------

@router.put("/{review_id}")
def update_review(
    review_id: int,
    data: ReviewUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    review = review_service.update_review(
        session, review_id, current_user.id, data.rating, data.comment
    )
    return {"message": "Review updated successfully", "review": review}


# ---------------------------------------------------------
# DELETE REVIEW
# ---------------------------------------------------------

@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    review_service.delete_review(
        session, review_id, current_user.id, is_admin=current_user.role == "admin"
    )
    return {"message": "Review deleted successfully"}
