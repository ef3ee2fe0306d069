"""Typed failures raised by the service layer.

Every error is recoverable: it carries an HTTP status and enough detail for
the caller to act on (which book ran out, which transition was refused).
``bookstore.main`` turns them into JSON responses.
"""

from typing import Any, Dict, Optional


class BookstoreError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, detail: str, **extra: Any):
        super().__init__(detail)
        self.detail = detail
        self.extra: Dict[str, Any] = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "error": self.code, **self.extra}


class NotFoundError(BookstoreError):
    status_code = 404
    code = "not_found"


class BookNotFoundError(NotFoundError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} not found", book_id=book_id)
        self.book_id = book_id


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found", order_id=order_id)
        self.order_id = order_id


class CartItemNotFoundError(NotFoundError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} is not in the cart", book_id=book_id)
        self.book_id = book_id


class ReviewNotFoundError(NotFoundError):
    def __init__(self, review_id: int):
        super().__init__(f"Review {review_id} not found", review_id=review_id)


class InsufficientStockError(BookstoreError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, book_id: int, title: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {title}. "
            f"Available: {available}, Requested: {requested}",
            book_id=book_id,
            title=title,
            requested=requested,
            available=available,
        )
        self.book_id = book_id
        self.title = title
        self.requested = requested
        self.available = available


class EmptyCartError(BookstoreError):
    status_code = 400
    code = "empty_cart"

    def __init__(self, user_id: Optional[int] = None):
        super().__init__("Cart is empty")
        self.user_id = user_id


class InvalidTransitionError(BookstoreError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot change order status from '{current}' to '{target}'",
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class ConflictError(BookstoreError):
    """Concurrent write detected; safe to retry."""

    status_code = 409
    code = "conflict"


class DuplicateReviewError(BookstoreError):
    status_code = 409
    code = "duplicate_review"

    def __init__(self, book_id: int):
        super().__init__("User has already reviewed this book", book_id=book_id)


class BookInUseError(BookstoreError):
    status_code = 409
    code = "book_in_use"

    def __init__(self, book_id: int):
        super().__init__(
            f"Book {book_id} is referenced by existing orders", book_id=book_id
        )


class ForbiddenError(BookstoreError):
    status_code = 403
    code = "forbidden"


class UnavailableError(BookstoreError):
    """Unexpected storage failure (connection loss etc.); safe to retry."""

    status_code = 503
    code = "unavailable"


class InvalidInputError(BookstoreError, ValueError):
    """A value that passed request parsing but is not acceptable."""

    status_code = 422
    code = "invalid_input"
