import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookstore.config import settings
from bookstore.database import create_db_and_tables
from bookstore.errors import BookstoreError
from bookstore.routes import (
    admin_orders,
    authors,
    book_inventory,
    books_admin,
    books_public,
    cart,
    categories,
    health,
    orders,
    publishers,
    review,
    users,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Bookstore Orders API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookstoreError)
async def bookstore_error_handler(request: Request, exc: BookstoreError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(books_public.router, prefix="/books", tags=["Public Books"])
app.include_router(books_admin.router, prefix="/admin/books", tags=["Admin Books"])
app.include_router(book_inventory.router, prefix="/admin/inventory", tags=["Admin Inventory"])
app.include_router(authors.router, prefix="/authors", tags=["Authors"])
app.include_router(publishers.router, prefix="/publishers", tags=["Publishers"])
app.include_router(categories.router, prefix="/categories", tags=["Categories"])
app.include_router(review.router, prefix="/reviews", tags=["Reviews"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])


@app.get("/")
def root():
    return {
        "book_endpoints": [
            "/books", "/books/{book_id}", "/books/slug/{slug}",
            "/admin/books", "/admin/books/{book_id}",
        ],
        "inventory_endpoints": [
            "/admin/inventory", "/admin/inventory/summary", "/admin/inventory/{book_id}"
        ],
        "catalog_endpoints": [
            "/authors", "/publishers", "/categories"
        ],
        "reviews": [
            "/reviews", "/reviews/{review_id}", "/reviews/book/{book_id}", "/reviews/me"
        ],
        "cart": [
            "/cart", "/cart/add", "/cart/{book_id}", "/cart/clear"
        ],
        "orders": [
            "/orders", "/orders/{order_id}", "/orders/{order_id}/cancel",
            "/orders/{order_id}/events",
            "/admin/orders", "/admin/orders/{order_id}/status",
            "/admin/orders/{order_id}/cancel",
        ],
    }
