"""Pytest fixtures for bookstore tests."""

import os
import tempfile

# must be set before bookstore.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="bookstore-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'bookstore.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from bookstore import models  # noqa: F401
from bookstore.database import engine
from bookstore.main import app
from bookstore.models.book import Book
from bookstore.models.user import User
from bookstore.utils.token import create_access_token


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test an empty schema."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(session):
    def _make(username="reader", role="user", can_login=True):
        user = User(
            username=username,
            email=f"{username}@example.com",
            full_name=username.title(),
            role=role,
            can_login=can_login,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_book(session):
    counter = {"n": 0}

    def _make(title=None, price="10.00", stock=10, **extra):
        counter["n"] += 1
        title = title or f"Book {counter['n']}"
        book = Book(
            title=title,
            slug=f"book-{counter['n']}",
            price=Decimal(price),
            stock=stock,
            **extra,
        )
        session.add(book)
        session.commit()
        session.refresh(book)
        return book

    return _make


@pytest.fixture
def user(make_user):
    return make_user("reader")


@pytest.fixture
def admin(make_user):
    return make_user("admin", role="admin")


@pytest.fixture
def client():
    return TestClient(app)


def token_headers(user: User) -> dict:
    token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user):
    return token_headers(user)


@pytest.fixture
def admin_headers(admin):
    return token_headers(admin)


@pytest.fixture
def headers_for():
    return token_headers
