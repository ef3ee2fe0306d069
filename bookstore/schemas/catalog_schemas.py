from typing import Optional
from sqlmodel import SQLModel, Field


class AuthorCreate(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    biography: Optional[str] = None


class AuthorUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    biography: Optional[str] = None


class PublisherCreate(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class PublisherUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryCreate(SQLModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None


class CategoryUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None
