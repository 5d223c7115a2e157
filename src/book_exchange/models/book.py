"""Book model with owner relationship.

This module defines the Book SQLModel for storing books offered for exchange,
including ownership, descriptive metadata and the availability state managed
by the exchange lifecycle.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, String, DateTime, Relationship, Index
from sqlalchemy import func

from .enums import AvailabilityStatus, BookCondition

if TYPE_CHECKING:
    from .user import User


class BookBase(SQLModel):
    """Base book model with descriptive fields."""

    title: str = Field(
        max_length=200,
        min_length=1,
        description="Book title (required, 1-200 characters)"
    )
    author: str = Field(
        max_length=200,
        min_length=1,
        description="Book author (required, 1-200 characters)"
    )
    genre: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Genre (optional)"
    )
    condition: BookCondition = Field(description="Physical condition of the book")
    description: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Book description (optional, max 2000 characters)"
    )


class Book(BookBase, table=True):
    """Book model for database storage.

    Each book belongs to exactly one user. While the book takes part in an
    accepted or completed exchange its availability_status is owned by the
    exchange lifecycle rather than by the owner.

    Attributes:
        id: Primary key (auto-generated)
        owner_id: Foreign key to the owning user
        isbn: Optional ISBN, unique when present
        image_url: Cover image URL
        availability_status: Available, Pending Exchange or Exchanged
        created_at: Timestamp when book was listed
        updated_at: Timestamp when book was last updated
    """

    __tablename__ = "books"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Primary key (auto-generated)"
    )

    owner_id: int = Field(
        foreign_key="users.id",
        description="ID of the user who owns this book",
        index=True
    )

    owner: Optional["User"] = Relationship(back_populates="books", sa_relationship_kwargs={"lazy": "select"})

    isbn: Optional[str] = Field(
        default=None,
        max_length=20,
        description="ISBN (unique when present)",
        sa_column=Column(String(20), unique=True, nullable=True)
    )

    image_url: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Cover image URL"
    )

    availability_status: AvailabilityStatus = Field(
        default=AvailabilityStatus.AVAILABLE,
        description="Availability for new exchange requests",
        index=True
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when book was listed",
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when book was last updated",
        sa_column=Column(DateTime(timezone=True), onupdate=func.now())
    )

    __table_args__ = (
        Index("idx_books_title", "title"),
        Index("idx_books_author", "author"),
        Index("idx_books_genre", "genre"),
        Index("idx_books_owner_created", "owner_id", "created_at"),
    )
