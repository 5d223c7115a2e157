"""Wishlist item model."""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, DateTime, Index
from sqlalchemy import UniqueConstraint, func


class WishlistItem(SQLModel, table=True):
    """A book a user would like to obtain.

    Either links a listed book (title and author are copied from it) or
    describes a wanted book by title and author only.
    """

    __tablename__ = "wishlist_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    book_id: Optional[int] = Field(default=None, foreign_key="books.id", index=True)
    title: str = Field(max_length=200)
    author: str = Field(max_length=200)
    notes: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        # NULL book_id rows are not covered; title/author duplicates are checked in the service
        UniqueConstraint("user_id", "book_id", name="uq_wishlist_user_book"),
        Index("idx_wishlist_user_title_author", "user_id", "title", "author"),
    )
