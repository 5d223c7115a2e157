"""User model with credential and profile fields.

This module defines the User SQLModel for storing registered users
with proper type hints, validation, and database constraints.
"""

from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, String, DateTime, Index, Relationship
from sqlalchemy import Boolean, false, func

if TYPE_CHECKING:
    from .book import Book


class UserBase(SQLModel):
    """Base user model with profile fields."""

    first_name: Optional[str] = Field(default=None, max_length=100, description="First name")
    last_name: Optional[str] = Field(default=None, max_length=100, description="Last name")
    address: Optional[str] = Field(default=None, max_length=255, description="Street address")
    city: Optional[str] = Field(default=None, max_length=100, description="City")
    state: Optional[str] = Field(default=None, max_length=100, description="State or region")
    zip_code: Optional[str] = Field(default=None, max_length=20, description="Postal code")
    profile_picture_url: Optional[str] = Field(
        default=None,
        max_length=500,
        description="URL to the user's profile picture"
    )


class User(UserBase, table=True):
    """User model for database storage.

    Attributes:
        id: Primary key (auto-generated)
        username: Unique public handle
        email: Unique login email address
        hashed_password: passlib hash of the user's password
        is_admin: Whether the user may use the administrative endpoints
        books: Books listed by the user
        created_at: Timestamp when user was created
        updated_at: Timestamp when user was last updated
    """

    __tablename__ = "users"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Primary key (auto-generated)"
    )

    username: str = Field(
        max_length=50,
        description="Unique username",
        sa_column=Column(String(50), unique=True, nullable=False)
    )

    email: str = Field(
        max_length=255,
        description="Unique email address",
        sa_column=Column(String(255), unique=True, nullable=False)
    )

    hashed_password: str = Field(
        max_length=255,
        description="Password hash"
    )

    is_admin: bool = Field(
        default=False,
        description="Administrator flag",
        sa_column=Column(Boolean, nullable=False, server_default=false())
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when user was created",
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when user was last updated",
        sa_column=Column(DateTime(timezone=True), onupdate=func.now())
    )

    books: List["Book"] = Relationship(back_populates="owner", sa_relationship_kwargs={"lazy": "select"})

    __table_args__ = (
        Index("idx_users_username", "username"),
        Index("idx_users_email", "email"),
        Index("idx_users_created_at", "created_at"),
    )
