"""Book schemas for listing, browsing and editing books.

Create and update payloads arrive as multipart forms (an optional image file
travels alongside the fields); the router validates them through these
schemas before handing them to the service.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..models.enums import AvailabilityStatus, BookCondition
from .common import CamelModel, UserSummary


def _clean_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = " ".join(v.split())
    return v or None


class BookCreate(CamelModel):
    """Schema for listing a new book."""

    title: str = Field(..., min_length=1, max_length=200, description="Book title")
    author: str = Field(..., min_length=1, max_length=200, description="Book author")
    condition: BookCondition = Field(..., description="Physical condition")
    genre: Optional[str] = Field(default=None, max_length=100, description="Genre")
    isbn: Optional[str] = Field(default=None, max_length=20, description="ISBN")
    description: Optional[str] = Field(default=None, max_length=2000, description="Description")

    @field_validator("title", "author")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        v = " ".join(v.split())
        if not v:
            raise ValueError("Field cannot be empty or whitespace only")
        return v

    @field_validator("genre", "isbn", "description")
    @classmethod
    def validate_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)


class BookUpdate(CamelModel):
    """Partial book update. Only fields that were sent are applied.

    An empty ``imageUrl`` resets the cover to the placeholder image.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    author: Optional[str] = Field(default=None, min_length=1, max_length=200)
    condition: Optional[BookCondition] = None
    genre: Optional[str] = Field(default=None, max_length=100)
    isbn: Optional[str] = Field(default=None, max_length=20)
    description: Optional[str] = Field(default=None, max_length=2000)
    image_url: Optional[str] = Field(default=None, max_length=500)
    availability_status: Optional[AvailabilityStatus] = None

    @field_validator("title", "author")
    @classmethod
    def validate_required_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = " ".join(v.split())
        if not v:
            raise ValueError("Field cannot be empty or whitespace only")
        return v

    @field_validator("genre", "isbn", "description")
    @classmethod
    def validate_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)


class BookResponse(CamelModel):
    """Full representation of a book."""

    id: int
    owner_id: int
    title: str
    author: str
    genre: Optional[str] = None
    isbn: Optional[str] = None
    condition: BookCondition
    description: Optional[str] = None
    image_url: Optional[str] = None
    availability_status: AvailabilityStatus
    created_at: datetime
    updated_at: Optional[datetime] = None


class BookWithOwner(BookResponse):
    """Book with a summary of its owner."""

    owner: Optional[UserSummary] = Field(default=None, description="Book owner")


class BookSearchParams(CamelModel):
    """Browse filters. ``All`` (or an empty value) disables a filter."""

    keyword: Optional[str] = Field(default=None, max_length=100)
    genre: Optional[str] = Field(default=None, max_length=100)
    condition: Optional[str] = Field(default=None, max_length=20)

    @field_validator("keyword", "genre", "condition")
    @classmethod
    def normalize_filter(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v or v.lower() == "all":
            return None
        return v
