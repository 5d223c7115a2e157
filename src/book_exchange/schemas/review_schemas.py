"""Review and wishlist schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import BookSummary, CamelModel, UserSummary


class ReviewCreate(CamelModel):
    """Schema for reviewing the counterparty of a completed exchange."""

    reviewee_id: int = Field(..., gt=0)
    exchange_id: int = Field(..., gt=0)
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(default=None, max_length=500)

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class ReviewResponse(CamelModel):
    id: int
    reviewer_id: int
    reviewee_id: int
    exchange_request_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    reviewer: Optional[UserSummary] = None


class UserReviewsResponse(CamelModel):
    reviews: list[ReviewResponse] = Field(default_factory=list)
    average_rating: float = Field(ge=0)
    num_reviews: int = Field(ge=0)


class ReviewStatusResponse(CamelModel):
    """Whether the caller can still review the other party of an exchange."""

    can_review: bool
    has_reviewed: bool = False
    other_party_id: Optional[int] = None
    other_party_username: Optional[str] = None
    message: str


class WishlistCreate(CamelModel):
    """Wish for a listed book (``bookId``) or for any copy of a title."""

    book_id: Optional[int] = Field(default=None, gt=0)
    title: Optional[str] = Field(default=None, max_length=200)
    author: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title", "author", "notes")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return " ".join(v.split()) or None


class WishlistItemResponse(CamelModel):
    id: int
    user_id: int
    book_id: Optional[int] = None
    title: str
    author: str
    notes: Optional[str] = None
    created_at: datetime
    book: Optional[BookSummary] = None


class WishlistStatusResponse(CamelModel):
    is_in_wishlist: bool
    wishlist_item_id: Optional[int] = None
