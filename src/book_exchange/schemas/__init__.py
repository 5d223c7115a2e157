"""Pydantic schemas for API validation and serialization.

This module exports all API schemas. Every schema reads snake_case
attributes and is exchanged as camelCase JSON.
"""

from .auth_schemas import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    PublicProfile,
    RegisterRequest,
    UserProfile,
)
from .book_schemas import (
    BookCreate,
    BookResponse,
    BookSearchParams,
    BookUpdate,
    BookWithOwner,
)
from .common import (
    BookSummary,
    CamelModel,
    CountResponse,
    OperationResponse,
    UserSummary,
)
from .exchange_schemas import (
    ExchangeCreate,
    ExchangeDetail,
    ExchangeResponse,
    MyRequestsResponse,
    ReconcileResponse,
    StatusUpdate,
)
from .message_schemas import (
    MarkAllReadResponse,
    MessageCreate,
    MessageResponse,
    NotificationReadResponse,
    NotificationResponse,
)
from .review_schemas import (
    ReviewCreate,
    ReviewResponse,
    ReviewStatusResponse,
    UserReviewsResponse,
    WishlistCreate,
    WishlistItemResponse,
    WishlistStatusResponse,
)

__all__ = [
    # Shared
    "CamelModel",
    "UserSummary",
    "BookSummary",
    "OperationResponse",
    "CountResponse",
    # Accounts
    "RegisterRequest",
    "LoginRequest",
    "UserProfile",
    "AuthResponse",
    "PublicProfile",
    "ProfileUpdate",
    # Books
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookWithOwner",
    "BookSearchParams",
    # Exchanges
    "ExchangeCreate",
    "StatusUpdate",
    "ExchangeResponse",
    "ExchangeDetail",
    "MyRequestsResponse",
    "ReconcileResponse",
    # Messages and notifications
    "MessageCreate",
    "MessageResponse",
    "NotificationResponse",
    "NotificationReadResponse",
    "MarkAllReadResponse",
    # Reviews and wishlist
    "ReviewCreate",
    "ReviewResponse",
    "UserReviewsResponse",
    "ReviewStatusResponse",
    "WishlistCreate",
    "WishlistItemResponse",
    "WishlistStatusResponse",
]
