"""SQLModel data models.

This module exports all database models and enums for the book exchange server.
Import models from here to ensure proper initialization and relationships.
"""

from .enums import (
    ACTIVE_EXCHANGE_STATUSES,
    AvailabilityStatus,
    BookCondition,
    ExchangeStatus,
    NotificationType,
)
from .user import User, UserBase
from .book import Book, BookBase
from .exchange import ExchangeRequest
from .message import Message
from .notification import Notification
from .review import Review
from .wishlist import WishlistItem

__all__ = [
    # Enums
    "ACTIVE_EXCHANGE_STATUSES",
    "AvailabilityStatus",
    "BookCondition",
    "ExchangeStatus",
    "NotificationType",
    # Tables
    "User",
    "UserBase",
    "Book",
    "BookBase",
    "ExchangeRequest",
    "Message",
    "Notification",
    "Review",
    "WishlistItem",
]
