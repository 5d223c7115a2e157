"""Data access layer.

This module provides data access repositories for database operations
with proper error handling and type safety.
"""

from .base import AlreadyExistsError, RepositoryError
from .book_repository import BookAlreadyExistsError, BookRepository
from .exchange_repository import ExchangeRepository
from .message_repository import MessageRepository
from .notification_repository import NotificationRepository
from .review_repository import ReviewAlreadyExistsError, ReviewRepository
from .user_repository import (
    UserAlreadyExistsError,
    UserRepository,
    UserRepositoryError,
)
from .wishlist_repository import WishlistItemAlreadyExistsError, WishlistRepository

__all__ = [
    "RepositoryError",
    "AlreadyExistsError",
    "UserRepository",
    "UserRepositoryError",
    "UserAlreadyExistsError",
    "BookRepository",
    "BookAlreadyExistsError",
    "ExchangeRepository",
    "MessageRepository",
    "NotificationRepository",
    "ReviewRepository",
    "ReviewAlreadyExistsError",
    "WishlistRepository",
    "WishlistItemAlreadyExistsError",
]
