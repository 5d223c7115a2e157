"""Business logic layer.

This module provides the services for the book exchange server: accounts,
books, the exchange lifecycle, messaging, notifications, reviews, wishlists
and administration.
"""

from .admin_service import AdminService
from .auth_service import AuthenticationError, AuthService, JWTError
from .book_service import BookService
from .exchange_service import TRANSITIONS, ExchangeService, Transition
from .media_service import ImageUpload, MediaService
from .message_service import MessageService
from .notification_service import NotificationService
from .realtime import ConnectionManager, connection_manager
from .review_service import ReviewService
from .user_service import UserService
from .wishlist_service import WishlistService

__all__ = [
    "AdminService",
    "AuthService",
    "AuthenticationError",
    "JWTError",
    "BookService",
    "ExchangeService",
    "Transition",
    "TRANSITIONS",
    "ImageUpload",
    "MediaService",
    "MessageService",
    "NotificationService",
    "ConnectionManager",
    "connection_manager",
    "ReviewService",
    "UserService",
    "WishlistService",
]
