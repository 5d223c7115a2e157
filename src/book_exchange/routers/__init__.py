"""API route handlers.

This module exports all API routers for the FastAPI application.
"""

from .admin import router as admin_router
from .auth import router as auth_router
from .books import router as books_router
from .exchanges import router as exchanges_router
from .health import router as health_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .reviews import router as reviews_router
from .websockets import router as websockets_router
from .wishlist import router as wishlist_router

__all__ = [
    "health_router",
    "auth_router",
    "books_router",
    "exchanges_router",
    "messages_router",
    "notifications_router",
    "reviews_router",
    "wishlist_router",
    "admin_router",
    "websockets_router",
]
