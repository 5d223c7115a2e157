"""FastAPI dependencies for authentication, database access and services.

This module provides dependency injection functions for FastAPI endpoints,
including authentication, database sessions, and service instances.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from .config import Settings, get_settings
from .database import get_session
from .exceptions import AuthorizationException
from .logging_config import SecurityLoggingMixin
from .models.user import User
from .services.admin_service import AdminService
from .services.auth_service import AuthenticationError, AuthService, JWTError
from .services.book_service import BookService
from .services.exchange_service import ExchangeService
from .services.media_service import MediaService
from .services.message_service import MessageService
from .services.notification_service import NotificationService
from .services.realtime import ConnectionManager, connection_manager
from .services.review_service import ReviewService
from .services.user_service import UserService
from .services.wishlist_service import WishlistService


# Dependency for getting application settings
def get_app_settings() -> Settings:
    """Get application settings.

    Returns:
        Settings: Application configuration
    """
    return get_settings()


# Dependency for getting authentication service
def get_auth_service(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    """Get authentication service instance.

    Args:
        settings: Application settings

    Returns:
        AuthService: Authentication service instance
    """
    return AuthService(settings)


def get_media_service(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MediaService:
    return MediaService(settings)


def get_connection_manager() -> ConnectionManager:
    """Get the process-wide registry of real-time notification channels."""
    return connection_manager


def get_notification_service(
    session: Annotated[Session, Depends(get_session)],
    connections: Annotated[ConnectionManager, Depends(get_connection_manager)],
) -> NotificationService:
    return NotificationService(session, connections)


# Dependency for getting user service
def get_user_service(
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    media: Annotated[MediaService, Depends(get_media_service)],
) -> UserService:
    """Get user service instance.

    Args:
        session: Database session
        settings: Application settings
        auth_service: Authentication service instance
        media: Media service instance

    Returns:
        UserService: User service instance
    """
    return UserService(session, settings, auth_service=auth_service, media=media)


def get_book_service(
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    media: Annotated[MediaService, Depends(get_media_service)],
) -> BookService:
    return BookService(session, settings, media=media)


def get_exchange_service(
    session: Annotated[Session, Depends(get_session)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> ExchangeService:
    """Get exchange lifecycle service with the notifier injected."""
    return ExchangeService(session, notifier)


def get_message_service(
    session: Annotated[Session, Depends(get_session)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> MessageService:
    return MessageService(session, notifier)


def get_review_service(
    session: Annotated[Session, Depends(get_session)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> ReviewService:
    return ReviewService(session, notifier)


def get_wishlist_service(
    session: Annotated[Session, Depends(get_session)],
) -> WishlistService:
    return WishlistService(session)


def get_admin_service(
    session: Annotated[Session, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> AdminService:
    return AdminService(session, settings, notifier)


# Dependency for JWT token validation
async def get_current_user_id(
    authorization: Annotated[str | None, Header()] = None,
    auth_service: Annotated[AuthService, Depends(get_auth_service)] = None,
) -> int:
    """Get current user ID from JWT token.

    Args:
        authorization: Authorization header with Bearer token
        auth_service: Authentication service instance

    Returns:
        int: Current user ID

    Raises:
        HTTPException: If authentication fails
    """
    try:
        return await auth_service.get_current_user_id(authorization)
    except (JWTError, AuthenticationError) as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


# Dependency for getting current user
async def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    """Get current authenticated user.

    Args:
        user_id: Current user ID from JWT token
        user_service: User service instance

    Returns:
        User: Current user

    Raises:
        HTTPException: If the token's user no longer exists
    """
    user = await user_service.get_user_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


_security_log = SecurityLoggingMixin()


# Dependency for admin-only endpoints
async def require_admin_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require admin user for endpoint access.

    Args:
        current_user: Current authenticated user

    Returns:
        User: Current user if admin

    Raises:
        AuthorizationException: If user is not admin
    """
    if not current_user.is_admin:
        _security_log.log_authorization_failure(
            user_id=current_user.id,
            resource="admin",
            action="access",
            reason="administrator role required",
        )
        raise AuthorizationException("Administrator access required")
    return current_user


# Type aliases for common dependency patterns
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
AdminUser = Annotated[User, Depends(require_admin_user)]
DatabaseSession = Annotated[Session, Depends(get_session)]
