"""User repository for database operations.

This module provides data access layer for user management operations
with comprehensive type hints and error handling.
"""

from typing import Any, Optional, List
from sqlmodel import Session, select, or_
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models.user import User
from .base import AlreadyExistsError, RepositoryError


class UserRepositoryError(RepositoryError):
    """Base exception for user repository errors."""
    pass


class UserAlreadyExistsError(AlreadyExistsError, UserRepositoryError):
    """Exception raised when the email or username is already taken."""
    pass


class UserRepository:
    """Repository for user database operations.

    This repository provides data access methods for user management
    with proper error handling and type safety.
    """

    def __init__(self, session: Session) -> None:
        """Initialize user repository with database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID.

        Args:
            user_id: User ID to search for

        Returns:
            User if found, None otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = select(User).where(User.id == user_id)
            result = self.session.exec(statement)
            return result.first()
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get user by ID {user_id}: {str(e)}",
                original_error=e
            ) from e

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive).

        Args:
            email: Email address to search for

        Returns:
            User if found, None otherwise

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = select(User).where(func.lower(User.email) == email.lower())
            result = self.session.exec(statement)
            return result.first()
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get user by email {email}: {str(e)}",
                original_error=e
            ) from e

    async def find_conflicting(
        self, email: str, username: str, exclude_user_id: Optional[int] = None
    ) -> Optional[User]:
        """Find another user already holding the email or username.

        Args:
            email: Email address to check
            username: Username to check
            exclude_user_id: User to ignore (the one being updated)

        Returns:
            The conflicting user if any, None otherwise
        """
        try:
            statement = select(User).where(
                or_(func.lower(User.email) == email.lower(), User.username == username)
            )
            if exclude_user_id is not None:
                statement = statement.where(User.id != exclude_user_id)
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to check user uniqueness: {str(e)}",
                original_error=e
            ) from e

    async def get_many(self, user_ids: set[int]) -> dict[int, User]:
        """Get users by ID in a single query, keyed by ID."""
        if not user_ids:
            return {}
        try:
            statement = select(User).where(User.id.in_(user_ids))
            return {user.id: user for user in self.session.exec(statement).all()}
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get users: {str(e)}",
                original_error=e
            ) from e

    async def get_all(self, limit: int = 100, offset: int = 0) -> List[User]:
        """Get all users with pagination.

        Args:
            limit: Maximum number of users to return
            offset: Number of users to skip

        Returns:
            List of users, newest first

        Raises:
            UserRepositoryError: If database operation fails
        """
        try:
            statement = (
                select(User)
                .order_by(User.created_at.desc(), User.id.desc())
                .offset(offset)
                .limit(limit)
            )
            result = self.session.exec(statement)
            return list(result.all())
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to get users: {str(e)}",
                original_error=e
            ) from e

    async def create(
        self,
        username: str,
        email: str,
        hashed_password: str,
        profile_picture_url: Optional[str] = None,
        is_admin: bool = False,
    ) -> User:
        """Create a new user.

        Args:
            username: Unique username
            email: Unique email address
            hashed_password: Already hashed password
            profile_picture_url: Initial profile picture
            is_admin: Administrator flag

        Returns:
            Created user

        Raises:
            UserAlreadyExistsError: If the email or username is taken
            UserRepositoryError: If database operation fails
        """
        try:
            existing_user = await self.find_conflicting(email, username)
            if existing_user:
                raise UserAlreadyExistsError(
                    "User with this email or username already exists"
                )

            user = User(
                username=username,
                email=email.lower(),
                hashed_password=hashed_password,
                profile_picture_url=profile_picture_url,
                is_admin=is_admin,
            )
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
            return user

        except UserAlreadyExistsError:
            raise
        except IntegrityError as e:
            self.session.rollback()
            raise UserAlreadyExistsError(
                "User with this email or username already exists",
                original_error=e
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise UserRepositoryError(
                f"Failed to create user: {str(e)}",
                original_error=e
            ) from e

    async def update(self, user: User, changes: dict[str, Any]) -> User:
        """Update user fields.

        Args:
            user: User to update
            changes: Field values to apply

        Returns:
            Updated user

        Raises:
            UserAlreadyExistsError: If the new email or username is taken
            UserRepositoryError: If database operation fails
        """
        try:
            for field, value in changes.items():
                setattr(user, field, value)

            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
            return user

        except IntegrityError as e:
            self.session.rollback()
            raise UserAlreadyExistsError(
                "User with this email or username already exists",
                original_error=e
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise UserRepositoryError(
                f"Failed to update user {user.id}: {str(e)}",
                original_error=e
            ) from e

    def delete(self, user: User) -> None:
        """Delete a user row. Caller commits.

        Dependent rows must already be gone; the ORM relationship to books
        is bypassed so it does not try to detach them.
        """
        try:
            self.session.execute(
                delete(User).where(User.id == user.id).execution_options(synchronize_session=False)
            )
            self.session.expunge(user)
        except SQLAlchemyError as e:
            raise UserRepositoryError(
                f"Failed to delete user {user.id}: {str(e)}",
                original_error=e
            ) from e
