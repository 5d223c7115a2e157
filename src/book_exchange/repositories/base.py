"""Shared repository plumbing."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session


class RepositoryError(Exception):
    """Base exception for repository errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class AlreadyExistsError(RepositoryError):
    """Raised when a uniqueness constraint rejects a write."""
    pass


class BaseRepository:
    """Holds the session and the commit helper shared by repositories.

    Methods documented as "Caller commits" only flush, so a service can
    combine several of them into one transaction.
    """

    table: str = ""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLModel database session
        """
        self.session = session

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RepositoryError(
                f"Failed to {operation} {self.table}: {str(e)}",
                original_error=e
            ) from e
