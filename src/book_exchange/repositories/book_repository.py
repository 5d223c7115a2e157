"""Book repository for database operations.

This module provides the BookRepository class that handles all database operations
for books: CRUD, the public browse query, owner-scoped listings, and the
availability writes performed by the exchange lifecycle.
"""

from typing import Any, Iterable

from sqlalchemy import delete, exists, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ..models.book import Book
from ..models.enums import ACTIVE_EXCHANGE_STATUSES, AvailabilityStatus, BookCondition
from ..models.exchange import ExchangeRequest
from .base import AlreadyExistsError, BaseRepository, RepositoryError


class BookRepositoryError(RepositoryError):
    """Base exception for book repository errors."""
    pass


class BookAlreadyExistsError(AlreadyExistsError, BookRepositoryError):
    """Raised when a book with the same ISBN already exists."""
    pass


class BookRepository(BaseRepository):
    """Repository for book database operations."""

    table = "books"

    def create(self, owner_id: int, book_data: dict[str, Any]) -> Book:
        """Create a new book for the specified owner.

        Args:
            owner_id: ID of the user who owns the book
            book_data: Book field values

        Returns:
            Book: The created book

        Raises:
            BookAlreadyExistsError: If the ISBN is already listed
            BookRepositoryError: If database operation fails
        """
        try:
            db_book = Book(owner_id=owner_id, **book_data)
            self.session.add(db_book)
            self.session.commit()
            self.session.refresh(db_book)
            return db_book

        except IntegrityError as e:
            self.session.rollback()
            raise BookAlreadyExistsError(
                "A book with this ISBN already exists", original_error=e
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BookRepositoryError(
                f"Database error while creating book: {str(e)}", original_error=e
            ) from e

    def get_by_id(self, book_id: int) -> Book | None:
        try:
            return self.session.get(Book, book_id)
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while retrieving book {book_id}: {str(e)}",
                original_error=e,
            ) from e

    def get_many(self, book_ids: Iterable[int]) -> dict[int, Book]:
        """Get books by ID in a single query, keyed by ID."""
        ids = {book_id for book_id in book_ids if book_id is not None}
        if not ids:
            return {}
        try:
            statement = select(Book).where(Book.id.in_(ids))
            return {book.id: book for book in self.session.exec(statement).all()}
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while retrieving books: {str(e)}", original_error=e
            ) from e

    def search_available(
        self,
        keyword: str | None = None,
        genre: str | None = None,
        condition: BookCondition | None = None,
    ) -> list[Book]:
        """Browse books that are open for new exchange requests.

        Args:
            keyword: Case-insensitive match on title, author or description
            genre: Exact genre filter
            condition: Exact condition filter

        Returns:
            List[Book]: Matching books, newest first
        """
        try:
            statement = select(Book).where(
                Book.availability_status == AvailabilityStatus.AVAILABLE
            )

            if keyword:
                pattern = f"%{keyword.lower()}%"
                statement = statement.where(
                    or_(
                        func.lower(Book.title).like(pattern),
                        func.lower(Book.author).like(pattern),
                        func.lower(func.coalesce(Book.description, "")).like(pattern),
                    )
                )
            if genre:
                statement = statement.where(Book.genre == genre)
            if condition:
                statement = statement.where(Book.condition == condition)

            statement = statement.order_by(Book.created_at.desc(), Book.id.desc())
            return list(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while searching books: {str(e)}", original_error=e
            ) from e

    def list_for_owner(self, owner_id: int) -> list[Book]:
        try:
            statement = (
                select(Book)
                .where(Book.owner_id == owner_id)
                .order_by(Book.created_at.desc(), Book.id.desc())
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while listing books for user {owner_id}: {str(e)}",
                original_error=e,
            ) from e

    def list_all(self) -> list[Book]:
        try:
            statement = select(Book).order_by(Book.created_at.desc(), Book.id.desc())
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while listing books: {str(e)}", original_error=e
            ) from e

    def update(self, book: Book, changes: dict[str, Any]) -> Book:
        """Apply field changes to a book and commit.

        Raises:
            BookAlreadyExistsError: If the new ISBN is already listed
            BookRepositoryError: If database operation fails
        """
        try:
            for field, value in changes.items():
                setattr(book, field, value)
            self.session.add(book)
            self.session.commit()
            self.session.refresh(book)
            return book

        except IntegrityError as e:
            self.session.rollback()
            raise BookAlreadyExistsError(
                "A book with this ISBN already exists", original_error=e
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise BookRepositoryError(
                f"Database error while updating book {book.id}: {str(e)}",
                original_error=e,
            ) from e

    def set_availability(self, book: Book, status: AvailabilityStatus) -> bool:
        """Set a book's availability. Caller commits.

        Returns:
            bool: True if the stored value changed
        """
        if book.availability_status == status:
            return False
        book.availability_status = status
        self.session.add(book)
        return True

    def find_stray_reservations(self, exclude_ids: Iterable[int]) -> list[Book]:
        """Find books still marked Pending Exchange with no active exchange.

        Args:
            exclude_ids: Books to leave out of the sweep

        Returns:
            List[Book]: Reserved books no Pending or Accepted exchange references
        """
        try:
            has_active_exchange = exists().where(
                ExchangeRequest.status.in_(ACTIVE_EXCHANGE_STATUSES),
                or_(
                    ExchangeRequest.requested_book_id == Book.id,
                    ExchangeRequest.offered_book_id == Book.id,
                ),
            )
            statement = select(Book).where(
                Book.availability_status == AvailabilityStatus.PENDING_EXCHANGE,
                ~has_active_exchange,
            )
            excluded = [book_id for book_id in exclude_ids if book_id is not None]
            if excluded:
                statement = statement.where(Book.id.not_in(excluded))
            return list(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while scanning reserved books: {str(e)}",
                original_error=e,
            ) from e

    def delete(self, book: Book) -> None:
        """Delete a book. Caller commits."""
        try:
            self.session.delete(book)
            self.session.flush()
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while deleting book {book.id}: {str(e)}",
                original_error=e,
            ) from e

    def ids_for_owner(self, owner_id: int) -> list[int]:
        try:
            return list(self.session.exec(select(Book.id).where(Book.owner_id == owner_id)).all())
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while listing book ids: {str(e)}", original_error=e
            ) from e

    def delete_by_ids(self, book_ids: list[int]) -> int:
        """Delete books by ID. Caller commits."""
        if not book_ids:
            return 0
        try:
            result = self.session.execute(
                delete(Book).where(Book.id.in_(book_ids)).execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise BookRepositoryError(
                f"Database error while deleting books: {str(e)}", original_error=e
            ) from e
