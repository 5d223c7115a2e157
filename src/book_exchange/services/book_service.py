"""Book service for business logic operations.

This module provides business logic for listing, browsing, editing and
deleting books, including ownership checks, cover image uploads, and the
guards that keep owners from touching the availability of books that an
exchange currently holds.
"""

from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..config import Settings
from ..exceptions import (
    AuthorizationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    PreconditionException,
)
from ..logging_config import get_logger, log_database_operation
from ..models.book import Book
from ..models.enums import AvailabilityStatus, BookCondition, ExchangeStatus
from ..models.user import User
from ..repositories.base import RepositoryError
from ..repositories.book_repository import BookAlreadyExistsError, BookRepository
from ..repositories.exchange_repository import ExchangeRepository
from ..repositories.message_repository import MessageRepository
from ..repositories.notification_repository import NotificationRepository
from ..repositories.review_repository import ReviewRepository
from ..repositories.user_repository import UserRepository
from ..repositories.wishlist_repository import WishlistRepository
from ..schemas.book_schemas import (
    BookCreate,
    BookResponse,
    BookSearchParams,
    BookUpdate,
    BookWithOwner,
)
from ..schemas.common import UserSummary
from .exchange_service import ExchangeService
from .media_service import ImageUpload, MediaService

logger = get_logger("book_service")

BOOK_IMAGE_FOLDER = "book_exchange_books"


class BookService:
    """Service for book business logic operations."""

    def __init__(
        self,
        session: Session,
        settings: Settings,
        media: MediaService | None = None,
    ) -> None:
        """Initialize book service.

        Args:
            session: SQLModel database session
            settings: Application settings (placeholder image)
            media: Media service used for cover uploads
        """
        self.session = session
        self.settings = settings
        self.media = media or MediaService(settings)
        self.book_repository = BookRepository(session)
        self.exchange_repository = ExchangeRepository(session)
        self.user_repository = UserRepository(session)

    async def create_book(
        self, owner: User, data: BookCreate, image: ImageUpload | None = None
    ) -> BookResponse:
        """List a new book for the owner.

        The cover is uploaded before anything is stored, so a failed upload
        leaves no book behind.

        Raises:
            ValidationException: If the image is not acceptable
            DependencyException: If the upload fails
            ConflictException: If the ISBN is already listed
        """
        image_url = self.settings.default_book_image_url
        if image is not None:
            image_url = await self.media.upload_image(image, folder=BOOK_IMAGE_FOLDER)

        try:
            book = self.book_repository.create(
                owner.id, {**data.model_dump(), "image_url": image_url}
            )
        except BookAlreadyExistsError as e:
            raise ConflictException(e.message, resource="book", identifier=data.isbn) from e
        except RepositoryError as e:
            log_database_operation(operation="INSERT", table="books", success=False, error=e.message)
            raise DatabaseException("Failed to create book", operation="create") from e

        log_database_operation(
            operation="INSERT", table="books", success=True, book_id=book.id, owner_id=owner.id
        )
        return BookResponse.model_validate(book)

    async def browse(self, params: BookSearchParams) -> list[BookWithOwner]:
        """Browse Available books.

        Args:
            params: Keyword, genre and condition filters

        Returns:
            List[BookWithOwner]: Matching books, newest first
        """
        condition = None
        if params.condition:
            try:
                condition = BookCondition(params.condition)
            except ValueError:
                # Unknown conditions match nothing
                return []

        try:
            books = self.book_repository.search_available(
                keyword=params.keyword, genre=params.genre, condition=condition
            )
        except RepositoryError as e:
            raise DatabaseException("Failed to search books", operation="search") from e
        return await self._with_owners(books)

    async def my_books(self, owner_id: int) -> list[BookResponse]:
        try:
            books = self.book_repository.list_for_owner(owner_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load books", operation="list") from e
        return [BookResponse.model_validate(book) for book in books]

    async def list_all(self) -> list[BookWithOwner]:
        try:
            books = self.book_repository.list_all()
        except RepositoryError as e:
            raise DatabaseException("Failed to load books", operation="list") from e
        return await self._with_owners(books)

    async def get_book(self, book_id: int) -> BookWithOwner:
        book = self._load(book_id)
        return (await self._with_owners([book]))[0]

    async def update_book(
        self,
        book_id: int,
        user: User,
        changes: BookUpdate,
        image: ImageUpload | None = None,
    ) -> BookResponse:
        """Apply a partial update to one of the user's books.

        Only the fields the client sent are applied. An uploaded image wins
        over ``imageUrl``; an empty ``imageUrl`` restores the placeholder.

        Raises:
            NotFoundException: If the book does not exist
            AuthorizationException: If the user does not own the book
            PreconditionException: If availability is changed while an
                active exchange references the book, or after the book was
                exchanged through a completed request
            ConflictException: If the new ISBN is already listed
        """
        book = self._load(book_id)
        self._require_owner(book, user, "update")

        update_data = changes.model_dump(exclude_unset=True)

        new_availability = update_data.get("availability_status")
        if new_availability is None:
            update_data.pop("availability_status", None)
        elif new_availability != book.availability_status:
            if self._has_active_exchange(book.id):
                raise PreconditionException(
                    "Availability of a book in an active exchange is managed by the exchange",
                    current_state=book.availability_status.value,
                    resource="book",
                )
            if self._was_exchanged(book):
                raise PreconditionException(
                    "This book has already been exchanged",
                    current_state=book.availability_status.value,
                    resource="book",
                )

        for required in ("title", "author", "condition"):
            if required in update_data and update_data[required] is None:
                update_data.pop(required)

        if image is not None:
            update_data["image_url"] = await self.media.upload_image(image, folder=BOOK_IMAGE_FOLDER)
        elif "image_url" in update_data and not update_data["image_url"]:
            update_data["image_url"] = self.settings.default_book_image_url

        try:
            book = self.book_repository.update(book, update_data)
        except BookAlreadyExistsError as e:
            raise ConflictException(e.message, resource="book", identifier=update_data.get("isbn")) from e
        except RepositoryError as e:
            raise DatabaseException("Failed to update book", operation="update") from e

        log_database_operation(
            operation="UPDATE",
            table="books",
            success=True,
            book_id=book.id,
            fields=sorted(update_data),
        )
        return BookResponse.model_validate(book)

    async def delete_book(self, book_id: int, user: User) -> None:
        """Delete one of the user's books.

        Raises:
            NotFoundException: If the book does not exist
            AuthorizationException: If the user does not own the book
            PreconditionException: If an active exchange references the book
        """
        book = self._load(book_id)
        self._require_owner(book, user, "delete")
        if self._has_active_exchange(book.id):
            raise PreconditionException(
                "Cannot delete a book that is part of an active exchange",
                current_state=book.availability_status.value,
                resource="book",
            )

        try:
            counts = self.purge_books([book.id])
            self.session.commit()
        except (RepositoryError, SQLAlchemyError) as e:
            self.session.rollback()
            raise DatabaseException("Failed to delete book", operation="delete") from e

        log_database_operation(
            operation="DELETE", table="books", success=True, book_id=book_id, **counts
        )

    def purge_books(self, book_ids: Iterable[int]) -> dict[str, int]:
        """Delete books and every record that depends on them. Caller commits.

        Exchanges referencing the books go with them, together with their
        messages, reviews and notifications. Other books those exchanges had
        reserved are released afterwards.

        Returns:
            dict: Number of deleted rows per table
        """
        book_ids = list(book_ids)
        if not book_ids:
            return {}

        other_books = {
            other_id
            for exchange in self.exchange_repository.list_active_referencing(book_ids)
            for other_id in exchange.book_ids
            if other_id not in book_ids
        }
        exchange_ids = self.exchange_repository.ids_referencing_books(book_ids)

        counts = {
            "messages": MessageRepository(self.session).delete_for_exchanges(exchange_ids),
            "reviews": ReviewRepository(self.session).delete_for_exchanges(exchange_ids),
            "notifications": NotificationRepository(self.session).delete_for_exchanges(exchange_ids),
            "exchange_requests": self.exchange_repository.delete_by_ids(exchange_ids),
            "wishlist_items": WishlistRepository(self.session).delete_for_books(book_ids),
            "books": self.book_repository.delete_by_ids(book_ids),
        }

        if other_books:
            ExchangeService(self.session).release_reservations(other_books)
        return counts

    def _load(self, book_id: int) -> Book:
        try:
            book = self.book_repository.get_by_id(book_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load book", operation="get") from e
        if book is None:
            raise NotFoundException("Book", book_id, "Book not found")
        return book

    def _require_owner(self, book: Book, user: User, action: str) -> None:
        if book.owner_id != user.id:
            logger.warning(
                f"User {user.id} attempted to {action} book {book.id} owned by {book.owner_id}",
                extra={"user_id": user.id, "book_id": book.id},
            )
            raise AuthorizationException(f"Not authorized to {action} this book")

    def _has_active_exchange(self, book_id: int) -> bool:
        return bool(self.exchange_repository.list_active_referencing([book_id]))

    def _was_exchanged(self, book: Book) -> bool:
        """Exchanged through a Completed request, as opposed to marked by hand."""
        return (
            book.availability_status == AvailabilityStatus.EXCHANGED
            and ExchangeStatus.COMPLETED in self.exchange_repository.statuses_referencing_book(book.id)
        )

    async def _with_owners(self, books: list[Book]) -> list[BookWithOwner]:
        try:
            owners = await self.user_repository.get_many({book.owner_id for book in books})
        except RepositoryError as e:
            raise DatabaseException("Failed to load book owners", operation="get") from e

        result = []
        for book in books:
            owner = owners.get(book.owner_id)
            result.append(
                BookWithOwner(
                    **BookResponse.model_validate(book).model_dump(),
                    owner=UserSummary.model_validate(owner) if owner else None,
                )
            )
        return result
