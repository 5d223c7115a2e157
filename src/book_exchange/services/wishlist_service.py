"""Wishlist service."""

from sqlmodel import Session

from ..exceptions import (
    AuthorizationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    ValidationException,
)
from ..logging_config import get_logger, log_database_operation
from ..models.wishlist import WishlistItem
from ..repositories.base import RepositoryError
from ..repositories.book_repository import BookRepository
from ..repositories.wishlist_repository import (
    WishlistItemAlreadyExistsError,
    WishlistRepository,
)
from ..schemas.common import BookSummary
from ..schemas.review_schemas import (
    WishlistCreate,
    WishlistItemResponse,
    WishlistStatusResponse,
)

logger = get_logger("wishlist_service")


class WishlistService:
    """Service for a user's wishlist.

    An entry either links a listed book, in which case its title and author
    are copied from the book, or names a wanted title and author.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.wishlist_repository = WishlistRepository(session)
        self.book_repository = BookRepository(session)

    async def add_item(self, user_id: int, data: WishlistCreate) -> WishlistItemResponse:
        """Add an entry to the user's wishlist.

        Raises:
            ValidationException: If neither a book nor a title and author is given
            NotFoundException: If the linked book does not exist
            ConflictException: If the entry already exists
        """
        try:
            if data.book_id is not None:
                book = self.book_repository.get_by_id(data.book_id)
                if book is None:
                    raise NotFoundException("Book", data.book_id, "Book not found")
                if self.wishlist_repository.find_for_book(user_id, book.id):
                    raise ConflictException(
                        "This book is already in your wishlist", resource="wishlist_item", identifier=book.id
                    )
                title, author = book.title, book.author
            else:
                if not data.title or not data.author:
                    raise ValidationException("Please provide either a bookId or a title and author")
                if self.wishlist_repository.find_unlinked(user_id, data.title, data.author):
                    raise ConflictException(
                        "You already wish for a book with this title and author",
                        resource="wishlist_item",
                    )
                title, author = data.title, data.author

            item = self.wishlist_repository.create(
                user_id=user_id,
                title=title,
                author=author,
                book_id=data.book_id,
                notes=data.notes,
            )
        except WishlistItemAlreadyExistsError as e:
            raise ConflictException(e.message, resource="wishlist_item") from e
        except RepositoryError as e:
            log_database_operation(operation="INSERT", table="wishlist_items", success=False, error=e.message)
            raise DatabaseException("Failed to add wishlist item", operation="create") from e

        log_database_operation(
            operation="INSERT", table="wishlist_items", success=True, user_id=user_id, item_id=item.id
        )
        return self._response(item, {})

    async def list_items(self, user_id: int) -> list[WishlistItemResponse]:
        try:
            items = self.wishlist_repository.list_for_user(user_id)
            books = self.book_repository.get_many(item.book_id for item in items)
        except RepositoryError as e:
            raise DatabaseException("Failed to load wishlist", operation="list") from e
        return [self._response(item, books) for item in items]

    async def remove_item(self, item_id: int, user_id: int) -> None:
        """Remove an entry from the user's wishlist.

        Raises:
            NotFoundException: If the entry does not exist
            AuthorizationException: If the entry belongs to another user
        """
        try:
            item = self.wishlist_repository.get_by_id(item_id)
            if item is None:
                raise NotFoundException("WishlistItem", item_id, "Wishlist item not found")
            if item.user_id != user_id:
                raise AuthorizationException("Not authorized to remove this wishlist item")
            self.wishlist_repository.delete(item)
        except RepositoryError as e:
            raise DatabaseException("Failed to remove wishlist item", operation="delete") from e

        log_database_operation(
            operation="DELETE", table="wishlist_items", success=True, user_id=user_id, item_id=item_id
        )

    async def status_for_book(self, user_id: int, book_id: int) -> WishlistStatusResponse:
        try:
            item = self.wishlist_repository.find_for_book(user_id, book_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to check wishlist", operation="get") from e
        return WishlistStatusResponse(
            is_in_wishlist=item is not None,
            wishlist_item_id=item.id if item else None,
        )

    def _response(self, item: WishlistItem, books: dict) -> WishlistItemResponse:
        if item.book_id is not None and item.book_id not in books:
            book = self.book_repository.get_by_id(item.book_id)
        else:
            book = books.get(item.book_id)
        return WishlistItemResponse(
            **WishlistItemResponse.model_validate(item).model_dump(exclude={"book"}),
            book=BookSummary.model_validate(book) if book else None,
        )
