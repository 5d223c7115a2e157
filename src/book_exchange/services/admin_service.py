"""Administrative operations.

Administrators can list every user, book and exchange, delete users and
books together with everything that depends on them, and repair exchanges
through the lifecycle service. Every destructive action is written to the
security log.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..config import Settings
from ..exceptions import DatabaseException, NotFoundException, ValidationException
from ..logging_config import SecurityLoggingMixin, get_logger
from ..models.user import User
from ..repositories.base import RepositoryError
from ..repositories.book_repository import BookRepository
from ..repositories.exchange_repository import ExchangeRepository
from ..repositories.message_repository import MessageRepository
from ..repositories.notification_repository import NotificationRepository
from ..repositories.review_repository import ReviewRepository
from ..repositories.user_repository import UserRepository
from ..repositories.wishlist_repository import WishlistRepository
from ..schemas.auth_schemas import UserProfile
from ..schemas.book_schemas import BookWithOwner
from ..schemas.exchange_schemas import ExchangeDetail, ReconcileResponse
from .book_service import BookService
from .exchange_service import ExchangeService
from .notification_service import NotificationService

logger = get_logger("admin_service")


class AdminService(SecurityLoggingMixin):
    """Service for administrator-only operations."""

    def __init__(
        self,
        session: Session,
        settings: Settings,
        notifier: NotificationService | None = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.user_repository = UserRepository(session)
        self.book_repository = BookRepository(session)
        self.exchange_repository = ExchangeRepository(session)
        self.book_service = BookService(session, settings)
        self.exchange_service = ExchangeService(session, notifier)

    async def list_users(self, limit: int = 100, offset: int = 0) -> list[UserProfile]:
        try:
            users = await self.user_repository.get_all(limit=limit, offset=offset)
        except RepositoryError as e:
            raise DatabaseException("Failed to load users", operation="list") from e
        return [UserProfile.model_validate(user) for user in users]

    async def delete_user(self, user_id: int, admin: User) -> dict[str, int]:
        """Delete a user and everything that references them.

        The user's books go first (with their exchanges), then the user's
        remaining exchanges, messages, notifications, reviews and wishlist.
        Books of other users that those exchanges had reserved are
        released before the single commit. Exchanged books stay Exchanged.

        Returns:
            dict: Number of deleted rows per table

        Raises:
            ValidationException: If the admin tries to delete themselves
            NotFoundException: If the user does not exist
        """
        if user_id == admin.id:
            raise ValidationException("Admin cannot delete themselves", field="id", value=user_id)

        try:
            user = await self.user_repository.get_by_id(user_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load user", operation="get") from e
        if user is None:
            raise NotFoundException("User", user_id, "User not found")

        try:
            owned_books = self.book_repository.ids_for_owner(user_id)
            counts = self.book_service.purge_books(owned_books)

            remaining = self.exchange_repository.list_sent(user_id) + self.exchange_repository.list_received(user_id)
            exchange_ids = [exchange.id for exchange in remaining]
            other_books = {
                book_id
                for exchange in remaining
                for book_id in exchange.book_ids
                if book_id not in owned_books
            }

            messages = MessageRepository(self.session)
            notifications = NotificationRepository(self.session)
            reviews = ReviewRepository(self.session)

            counts["messages"] = counts.get("messages", 0) + messages.delete_for_exchanges(exchange_ids)
            counts["reviews"] = counts.get("reviews", 0) + reviews.delete_for_exchanges(exchange_ids)
            counts["notifications"] = counts.get("notifications", 0) + notifications.delete_for_exchanges(exchange_ids)
            counts["exchange_requests"] = (
                counts.get("exchange_requests", 0) + self.exchange_repository.delete_by_ids(exchange_ids)
            )

            counts["messages"] += messages.delete_for_user(user_id)
            counts["notifications"] += notifications.delete_for_user(user_id)
            counts["reviews"] += reviews.delete_for_user(user_id)
            counts["wishlist_items"] = (
                counts.get("wishlist_items", 0) + WishlistRepository(self.session).delete_for_user(user_id)
            )

            self.user_repository.delete(user)
            self.exchange_service.release_reservations(other_books)
            self.session.commit()
        except (RepositoryError, SQLAlchemyError) as e:
            self.session.rollback()
            logger.error(f"Failed to delete user {user_id}: {str(e)}", exc_info=True)
            raise DatabaseException("Failed to delete user", operation="delete") from e

        self.log_admin_action(
            admin_id=admin.id,
            action="delete",
            resource="user",
            identifier=user_id,
            additional_data=counts,
        )
        return counts

    async def list_books(self) -> list[BookWithOwner]:
        return await self.book_service.list_all()

    async def delete_book(self, book_id: int, admin: User) -> dict[str, int]:
        """Delete any book with its dependent records, active exchanges included.

        Raises:
            NotFoundException: If the book does not exist
        """
        try:
            book = self.book_repository.get_by_id(book_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load book", operation="get") from e
        if book is None:
            raise NotFoundException("Book", book_id, "Book not found")

        try:
            counts = self.book_service.purge_books([book_id])
            self.session.commit()
        except (RepositoryError, SQLAlchemyError) as e:
            self.session.rollback()
            logger.error(f"Failed to delete book {book_id}: {str(e)}", exc_info=True)
            raise DatabaseException("Failed to delete book", operation="delete") from e

        self.log_admin_action(
            admin_id=admin.id,
            action="delete",
            resource="book",
            identifier=book_id,
            additional_data=counts,
        )
        return counts

    async def list_exchanges(self) -> list[ExchangeDetail]:
        return await self.exchange_service.list_all()

    async def force_exchange_status(self, exchange_id: int, raw_status: str, admin: User) -> ExchangeDetail:
        return await self.exchange_service.force_status(exchange_id, raw_status, admin)

    async def reconcile_exchange(self, exchange_id: int, admin: User) -> ReconcileResponse:
        return await self.exchange_service.reconcile(exchange_id, admin)
