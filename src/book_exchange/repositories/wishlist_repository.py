"""Wishlist repository for database operations."""

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ..models.wishlist import WishlistItem
from .base import AlreadyExistsError, BaseRepository, RepositoryError


class WishlistRepositoryError(RepositoryError):
    """Base exception for wishlist repository errors."""
    pass


class WishlistItemAlreadyExistsError(AlreadyExistsError, WishlistRepositoryError):
    """Raised when the book is already on the user's wishlist."""
    pass


class WishlistRepository(BaseRepository):
    """Repository for wishlist items."""

    table = "wishlist_items"

    def create(
        self,
        user_id: int,
        title: str,
        author: str,
        book_id: int | None = None,
        notes: str | None = None,
    ) -> WishlistItem:
        try:
            item = WishlistItem(
                user_id=user_id, book_id=book_id, title=title, author=author, notes=notes
            )
            self.session.add(item)
            self.session.commit()
            self.session.refresh(item)
            return item
        except IntegrityError as e:
            self.session.rollback()
            raise WishlistItemAlreadyExistsError(
                "This book is already in your wishlist", original_error=e
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise WishlistRepositoryError(
                f"Database error while creating wishlist item: {str(e)}",
                original_error=e,
            ) from e

    def get_by_id(self, item_id: int) -> WishlistItem | None:
        try:
            return self.session.get(WishlistItem, item_id)
        except SQLAlchemyError as e:
            raise WishlistRepositoryError(
                f"Database error while retrieving wishlist item {item_id}: {str(e)}",
                original_error=e,
            ) from e

    def find_for_book(self, user_id: int, book_id: int) -> WishlistItem | None:
        try:
            statement = select(WishlistItem).where(
                WishlistItem.user_id == user_id, WishlistItem.book_id == book_id
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise WishlistRepositoryError(
                f"Database error while checking wishlist: {str(e)}", original_error=e
            ) from e

    def find_unlinked(self, user_id: int, title: str, author: str) -> WishlistItem | None:
        """Find a title/author entry without a linked book (case-insensitive)."""
        try:
            statement = select(WishlistItem).where(
                WishlistItem.user_id == user_id,
                WishlistItem.book_id.is_(None),
                func.lower(WishlistItem.title) == title.lower(),
                func.lower(WishlistItem.author) == author.lower(),
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise WishlistRepositoryError(
                f"Database error while checking wishlist: {str(e)}", original_error=e
            ) from e

    def list_for_user(self, user_id: int) -> list[WishlistItem]:
        try:
            statement = (
                select(WishlistItem)
                .where(WishlistItem.user_id == user_id)
                .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise WishlistRepositoryError(
                f"Database error while listing wishlist: {str(e)}", original_error=e
            ) from e

    def delete(self, item: WishlistItem) -> None:
        """Delete one wishlist item and commit."""
        try:
            self.session.delete(item)
        except SQLAlchemyError as e:
            raise WishlistRepositoryError(
                f"Database error while deleting wishlist item: {str(e)}",
                original_error=e,
            ) from e
        self._commit("delete")

    def delete_for_books(self, book_ids: list[int]) -> int:
        """Delete wishlist entries linked to the given books. Caller commits."""
        if not book_ids:
            return 0
        return self._delete(WishlistItem.book_id.in_(book_ids))

    def delete_for_user(self, user_id: int) -> int:
        """Delete a user's wishlist. Caller commits."""
        return self._delete(WishlistItem.user_id == user_id)

    def _delete(self, criterion) -> int:
        try:
            result = self.session.execute(
                delete(WishlistItem).where(criterion).execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise WishlistRepositoryError(
                f"Database error while deleting wishlist items: {str(e)}",
                original_error=e,
            ) from e
