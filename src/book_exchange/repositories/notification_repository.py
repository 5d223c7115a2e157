"""Notification repository for database operations."""

from datetime import datetime

from sqlalchemy import delete, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ..models.enums import NotificationType
from ..models.notification import Notification
from .base import BaseRepository, RepositoryError

# Notification types whose reference_id points at an exchange request
EXCHANGE_REFERENCE_TYPES = (
    NotificationType.EXCHANGE_REQUEST,
    NotificationType.STATUS_UPDATE,
    NotificationType.MESSAGE,
    NotificationType.SYSTEM_ALERT,
)


class NotificationRepositoryError(RepositoryError):
    """Base exception for notification repository errors."""
    pass


class NotificationRepository(BaseRepository):
    """Repository for persisted notifications."""

    table = "notifications"

    def create(
        self,
        recipient_id: int,
        sender_id: int | None,
        type: NotificationType,
        reference_id: int | None,
        message: str,
    ) -> Notification:
        """Persist a notification and commit.

        Raises:
            NotificationRepositoryError: If database operation fails
        """
        try:
            notification = Notification(
                recipient_id=recipient_id,
                sender_id=sender_id,
                type=type,
                reference_id=reference_id,
                message=message,
            )
            self.session.add(notification)
            self.session.commit()
            self.session.refresh(notification)
            return notification
        except SQLAlchemyError as e:
            self.session.rollback()
            raise NotificationRepositoryError(
                f"Database error while creating notification: {str(e)}",
                original_error=e,
            ) from e

    def get_by_id(self, notification_id: int) -> Notification | None:
        try:
            return self.session.get(Notification, notification_id)
        except SQLAlchemyError as e:
            raise NotificationRepositoryError(
                f"Database error while retrieving notification {notification_id}: {str(e)}",
                original_error=e,
            ) from e

    def list_for_recipient(self, recipient_id: int, limit: int = 100) -> list[Notification]:
        """Get a user's notifications, newest first."""
        try:
            statement = (
                select(Notification)
                .where(Notification.recipient_id == recipient_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())
                .limit(limit)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise NotificationRepositoryError(
                f"Database error while listing notifications: {str(e)}",
                original_error=e,
            ) from e

    def count_unread(self, recipient_id: int) -> int:
        try:
            statement = select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise NotificationRepositoryError(
                f"Database error while counting notifications: {str(e)}",
                original_error=e,
            ) from e

    def mark_read(self, notification: Notification) -> Notification:
        """Mark one notification read (idempotent) and commit."""
        if notification.is_read:
            return notification
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        self.session.add(notification)
        self._commit("mark read")
        self.session.refresh(notification)
        return notification

    def mark_all_read(self, recipient_id: int) -> int:
        """Mark every unread notification of a user read and commit.

        Returns:
            int: Number of notifications updated
        """
        try:
            result = self.session.execute(
                update(Notification)
                .where(
                    Notification.recipient_id == recipient_id,
                    Notification.is_read.is_(False),
                )
                .values(is_read=True, read_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            self._commit("mark all read")
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.session.rollback()
            raise NotificationRepositoryError(
                f"Database error while marking notifications read: {str(e)}",
                original_error=e,
            ) from e

    def delete_for_exchanges(self, exchange_ids: list[int]) -> int:
        """Delete notifications that point at the given exchanges. Caller commits."""
        if not exchange_ids:
            return 0
        return self._delete(
            Notification.type.in_(EXCHANGE_REFERENCE_TYPES),
            Notification.reference_id.in_(exchange_ids),
        )

    def delete_for_user(self, user_id: int) -> int:
        """Delete notifications sent to or by a user. Caller commits."""
        return self._delete(
            or_(Notification.recipient_id == user_id, Notification.sender_id == user_id)
        )

    def _delete(self, *criteria) -> int:
        try:
            result = self.session.execute(
                delete(Notification).where(*criteria).execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise NotificationRepositoryError(
                f"Database error while deleting notifications: {str(e)}",
                original_error=e,
            ) from e
