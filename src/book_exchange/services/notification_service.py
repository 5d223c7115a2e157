"""Notification service: persisted notifications plus real-time push.

Every notification is stored first and then pushed to the recipient's open
WebSocket channels as a ``newNotification`` event. A failed push never fails
the caller; the stored notification remains in the inbox.
"""

from sqlmodel import Session

from ..exceptions import AuthorizationException, DatabaseException, NotFoundException
from ..logging_config import get_logger, log_database_operation
from ..models.enums import NotificationType
from ..models.notification import Notification
from ..repositories.base import RepositoryError
from ..repositories.notification_repository import NotificationRepository
from ..schemas.message_schemas import (
    MarkAllReadResponse,
    NotificationReadResponse,
    NotificationResponse,
)
from .realtime import ConnectionManager

logger = get_logger("notification_service")

NEW_NOTIFICATION_EVENT = "newNotification"


class NotificationService:
    """Service for creating, delivering and reading notifications."""

    def __init__(self, session: Session, connections: ConnectionManager) -> None:
        """Initialize notification service.

        Args:
            session: SQLModel database session
            connections: Real-time channel registry used for push delivery
        """
        self.session = session
        self.connections = connections
        self.repository = NotificationRepository(session)

    async def notify(
        self,
        recipient_id: int,
        sender_id: int | None,
        type: NotificationType,
        reference_id: int | None,
        message: str,
    ) -> Notification:
        """Persist a notification and push it to the recipient.

        Args:
            recipient_id: User who receives the notification
            sender_id: User who caused it (None for system notifications)
            type: Notification kind
            reference_id: ID of the related record (exchange, review)
            message: Human-readable text

        Returns:
            Notification: The stored notification

        Raises:
            DatabaseException: If the notification could not be stored
        """
        try:
            notification = self.repository.create(
                recipient_id=recipient_id,
                sender_id=sender_id,
                type=type,
                reference_id=reference_id,
                message=message,
            )
        except RepositoryError as e:
            log_database_operation(
                operation="INSERT",
                table="notifications",
                success=False,
                error=e.message,
                recipient_id=recipient_id,
            )
            raise DatabaseException("Failed to store notification", operation="notify") from e

        await self._push(notification)
        return notification

    async def _push(self, notification: Notification) -> None:
        payload = {
            "event": NEW_NOTIFICATION_EVENT,
            "notification": NotificationResponse.model_validate(notification).model_dump(
                mode="json", by_alias=True
            ),
        }
        try:
            delivered = await self.connections.send_to_user(notification.recipient_id, payload)
            logger.debug(
                f"Notification {notification.id} pushed to {delivered} socket(s)",
                extra={"notification_id": notification.id, "delivered": delivered},
            )
        except Exception as e:
            logger.warning(
                f"Real-time push of notification {notification.id} failed: {str(e)}",
                extra={
                    "notification_id": notification.id,
                    "recipient_id": notification.recipient_id,
                },
            )

    async def list_notifications(self, user_id: int) -> list[NotificationResponse]:
        try:
            notifications = self.repository.list_for_recipient(user_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load notifications", operation="list") from e
        return [NotificationResponse.model_validate(n) for n in notifications]

    async def unread_count(self, user_id: int) -> int:
        try:
            return self.repository.count_unread(user_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to count notifications", operation="count") from e

    async def mark_read(self, notification_id: int, user_id: int) -> NotificationReadResponse:
        """Mark one of the user's notifications as read.

        Raises:
            NotFoundException: If the notification does not exist
            AuthorizationException: If the notification belongs to someone else
        """
        try:
            notification = self.repository.get_by_id(notification_id)
            if notification is None:
                raise NotFoundException("Notification", notification_id)
            if notification.recipient_id != user_id:
                raise AuthorizationException("Not authorized to mark this notification as read")
            notification = self.repository.mark_read(notification)
        except RepositoryError as e:
            raise DatabaseException("Failed to update notification", operation="mark_read") from e

        return NotificationReadResponse(
            message="Notification marked as read.",
            notification=NotificationResponse.model_validate(notification),
        )

    async def mark_all_read(self, user_id: int) -> MarkAllReadResponse:
        try:
            updated = self.repository.mark_all_read(user_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to update notifications", operation="mark_all_read") from e

        log_database_operation(
            operation="UPDATE", table="notifications", success=True, user_id=user_id, updated=updated
        )
        return MarkAllReadResponse(message="All notifications marked as read.", updated=updated)
