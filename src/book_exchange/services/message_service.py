"""Message service for conversations inside an exchange.

Only the two parties of an exchange request can read or write its
conversation, and a message always goes to the other party.
"""

from sqlmodel import Session

from ..exceptions import (
    AuthorizationException,
    DatabaseException,
    NotFoundException,
    ValidationException,
)
from ..logging_config import get_logger, log_database_operation
from ..models.enums import NotificationType
from ..models.exchange import ExchangeRequest
from ..models.user import User
from ..repositories.base import RepositoryError
from ..repositories.exchange_repository import ExchangeRepository
from ..repositories.message_repository import MessageRepository
from ..repositories.user_repository import UserRepository
from ..schemas.common import UserSummary
from ..schemas.message_schemas import MessageCreate, MessageResponse
from .notification_service import NotificationService

logger = get_logger("message_service")

NOTIFICATION_PREVIEW_LENGTH = 50


class MessageService:
    """Service for exchange conversations."""

    def __init__(self, session: Session, notifier: NotificationService | None = None) -> None:
        self.session = session
        self.notifier = notifier
        self.message_repository = MessageRepository(session)
        self.exchange_repository = ExchangeRepository(session)
        self.user_repository = UserRepository(session)

    async def send_message(self, sender: User, data: MessageCreate) -> MessageResponse:
        """Send a message to the other party of an exchange.

        Raises:
            ValidationException: If the sender addresses themselves or a non-party
            NotFoundException: If the exchange does not exist
            AuthorizationException: If the sender is not a party
        """
        if data.receiver_id == sender.id:
            raise ValidationException("You cannot send a message to yourself", field="receiverId")

        exchange = self._load_for_party(data.exchange_request_id, sender)
        if data.receiver_id != exchange.other_party(sender.id):
            raise ValidationException(
                "The receiver is not the other party of this exchange", field="receiverId"
            )

        try:
            message = self.message_repository.create(
                sender_id=sender.id,
                receiver_id=data.receiver_id,
                exchange_request_id=exchange.id,
                content=data.content,
            )
        except RepositoryError as e:
            log_database_operation(operation="INSERT", table="messages", success=False, error=e.message)
            raise DatabaseException("Failed to send message", operation="create") from e

        log_database_operation(
            operation="INSERT",
            table="messages",
            success=True,
            message_id=message.id,
            exchange_id=exchange.id,
        )

        if self.notifier is not None:
            preview = data.content[:NOTIFICATION_PREVIEW_LENGTH]
            if len(data.content) > NOTIFICATION_PREVIEW_LENGTH:
                preview += "..."
            try:
                await self.notifier.notify(
                    recipient_id=data.receiver_id,
                    sender_id=sender.id,
                    type=NotificationType.MESSAGE,
                    reference_id=exchange.id,
                    message=f"New message from {sender.username}: \"{preview}\"",
                )
            except Exception as e:
                logger.error(
                    f"Failed to send message notification: {str(e)}",
                    exc_info=True,
                    extra={"message_id": message.id},
                )

        return MessageResponse(
            **MessageResponse.model_validate(message).model_dump(exclude={"sender"}),
            sender=UserSummary.model_validate(sender),
        )

    async def get_conversation(self, exchange_request_id: int, user: User) -> list[MessageResponse]:
        """Get an exchange's messages, oldest first, marking the user's received ones read.

        Raises:
            NotFoundException: If the exchange does not exist
            AuthorizationException: If the user is not a party
        """
        exchange = self._load_for_party(exchange_request_id, user)
        try:
            self.message_repository.mark_read(exchange.id, user.id)
            messages = self.message_repository.list_for_exchange(exchange.id)
            senders = await self.user_repository.get_many({m.sender_id for m in messages})
        except RepositoryError as e:
            raise DatabaseException("Failed to load messages", operation="list") from e

        result = []
        for message in messages:
            sender = senders.get(message.sender_id)
            result.append(
                MessageResponse(
                    **MessageResponse.model_validate(message).model_dump(exclude={"sender"}),
                    sender=UserSummary.model_validate(sender) if sender else None,
                )
            )
        return result

    async def unread_count(self, user_id: int) -> int:
        try:
            return self.message_repository.count_unread(user_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to count messages", operation="count") from e

    def _load_for_party(self, exchange_request_id: int, user: User) -> ExchangeRequest:
        try:
            exchange = self.exchange_repository.get_by_id(exchange_request_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load exchange request", operation="get") from e
        if exchange is None:
            raise NotFoundException("ExchangeRequest", exchange_request_id, "Exchange request not found")
        if not exchange.is_party(user.id):
            raise AuthorizationException("You are not a party to this exchange")
        return exchange
