"""Message repository for database operations."""

from sqlalchemy import delete, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ..models.message import Message
from .base import BaseRepository, RepositoryError


class MessageRepositoryError(RepositoryError):
    """Base exception for message repository errors."""
    pass


class MessageRepository(BaseRepository):
    """Repository for exchange conversation messages."""

    table = "messages"

    def create(
        self, sender_id: int, receiver_id: int, exchange_request_id: int, content: str
    ) -> Message:
        try:
            message = Message(
                sender_id=sender_id,
                receiver_id=receiver_id,
                exchange_request_id=exchange_request_id,
                content=content,
            )
            self.session.add(message)
            self.session.commit()
            self.session.refresh(message)
            return message
        except SQLAlchemyError as e:
            self.session.rollback()
            raise MessageRepositoryError(
                f"Database error while creating message: {str(e)}", original_error=e
            ) from e

    def list_for_exchange(self, exchange_request_id: int) -> list[Message]:
        """Get the conversation of an exchange, oldest first."""
        try:
            statement = (
                select(Message)
                .where(Message.exchange_request_id == exchange_request_id)
                .order_by(Message.created_at.asc(), Message.id.asc())
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise MessageRepositoryError(
                f"Database error while listing messages: {str(e)}", original_error=e
            ) from e

    def mark_read(self, exchange_request_id: int, receiver_id: int) -> int:
        """Mark the receiver's unread messages in a conversation as read and commit.

        Returns:
            int: Number of messages updated
        """
        try:
            result = self.session.execute(
                update(Message)
                .where(
                    Message.exchange_request_id == exchange_request_id,
                    Message.receiver_id == receiver_id,
                    Message.is_read.is_(False),
                )
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
            self._commit("mark read")
            return result.rowcount or 0
        except SQLAlchemyError as e:
            self.session.rollback()
            raise MessageRepositoryError(
                f"Database error while marking messages read: {str(e)}",
                original_error=e,
            ) from e

    def count_unread(self, receiver_id: int) -> int:
        try:
            statement = select(func.count(Message.id)).where(
                Message.receiver_id == receiver_id, Message.is_read.is_(False)
            )
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise MessageRepositoryError(
                f"Database error while counting unread messages: {str(e)}",
                original_error=e,
            ) from e

    def delete_for_exchanges(self, exchange_ids: list[int]) -> int:
        """Delete the conversations of the given exchanges. Caller commits."""
        if not exchange_ids:
            return 0
        return self._delete(Message.exchange_request_id.in_(exchange_ids))

    def delete_for_user(self, user_id: int) -> int:
        """Delete messages sent or received by a user. Caller commits."""
        return self._delete(or_(Message.sender_id == user_id, Message.receiver_id == user_id))

    def _delete(self, criterion) -> int:
        try:
            result = self.session.execute(
                delete(Message).where(criterion).execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise MessageRepositoryError(
                f"Database error while deleting messages: {str(e)}", original_error=e
            ) from e
