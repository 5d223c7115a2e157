"""Message model for conversations inside an exchange."""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, DateTime, Index
from sqlalchemy import func


class Message(SQLModel, table=True):
    """A message sent between the two parties of an exchange request."""

    __tablename__ = "messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="users.id", index=True)
    receiver_id: int = Field(foreign_key="users.id", index=True)
    exchange_request_id: int = Field(foreign_key="exchange_requests.id", index=True)
    content: str = Field(max_length=2000, min_length=1)
    is_read: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_messages_exchange_created", "exchange_request_id", "created_at"),
        Index("idx_messages_receiver_read", "receiver_id", "is_read"),
    )
