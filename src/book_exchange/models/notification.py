"""Notification model.

Notifications are persisted before they are pushed over the real-time
channel, so a user who was offline still finds them in their inbox.
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, DateTime, Index
from sqlalchemy import func

from .enums import NotificationType


class Notification(SQLModel, table=True):
    """Notification model for database storage.

    Attributes:
        id: Primary key (auto-generated)
        recipient_id: User who receives the notification
        sender_id: User whose action triggered it (None for system alerts)
        type: Notification category
        reference_id: ID of the related entity (usually an exchange request)
        message: Human-readable text
        is_read: Whether the recipient has read it
        read_at: When it was marked read
    """

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_id: int = Field(foreign_key="users.id", index=True)
    sender_id: Optional[int] = Field(default=None, foreign_key="users.id")
    type: NotificationType = Field(description="Notification category")
    reference_id: Optional[int] = Field(default=None, description="Related entity ID")
    message: str = Field(max_length=500)
    is_read: bool = Field(default=False)

    read_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
        Index("idx_notifications_recipient_read", "recipient_id", "is_read"),
    )
