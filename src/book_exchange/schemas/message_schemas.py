"""Schemas for exchange conversations and the notification inbox."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..models.enums import NotificationType
from .common import CamelModel, UserSummary


class MessageCreate(CamelModel):
    """Schema for sending a message inside an exchange."""

    receiver_id: int = Field(..., gt=0)
    exchange_request_id: int = Field(..., gt=0)
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be empty")
        return v


class MessageResponse(CamelModel):
    id: int
    sender_id: int
    receiver_id: int
    exchange_request_id: int
    content: str
    is_read: bool
    created_at: datetime
    sender: Optional[UserSummary] = None


class NotificationResponse(CamelModel):
    id: int
    recipient_id: int
    sender_id: Optional[int] = None
    type: NotificationType
    reference_id: Optional[int] = None
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationReadResponse(CamelModel):
    message: str
    notification: NotificationResponse


class MarkAllReadResponse(CamelModel):
    message: str
    updated: int = Field(ge=0)
