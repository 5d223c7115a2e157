"""Exchange request model.

An exchange request is a proposal by a requester to obtain a book from its
owner, optionally offering one of the requester's own books in return.
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, DateTime, Index
from sqlalchemy import func

from .enums import ExchangeStatus


class ExchangeRequest(SQLModel, table=True):
    """Exchange request model for database storage.

    The status column only changes through the exchange lifecycle; every
    status write bumps `version`, which concurrent writers compare against.

    Attributes:
        id: Primary key (auto-generated)
        requester_id: User who initiated the request
        owner_id: Owner of the requested book
        requested_book_id: Book the requester wants
        offered_book_id: Optional book the requester offers in return
        status: Current lifecycle state
        request_message: Free text sent with the request
        completed_at: Set when the exchange completes
        version: Optimistic concurrency counter
    """

    __tablename__ = "exchange_requests"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Primary key (auto-generated)"
    )

    requester_id: int = Field(foreign_key="users.id", description="Requesting user ID", index=True)
    owner_id: int = Field(foreign_key="users.id", description="Owner of the requested book", index=True)
    requested_book_id: int = Field(foreign_key="books.id", description="Requested book ID", index=True)
    offered_book_id: Optional[int] = Field(
        default=None,
        foreign_key="books.id",
        description="Offered book ID",
        index=True
    )

    status: ExchangeStatus = Field(default=ExchangeStatus.PENDING, description="Lifecycle state", index=True)
    request_message: str = Field(default="", max_length=1000, description="Message sent with the request")

    completed_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when the exchange was completed",
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    version: int = Field(default=1, description="Optimistic concurrency counter")

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when request was created",
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    updated_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when request was last updated",
        sa_column=Column(DateTime(timezone=True), onupdate=func.now())
    )

    __table_args__ = (
        Index("idx_exchanges_requester_book_status", "requester_id", "requested_book_id", "status"),
        Index("idx_exchanges_created_at", "created_at"),
    )

    def is_party(self, user_id: int) -> bool:
        return user_id in (self.requester_id, self.owner_id)

    def other_party(self, user_id: int) -> int:
        """Return the counterparty of `user_id` in this exchange."""
        return self.owner_id if user_id == self.requester_id else self.requester_id

    @property
    def book_ids(self) -> list[int]:
        """IDs of the books this exchange references."""
        return [
            book_id
            for book_id in (self.requested_book_id, self.offered_book_id)
            if book_id is not None
        ]
