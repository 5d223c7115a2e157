"""Exchange request schemas.

This module defines the payloads used to create exchange requests, change
their status, and the detailed representations returned to the parties.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..models.enums import ExchangeStatus
from .common import BookSummary, CamelModel, UserSummary


class ExchangeCreate(CamelModel):
    """Schema for requesting a book."""

    requested_book_id: int = Field(..., gt=0, description="Book the requester wants")
    offered_book_id: Optional[int] = Field(
        default=None, gt=0, description="Requester's own book offered in return"
    )
    request_message: str = Field(
        default="", max_length=1000, description="Message to the owner"
    )


class StatusUpdate(CamelModel):
    """Requested status change.

    The status is kept as free text so that unknown values are reported as a
    domain validation error rather than a schema error.
    """

    status: str = Field(..., min_length=1, max_length=50, description="Target status")


class ExchangeResponse(CamelModel):
    """Exchange request record."""

    id: int
    requester_id: int
    owner_id: int
    requested_book_id: int
    offered_book_id: Optional[int] = None
    status: ExchangeStatus
    request_message: str = ""
    completed_at: Optional[datetime] = None
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class ExchangeDetail(ExchangeResponse):
    """Exchange request with its parties and books resolved."""

    requester: Optional[UserSummary] = None
    owner: Optional[UserSummary] = None
    requested_book: Optional[BookSummary] = None
    offered_book: Optional[BookSummary] = None


class MyRequestsResponse(CamelModel):
    """Requests the user sent and requests the user received as owner."""

    sent_requests: list[ExchangeDetail] = Field(default_factory=list)
    received_requests: list[ExchangeDetail] = Field(default_factory=list)


class ReconcileResponse(CamelModel):
    """Result of an availability reconciliation run."""

    exchange_id: int
    books: list[BookSummary] = Field(default_factory=list)
    changed: int = Field(ge=0, description="Number of books whose availability changed")
