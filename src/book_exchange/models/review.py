"""Review model for rating the counterparty of a completed exchange."""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Column, DateTime, Index
from sqlalchemy import CheckConstraint, UniqueConstraint, func


class Review(SQLModel, table=True):
    """A rating left by one party of a completed exchange for the other."""

    __tablename__ = "reviews"

    id: Optional[int] = Field(default=None, primary_key=True)
    reviewer_id: int = Field(foreign_key="users.id", index=True)
    reviewee_id: int = Field(foreign_key="users.id", index=True)
    exchange_request_id: int = Field(foreign_key="exchange_requests.id", index=True)
    rating: int = Field(ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        UniqueConstraint(
            "reviewer_id", "reviewee_id", "exchange_request_id",
            name="uq_reviews_reviewer_reviewee_exchange",
        ),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        Index("idx_reviews_reviewee_created", "reviewee_id", "created_at"),
    )
