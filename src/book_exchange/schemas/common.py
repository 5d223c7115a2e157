"""Shared schema building blocks.

All request and response bodies exchange camelCase field names with clients
while keeping snake_case attribute names in Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.enums import AvailabilityStatus, BookCondition


class CamelModel(BaseModel):
    """Base schema that serializes with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSummary(CamelModel):
    """Public summary of a user embedded in other responses."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    profile_picture_url: str | None = Field(default=None, description="Profile picture URL")


class BookSummary(CamelModel):
    """Summary of a book embedded in other responses."""

    id: int = Field(description="Book ID")
    owner_id: int = Field(description="Owner user ID")
    title: str = Field(description="Book title")
    author: str = Field(description="Book author")
    condition: BookCondition = Field(description="Physical condition")
    image_url: str | None = Field(default=None, description="Cover image URL")
    availability_status: AvailabilityStatus = Field(description="Availability")


class OperationResponse(CamelModel):
    """Plain acknowledgement returned by delete and bulk operations."""

    message: str = Field(description="Human-readable result")


class CountResponse(CamelModel):
    """Unread counters."""

    count: int = Field(ge=0, description="Number of matching records")
