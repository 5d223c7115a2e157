"""Authentication and profile schemas.

This module defines Pydantic schemas for registration, login, bearer token
responses and user profiles. Field names are exchanged in camelCase.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import CamelModel


class RegisterRequest(CamelModel):
    """Schema for account registration."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username",
        examples=["bookworm"],
    )
    email: EmailStr = Field(..., description="Login email address", examples=["reader@example.com"])
    password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        description="Password (at least 6 characters)",
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Reject blank or whitespace-only usernames."""
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be empty or whitespace")
        if any(ch.isspace() for ch in v):
            raise ValueError("Username cannot contain whitespace")
        return v


class LoginRequest(CamelModel):
    """Schema for email/password login."""

    email: EmailStr = Field(..., description="Login email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class UserProfile(CamelModel):
    """Private profile of the authenticated user."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    email: str = Field(description="Email address")
    first_name: Optional[str] = Field(default=None, description="First name")
    last_name: Optional[str] = Field(default=None, description="Last name")
    address: Optional[str] = Field(default=None, description="Street address")
    city: Optional[str] = Field(default=None, description="City")
    state: Optional[str] = Field(default=None, description="State or region")
    zip_code: Optional[str] = Field(default=None, description="Postal code")
    profile_picture_url: Optional[str] = Field(default=None, description="Profile picture URL")
    is_admin: bool = Field(default=False, description="Administrator flag")
    created_at: datetime = Field(description="Account creation timestamp")


class AuthResponse(UserProfile):
    """Profile returned together with a freshly issued bearer token."""

    token: str = Field(description="JWT bearer token")
    token_type: str = Field(default="bearer", description="Token type")


class PublicProfile(CamelModel):
    """Profile fields visible to any visitor."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    first_name: Optional[str] = Field(default=None, description="First name")
    last_name: Optional[str] = Field(default=None, description="Last name")
    city: Optional[str] = Field(default=None, description="City")
    state: Optional[str] = Field(default=None, description="State or region")
    profile_picture_url: Optional[str] = Field(default=None, description="Profile picture URL")
    created_at: datetime = Field(description="Account creation timestamp")


class ProfileUpdate(CamelModel):
    """Partial profile update.

    Built by the router from multipart form fields; unset fields are left
    unchanged.
    """

    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
