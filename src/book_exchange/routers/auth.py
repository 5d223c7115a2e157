"""Authentication and profile router.

This module provides endpoints for registration, email/password login,
reading and editing the caller's profile, and public profiles of other
users. Errors raised by the services are rendered by the global exception
handlers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ..dependencies import CurrentUser, get_user_service
from ..schemas.auth_schemas import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    PublicProfile,
    RegisterRequest,
    UserProfile,
)
from ..services.user_service import UserService
from .forms import read_image, validate_form

router = APIRouter(
    prefix="/api/auth",
    tags=["authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        409: {"description": "Email or username already in use"},
        500: {"description": "Internal server error"},
    },
)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and return it together with a bearer token",
)
async def register(
    data: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Register a new account.

    Args:
        data: Username, email and password
        user_service: User service for account operations

    Returns:
        AuthResponse: The new profile with a bearer token

    Example:
        POST /api/auth/register
        {
            "username": "bookworm",
            "email": "reader@example.com",
            "password": "secret1"
        }

        Response:
        {
            "id": 1,
            "username": "bookworm",
            "email": "reader@example.com",
            "isAdmin": false,
            "token": "eyJhbGciOi...",
            "tokenType": "bearer",
            ...
        }
    """
    return await user_service.register(data)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in",
    description="Authenticate with email and password",
)
async def login(
    data: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Log in with email and password.

    Args:
        data: Email and password
        user_service: User service for account operations

    Returns:
        AuthResponse: The profile with a fresh bearer token

    Raises:
        AuthenticationException: If the credentials are wrong
    """
    return await user_service.login(data)


@router.get(
    "/profile",
    response_model=UserProfile,
    summary="Get my profile",
)
async def get_profile(
    current_user: CurrentUser,
    user_service: UserService = Depends(get_user_service),
) -> UserProfile:
    return user_service.get_profile(current_user)


@router.put(
    "/profile",
    response_model=AuthResponse,
    summary="Update my profile",
    description=(
        "Partial profile update sent as multipart form data. An optional "
        "profileImage file replaces the profile picture."
    ),
)
async def update_profile(
    current_user: CurrentUser,
    username: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    first_name: Annotated[str | None, Form(alias="firstName")] = None,
    last_name: Annotated[str | None, Form(alias="lastName")] = None,
    address: Annotated[str | None, Form()] = None,
    city: Annotated[str | None, Form()] = None,
    state: Annotated[str | None, Form()] = None,
    zip_code: Annotated[str | None, Form(alias="zipCode")] = None,
    profile_image: Annotated[UploadFile | None, File(alias="profileImage")] = None,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Update the caller's profile.

    Only submitted fields change. A new password must have at least six
    characters, and a changed email or username must still be unique.

    Returns:
        AuthResponse: The updated profile with a fresh bearer token

    Raises:
        ValidationException: If the password or image is not acceptable
        ConflictException: If the email or username is taken
        DependencyException: If the image upload fails
    """
    changes = validate_form(
        ProfileUpdate,
        {
            "username": username,
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "address": address,
            "city": city,
            "state": state,
            "zip_code": zip_code,
        },
    )
    image = await read_image(profile_image)
    return await user_service.update_profile(current_user, changes, image)


@router.get(
    "/profile/{user_id}",
    response_model=PublicProfile,
    summary="Get a public profile",
)
async def get_public_profile(
    user_id: int,
    user_service: UserService = Depends(get_user_service),
) -> PublicProfile:
    """Get another user's public profile.

    Raises:
        NotFoundException: If the user does not exist
    """
    return await user_service.get_public_profile(user_id)
