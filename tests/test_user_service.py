"""Unit tests for UserService.

This module contains unit tests for the UserService class with the
repository mocked out, covering registration, login, and profile updates.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from sqlmodel import Session

from book_exchange.config import Settings
from book_exchange.exceptions import (
    AuthenticationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    ValidationException,
)
from book_exchange.models.user import User
from book_exchange.repositories.user_repository import (
    UserAlreadyExistsError,
    UserRepository,
    UserRepositoryError,
)
from book_exchange.schemas.auth_schemas import LoginRequest, ProfileUpdate, RegisterRequest
from book_exchange.services.media_service import ImageUpload, MediaService
from book_exchange.services.user_service import PROFILE_IMAGE_FOLDER, UserService


class TestUserService:
    """Test cases for UserService."""

    @pytest.fixture
    def mock_repository(self) -> Mock:
        """Create mock user repository."""
        repository = Mock(spec=UserRepository)
        for name in ("get_by_id", "get_by_email", "find_conflicting", "create", "update"):
            setattr(repository, name, AsyncMock())
        return repository

    @pytest.fixture
    def mock_media(self) -> Mock:
        media = Mock(spec=MediaService)
        media.upload_image = AsyncMock(return_value="https://cdn.example.com/me.png")
        return media

    @pytest.fixture
    def user_service(
        self, test_settings: Settings, mock_repository: Mock, mock_media: Mock
    ) -> UserService:
        """Create UserService instance for testing."""
        service = UserService(Mock(spec=Session), test_settings, media=mock_media)
        service.repository = mock_repository
        return service

    @pytest.fixture
    def sample_user(self, password_hash: str) -> User:
        """Create sample user for testing."""
        return User(
            id=1,
            username="bookworm",
            email="reader@example.com",
            hashed_password=password_hash,
        )

    @pytest.mark.asyncio
    async def test_get_user_by_id_repository_error(self, user_service: UserService, mock_repository: Mock):
        mock_repository.get_by_id.side_effect = UserRepositoryError("Database error")

        with pytest.raises(DatabaseException):
            await user_service.get_user_by_id(1)

    @pytest.mark.asyncio
    async def test_register_returns_token(
        self, user_service: UserService, mock_repository: Mock, sample_user: User, test_settings: Settings
    ):
        mock_repository.create.return_value = sample_user

        result = await user_service.register(
            RegisterRequest(username="bookworm", email="reader@example.com", password="secret123")
        )

        assert result.id == 1
        assert result.token
        kwargs = mock_repository.create.call_args.kwargs
        assert kwargs["hashed_password"] != "secret123"
        assert kwargs["profile_picture_url"] == test_settings.default_profile_image_url

    @pytest.mark.asyncio
    async def test_register_conflict(self, user_service: UserService, mock_repository: Mock):
        mock_repository.create.side_effect = UserAlreadyExistsError("User with this email or username already exists")

        with pytest.raises(ConflictException):
            await user_service.register(
                RegisterRequest(username="bookworm", email="reader@example.com", password="secret123")
            )

    @pytest.mark.asyncio
    async def test_login_success(self, user_service: UserService, mock_repository: Mock, sample_user: User):
        mock_repository.get_by_email.return_value = sample_user

        result = await user_service.login(LoginRequest(email="reader@example.com", password="secret123"))

        assert result.username == "bookworm"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, user_service: UserService, mock_repository: Mock, sample_user: User):
        mock_repository.get_by_email.return_value = sample_user

        with pytest.raises(AuthenticationException):
            await user_service.login(LoginRequest(email="reader@example.com", password="nope"))

    @pytest.mark.asyncio
    async def test_public_profile_not_found(self, user_service: UserService, mock_repository: Mock):
        mock_repository.get_by_id.return_value = None

        with pytest.raises(NotFoundException):
            await user_service.get_public_profile(999)

    @pytest.mark.asyncio
    async def test_update_profile_rejects_short_password(
        self, user_service: UserService, mock_repository: Mock, sample_user: User
    ):
        with pytest.raises(ValidationException):
            await user_service.update_profile(sample_user, ProfileUpdate(password="123"))

        mock_repository.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_profile_hashes_password(
        self, user_service: UserService, mock_repository: Mock, sample_user: User
    ):
        mock_repository.update.return_value = sample_user

        await user_service.update_profile(sample_user, ProfileUpdate(password="newsecret"))

        changes = mock_repository.update.call_args.args[1]
        assert "password" not in changes
        assert changes["hashed_password"] != "newsecret"

    @pytest.mark.asyncio
    async def test_update_profile_email_conflict(
        self, user_service: UserService, mock_repository: Mock, sample_user: User
    ):
        mock_repository.find_conflicting.return_value = User(
            id=2, username="other", email="taken@example.com", hashed_password="x"
        )

        with pytest.raises(ConflictException) as exc_info:
            await user_service.update_profile(sample_user, ProfileUpdate(email="Taken@example.com"))

        assert exc_info.value.message == "Email already in use"
        mock_repository.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_profile_unchanged_email_skips_uniqueness_check(
        self, user_service: UserService, mock_repository: Mock, sample_user: User
    ):
        mock_repository.update.return_value = sample_user

        await user_service.update_profile(sample_user, ProfileUpdate(email=sample_user.email, city="Porto"))

        mock_repository.find_conflicting.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_profile_uploads_picture(
        self, user_service: UserService, mock_repository: Mock, mock_media: Mock, sample_user: User
    ):
        mock_repository.update.return_value = sample_user
        image = ImageUpload(content=b"\x89PNG", content_type="image/png", filename="me.png")

        await user_service.update_profile(sample_user, ProfileUpdate(), image)

        mock_media.upload_image.assert_awaited_once_with(image, folder=PROFILE_IMAGE_FOLDER)
        changes = mock_repository.update.call_args.args[1]
        assert changes["profile_picture_url"] == "https://cdn.example.com/me.png"
