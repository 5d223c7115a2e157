"""User service for business logic operations.

This module provides business logic for user management operations,
including registration, login, profile retrieval and profile updates with
proper validation.
"""

from sqlmodel import Session

from ..config import Settings
from ..exceptions import (
    AuthenticationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    ValidationException,
)
from ..logging_config import get_logger, log_database_operation
from ..models.user import User
from ..repositories.user_repository import (
    UserAlreadyExistsError,
    UserRepository,
    UserRepositoryError,
)
from ..schemas.auth_schemas import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    PublicProfile,
    RegisterRequest,
    UserProfile,
)
from .auth_service import AuthService
from .media_service import ImageUpload, MediaService

logger = get_logger("user_service")

MIN_PASSWORD_LENGTH = 6
PROFILE_IMAGE_FOLDER = "book_exchange_profiles"


class UserService:
    """Service for user business logic operations.

    This service provides business logic for user management,
    including validation, transformation, and coordination with repositories.
    """

    def __init__(
        self,
        session: Session,
        settings: Settings,
        auth_service: AuthService | None = None,
        media: MediaService | None = None,
    ) -> None:
        """Initialize user service with database session.

        Args:
            session: SQLModel database session
            settings: Application settings
            auth_service: Password hashing and token issuing
            media: Media service used for profile pictures
        """
        self.session = session
        self.settings = settings
        self.auth_service = auth_service or AuthService(settings)
        self.media = media or MediaService(settings)
        self.repository = UserRepository(session)

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID.

        Raises:
            DatabaseException: If operation fails
        """
        try:
            return await self.repository.get_by_id(user_id)
        except UserRepositoryError as e:
            raise DatabaseException(f"Failed to get user: {e.message}", operation="get") from e

    async def register(self, data: RegisterRequest) -> AuthResponse:
        """Create an account and issue a token.

        Args:
            data: Username, email and password

        Returns:
            AuthResponse: New profile with bearer token

        Raises:
            ConflictException: If the email or username is taken
        """
        try:
            user = await self.repository.create(
                username=data.username,
                email=data.email,
                hashed_password=self.auth_service.hash_password(data.password),
                profile_picture_url=self.settings.default_profile_image_url,
            )
        except UserAlreadyExistsError as e:
            raise ConflictException(e.message, resource="user") from e
        except UserRepositoryError as e:
            log_database_operation(operation="INSERT", table="users", success=False, error=e.message)
            raise DatabaseException("Failed to create user", operation="create") from e

        log_database_operation(operation="INSERT", table="users", success=True, user_id=user.id)
        logger.info(f"User {user.id} registered", extra={"user_id": user.id})
        return self._auth_response(user)

    async def login(self, data: LoginRequest) -> AuthResponse:
        """Check credentials and issue a token.

        Raises:
            AuthenticationException: If the email or password is wrong
        """
        try:
            user = await self.repository.get_by_email(data.email)
        except UserRepositoryError as e:
            raise DatabaseException("Failed to look up user", operation="login") from e

        if user is None or not self.auth_service.verify_password(data.password, user.hashed_password):
            self.auth_service.log_authentication_attempt(
                user_id=user.id if user else None,
                email=data.email,
                success=False,
                reason="invalid credentials",
            )
            raise AuthenticationException("Invalid email or password")

        self.auth_service.log_authentication_attempt(user_id=user.id, email=user.email, success=True)
        return self._auth_response(user)

    def get_profile(self, user: User) -> UserProfile:
        return UserProfile.model_validate(user)

    async def get_public_profile(self, user_id: int) -> PublicProfile:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundException("User", user_id, "User not found")
        return PublicProfile.model_validate(user)

    async def update_profile(
        self,
        user: User,
        changes: ProfileUpdate,
        image: ImageUpload | None = None,
    ) -> AuthResponse:
        """Update the user's own profile.

        Only fields that were sent are applied. A new password must have at
        least six characters; a changed email or username must still be
        unique.

        Raises:
            ValidationException: If the password or image is not acceptable
            ConflictException: If the new email or username is taken
            DependencyException: If the image upload fails
        """
        update_data = changes.model_dump(exclude_unset=True)
        update_data = {
            field: value
            for field, value in update_data.items()
            if value is not None or field not in ("username", "email", "password")
        }

        password = update_data.pop("password", None)
        if password is not None:
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationException(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
                )
            update_data["hashed_password"] = self.auth_service.hash_password(password)

        if "email" in update_data:
            update_data["email"] = update_data["email"].lower()

        new_email = update_data.get("email")
        new_username = update_data.get("username")
        if (new_email and new_email != user.email) or (new_username and new_username != user.username):
            try:
                conflict = await self.repository.find_conflicting(
                    new_email or user.email,
                    new_username or user.username,
                    exclude_user_id=user.id,
                )
            except UserRepositoryError as e:
                raise DatabaseException("Failed to check profile uniqueness", operation="update") from e
            if conflict is not None:
                if new_email and conflict.email.lower() == new_email:
                    raise ConflictException("Email already in use", resource="user")
                raise ConflictException("Username already taken", resource="user")

        if image is not None:
            update_data["profile_picture_url"] = await self.media.upload_image(
                image, folder=PROFILE_IMAGE_FOLDER
            )

        try:
            user = await self.repository.update(user, update_data)
        except UserAlreadyExistsError as e:
            raise ConflictException(e.message, resource="user") from e
        except UserRepositoryError as e:
            raise DatabaseException("Failed to update profile", operation="update") from e

        log_database_operation(
            operation="UPDATE",
            table="users",
            success=True,
            user_id=user.id,
            fields=sorted(field for field in update_data if field != "hashed_password"),
        )
        return self._auth_response(user)

    def _auth_response(self, user: User) -> AuthResponse:
        token = self.auth_service.create_jwt_token(user.id, is_admin=user.is_admin)
        return AuthResponse(**UserProfile.model_validate(user).model_dump(), token=token)
