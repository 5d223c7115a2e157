"""Authentication service for password hashing and JWT token management.

This module provides authentication services including password hashing and
verification with passlib, JWT token creation and validation with python-jose,
comprehensive error handling, type hints, and security logging.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field

from ..config import Settings
from ..logging_config import SecurityLoggingMixin, get_logger

logger = get_logger("auth_service")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class JWTPayload(BaseModel):
    """JWT token payload structure."""

    sub: str = Field(description="Subject (user ID)")
    adm: bool = Field(default=False, description="Administrator flag at issue time")
    exp: int = Field(description="Expiration timestamp")
    iat: int = Field(description="Issued at timestamp")


class AuthenticationError(Exception):
    """Base exception for authentication errors."""

    def __init__(self, message: str, status_code: int = 401) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class JWTError(AuthenticationError):
    """Exception for JWT token errors."""

    pass


class AuthService(SecurityLoggingMixin):
    """Authentication service for credentials and JWT management.

    This service hashes and verifies passwords and issues and validates
    bearer tokens, logging security-relevant events.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize authentication service with configuration.

        Args:
            settings: Application settings containing JWT configuration
        """
        super().__init__()  # Initialize SecurityLoggingMixin
        self.jwt_secret = settings.jwt_secret
        self.jwt_algorithm = settings.jwt_algorithm
        self.jwt_expire_minutes = settings.jwt_expire_minutes

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a plain-text password.

        Args:
            password: Plain-text password

        Returns:
            str: Password hash suitable for storage
        """
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(password: str, hashed_password: str) -> bool:
        """Check a plain-text password against a stored hash.

        Malformed hashes are treated as a mismatch.
        """
        try:
            return pwd_context.verify(password, hashed_password)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    def create_jwt_token(self, user_id: int, is_admin: bool = False) -> str:
        """Create JWT token for authenticated user.

        Args:
            user_id: Internal user ID
            is_admin: Whether the user is an administrator

        Returns:
            str: Encoded JWT token

        Raises:
            JWTError: If token creation fails
        """
        try:
            logger.debug(
                f"Creating JWT token for user {user_id}",
                extra={"user_id": user_id},
            )

            now = datetime.now(timezone.utc)
            expire = now + timedelta(minutes=self.jwt_expire_minutes)

            payload = JWTPayload(
                sub=str(user_id),
                adm=is_admin,
                exp=int(expire.timestamp()),
                iat=int(now.timestamp()),
            )

            token = jwt.encode(
                payload.model_dump(), self.jwt_secret, algorithm=self.jwt_algorithm
            )

            logger.info(
                f"JWT token created successfully for user {user_id}",
                extra={"user_id": user_id, "expires_at": expire.isoformat()},
            )

            return token

        except Exception as e:
            logger.error(
                f"Failed to create JWT token for user {user_id}: {str(e)}",
                exc_info=True,
                extra={"user_id": user_id},
            )
            raise JWTError(
                f"Failed to create JWT token: {str(e)}", status_code=500
            ) from e

    def verify_jwt_token(self, token: str) -> JWTPayload:
        """Verify and decode JWT token.

        Args:
            token: JWT token to verify

        Returns:
            JWTPayload: Decoded token payload

        Raises:
            JWTError: If token verification fails
        """
        try:
            payload = jwt.decode(
                token, self.jwt_secret, algorithms=[self.jwt_algorithm]
            )

            return JWTPayload(**payload)

        except jwt.ExpiredSignatureError:
            raise JWTError("Token has expired", status_code=401)
        except jwt.JWTError as e:
            raise JWTError(f"Invalid token: {str(e)}", status_code=401)
        except Exception as e:
            raise JWTError(
                f"Token verification failed: {str(e)}", status_code=401
            ) from e

    def extract_token_from_header(self, authorization: str | None) -> str:
        """Extract JWT token from Authorization header.

        Args:
            authorization: Authorization header value

        Returns:
            str: Extracted JWT token

        Raises:
            JWTError: If token extraction fails
        """
        if not authorization:
            raise JWTError("Authorization header is missing", status_code=401)

        try:
            scheme, token = authorization.split()
        except ValueError:
            raise JWTError("Invalid authorization header format", status_code=401)

        if scheme.lower() != "bearer":
            raise JWTError(
                "Invalid authorization scheme. Expected 'Bearer'", status_code=401
            )
        return token

    def user_id_from_token(self, token: str) -> int:
        """Resolve the user ID carried by a raw token.

        Raises:
            JWTError: If the token is invalid or carries a malformed subject
        """
        payload = self.verify_jwt_token(token)

        try:
            return int(payload.sub)
        except ValueError:
            raise JWTError("Invalid user ID in token", status_code=401)

    async def get_current_user_id(self, authorization: str | None) -> int:
        """Get current user ID from authorization header.

        Args:
            authorization: Authorization header value

        Returns:
            int: Current user ID

        Raises:
            JWTError: If user ID extraction fails
        """
        token = self.extract_token_from_header(authorization)
        return self.user_id_from_token(token)
