"""Middleware for request processing and authentication.

This module provides FastAPI middleware that attaches authentication
context to requests and adds security headers to responses. Request logging
lives in ``logging_config.LoggingMiddleware``.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import get_settings
from .services.auth_service import AuthenticationError, AuthService, JWTError

# Configure logger
logger = logging.getLogger(__name__)


class AuthenticationContextMiddleware(BaseHTTPMiddleware):
    """Middleware for adding authentication context to requests.

    This middleware extracts and validates JWT tokens from requests,
    adding user context to the request state for use by endpoints.
    It does not enforce authentication - that's handled by dependencies.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.settings = get_settings()
        self.auth_service = AuthService(self.settings)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add authentication context to request.

        Args:
            request: HTTP request
            call_next: Next middleware/endpoint in chain

        Returns:
            Response: HTTP response
        """
        # Initialize auth context
        request.state.user_id = None
        request.state.is_admin_claim = False
        request.state.is_authenticated = False

        authorization = request.headers.get("authorization")

        if authorization:
            try:
                token = self.auth_service.extract_token_from_header(authorization)
                payload = self.auth_service.verify_jwt_token(token)

                request.state.user_id = int(payload.sub)
                request.state.is_admin_claim = payload.adm
                request.state.is_authenticated = True

                logger.debug(f"Authenticated user: {payload.sub}")

            except (JWTError, AuthenticationError, ValueError) as e:
                # Let the endpoint dependencies handle authentication enforcement
                logger.debug(f"Authentication failed: {str(e)}")

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers.

    This middleware adds common security headers to all responses
    to improve application security posture.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Docs pages load scripts and styles
        if not request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = "default-src 'none'"

        return response

