"""Error kinds of the API and the handlers that render them.

Every failure a caller can see belongs to one kind below. Each kind fixes
its HTTP status and machine-readable code; raising code only supplies the
message and whatever details help the client act on it. All of them, plus
framework errors, are rendered as::

    {"error": {"code", "message", "status_code", "details"?, "request_id"?}}
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _compact(**details: Any) -> dict[str, str]:
    """Drop empty detail values and stringify the rest."""
    return {key: str(value) for key, value in details.items() if value is not None and value != ""}


class APIException(Exception):
    """An error the client is told about.

    Subclasses set ``status_code`` and ``error_code``.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(APIException):
    """The input is malformed or breaks a business rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"

    def __init__(self, message: str, field: str | None = None, value: Any | None = None) -> None:
        super().__init__(message, _compact(field=field, value=value))


class AuthenticationException(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "authentication_error"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AuthorizationException(APIException):
    """The caller is not allowed to act on the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "authorization_error"

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class NotFoundException(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found_error"

    def __init__(self, resource: str, identifier: str | int, message: str | None = None) -> None:
        super().__init__(
            message or f"{resource} with identifier '{identifier}' not found",
            _compact(resource=resource, identifier=identifier),
        )


class ConflictException(APIException):
    """A uniqueness rule or a concurrent change prevents the write."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict_error"

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        identifier: str | int | None = None,
    ) -> None:
        super().__init__(message, _compact(resource=resource, identifier=identifier))


class PreconditionException(APIException):
    """The resource's current state does not permit the operation.

    ``details["current_state"]`` carries that state so clients can refresh.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "precondition_error"

    def __init__(
        self,
        message: str,
        current_state: str | None = None,
        resource: str | None = None,
    ) -> None:
        super().__init__(message, _compact(current_state=current_state, resource=resource))


class DependencyException(APIException):
    """A service this API relies on (media host, database server) failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "dependency_error"

    def __init__(self, message: str, service: str) -> None:
        super().__init__(message, {"service": service})


class DatabaseException(APIException):
    """A database operation failed while serving the request."""

    error_code = "database_error"

    def __init__(self, message: str = "Database operation failed", operation: str | None = None) -> None:
        super().__init__(message, _compact(operation=operation))


# Codes for plain HTTPExceptions raised by dependencies and routing
HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: ValidationException.error_code,
    status.HTTP_401_UNAUTHORIZED: AuthenticationException.error_code,
    status.HTTP_403_FORBIDDEN: AuthorizationException.error_code,
    status.HTTP_404_NOT_FOUND: NotFoundException.error_code,
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: ConflictException.error_code,
}


def create_error_response(
    request: Request,
    status_code: int,
    message: str,
    error_code: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the error envelope, tagged with the request id when there is one."""
    error: dict[str, Any] = {"code": error_code, "message": message, "status_code": status_code}
    if details:
        error["details"] = details
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        error["request_id"] = request_id
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def _request_fields(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "client_ip": request.client.host if request.client else None,
    }


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"{exc.error_code}: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            **_request_fields(request),
        },
    )
    return create_error_response(request, exc.status_code, exc.message, exc.error_code, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown routes, auth dependencies) in the same envelope."""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={"status_code": exc.status_code, **_request_fields(request)},
    )
    return create_error_response(
        request,
        exc.status_code,
        str(exc.detail),
        HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request schema failures as 422 with one entry per offending field."""
    validation_errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Request validation failed for {len(validation_errors)} field(s)",
        extra={"validation_errors": validation_errors, **_request_fields(request)},
    )
    return create_error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation failed",
        ValidationException.error_code,
        {"validation_errors": validation_errors},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        exc_info=True,
        extra={"exception_type": type(exc).__name__, **_request_fields(request)},
    )
    # Internal detail stays in the log
    return create_error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        APIException.error_code,
    )
