"""Logging configuration for structured logging.

This module provides structured logging configuration with proper log levels,
request/response logging middleware, request-scoped context propagation,
security and audit logging helpers, and configurable log formatting.
"""

import json
import logging
import logging.config
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import Settings

# Request-scoped values picked up by RequestContextFilter
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
client_ip_var: ContextVar[str | None] = ContextVar("client_ip", default=None)

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
}


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging.

    This formatter outputs log records as JSON objects with consistent
    structure including timestamp, level, message, and additional context.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Everything passed through `extra=` ends up as a record attribute
        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and value is not None
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str, ensure_ascii=False)


class RequestContextFilter(logging.Filter):
    """Logging filter to add request context to log records.

    The request ID and client IP are read from context variables set by
    LoggingMiddleware, so every record emitted while a request is being
    handled carries them without explicit `extra=` plumbing.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        if getattr(record, "client_ip", None) is None:
            record.client_ip = client_ip_var.get()
        return True


def setup_logging(settings: Settings) -> None:
    """Setup logging configuration based on settings.

    Args:
        settings: Application settings containing logging configuration
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = "simple" if settings.debug else "json"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JSONFormatter,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "filters": {
            "request_context": {
                "()": RequestContextFilter,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": formatter,
                "filters": ["request_context"],
                "stream": sys.stdout,
            }
        },
        "loggers": {
            "book_exchange": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {
                "level": "INFO" if settings.debug else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "fastapi": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.debug else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.pool": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "httpcore": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "passlib": {"level": "ERROR", "handlers": ["console"], "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger("book_exchange")
    logger.info(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "debug_mode": settings.debug,
            "formatter": formatter,
        },
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging.

    This middleware assigns a request ID (reusing an incoming X-Request-ID
    header when present), logs incoming requests and outgoing responses with
    timing information, and exposes the ID through the response headers.
    """

    def __init__(self, app: ASGIApp, logger_name: str = "book_exchange.requests") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and log request/response information.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response from the application
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        client_ip = request.client.host if request.client else None
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()

        request_token = request_id_var.set(request_id)
        client_token = client_ip_var.set(client_ip)
        start_time = time.time()

        self.logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "user_agent": request.headers.get("User-Agent"),
                "content_type": request.headers.get("Content-Type"),
                "event_type": "request_started",
            },
        )

        try:
            response = await call_next(request)
            process_time = time.time() - start_time

            self.logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "process_time": round(process_time, 4),
                    "user_id": getattr(request.state, "user_id", None),
                    "event_type": "request_completed",
                },
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"
            return response

        except Exception as exc:
            process_time = time.time() - start_time
            self.logger.error(
                f"Request failed: {request.method} {request.url.path} - {type(exc).__name__}",
                exc_info=True,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "exception_type": type(exc).__name__,
                    "process_time": round(process_time, 4),
                    "event_type": "request_failed",
                },
            )
            raise
        finally:
            request_id_var.reset(request_token)
            client_ip_var.reset(client_token)


class SecurityLoggingMixin:
    """Mixin for security-related logging.

    This mixin provides methods for logging security events like
    authentication attempts, authorization failures, and privileged
    administrative actions.
    """

    def __init__(self) -> None:
        self.security_logger = logging.getLogger("book_exchange.security")

    def log_authentication_attempt(
        self,
        user_id: int | None = None,
        email: str | None = None,
        success: bool = True,
        reason: str | None = None,
    ) -> None:
        """Log authentication attempt.

        Args:
            user_id: Internal user ID (when known)
            email: Email address used for the attempt
            success: Whether authentication was successful
            reason: Reason for failure (if applicable)
        """
        level = logging.INFO if success else logging.WARNING
        message = (
            "Authentication successful"
            if success
            else f"Authentication failed: {reason}"
        )

        self.security_logger.log(
            level,
            message,
            extra={
                "event_type": "authentication_attempt",
                "user_id": user_id,
                "email": email,
                "success": success,
                "reason": reason,
            },
        )

    def log_authorization_failure(
        self,
        user_id: int | None = None,
        resource: str | None = None,
        action: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Log authorization failure.

        Args:
            user_id: User ID attempting access
            resource: Resource being accessed
            action: Action being attempted
            reason: Reason for denial
        """
        self.security_logger.warning(
            f"Authorization denied: {reason}",
            extra={
                "event_type": "authorization_failure",
                "user_id": user_id,
                "resource": resource,
                "action": action,
                "reason": reason,
            },
        )

    def log_admin_action(
        self,
        admin_id: int,
        action: str,
        resource: str,
        identifier: int | str,
        additional_data: dict[str, Any] | None = None,
    ) -> None:
        """Log a privileged action performed by an administrator.

        Args:
            admin_id: ID of the acting administrator
            action: Action performed (delete, force_status, reconcile)
            resource: Resource type affected
            identifier: ID of the affected resource
            additional_data: Additional context data
        """
        extra_data = {
            "event_type": "admin_action",
            "admin_id": admin_id,
            "action": action,
            "resource": resource,
            "identifier": str(identifier),
        }
        if additional_data:
            extra_data.update(additional_data)

        self.security_logger.info(
            f"Admin {admin_id} performed {action} on {resource} {identifier}",
            extra=extra_data,
        )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name (should start with 'book_exchange.')

    Returns:
        Logger instance
    """
    if not name.startswith("book_exchange."):
        name = f"book_exchange.{name}"

    return logging.getLogger(name)


# Convenience functions for common logging patterns


def log_database_operation(
    operation: str,
    table: str,
    success: bool = True,
    duration: float | None = None,
    error: str | None = None,
    **kwargs,
) -> None:
    """Log database operation.

    Args:
        operation: Type of operation (SELECT, INSERT, UPDATE, DELETE)
        table: Database table name
        success: Whether operation was successful
        duration: Operation duration in seconds
        error: Error message (if applicable)
        **kwargs: Additional context data
    """
    logger = get_logger("database")
    level = logging.INFO if success else logging.ERROR
    message = f"Database {operation} on {table}"

    if not success and error:
        message += f" failed: {error}"

    extra_data = {
        "event_type": "database_operation",
        "operation": operation,
        "table": table,
        "success": success,
        "duration": duration,
    }

    if error:
        extra_data["error"] = error

    extra_data.update(kwargs)

    logger.log(level, message, extra=extra_data)


def log_external_api_call(
    service: str,
    endpoint: str,
    method: str = "GET",
    status_code: int | None = None,
    duration: float | None = None,
    success: bool = True,
    error: str | None = None,
    **kwargs,
) -> None:
    """Log external API call.

    Args:
        service: External service name
        endpoint: API endpoint
        method: HTTP method
        status_code: Response status code
        duration: Request duration in seconds
        success: Whether request was successful
        error: Error message (if applicable)
        **kwargs: Additional context data
    """
    logger = get_logger("external_api")
    level = logging.INFO if success else logging.ERROR
    message = f"External API call to {service}: {method} {endpoint}"

    if status_code:
        message += f" - {status_code}"

    if not success and error:
        message += f" failed: {error}"

    extra_data = {
        "event_type": "external_api_call",
        "service": service,
        "endpoint": endpoint,
        "method": method,
        "status_code": status_code,
        "duration": duration,
        "success": success,
    }

    if error:
        extra_data["error"] = error

    extra_data.update(kwargs)

    logger.log(level, message, extra=extra_data)


def log_exchange_transition(
    exchange_id: int,
    actor_id: int,
    from_status: str,
    to_status: str,
    forced: bool = False,
    **kwargs,
) -> None:
    """Log an exchange lifecycle transition.

    Args:
        exchange_id: ID of the exchange request
        actor_id: ID of the user who triggered the transition
        from_status: Status before the transition
        to_status: Status after the transition
        forced: Whether an administrator bypassed the transition guards
        **kwargs: Cascade counters and other context
    """
    logger = get_logger("exchange_lifecycle")
    extra_data = {
        "event_type": "exchange_transition",
        "exchange_id": exchange_id,
        "actor_id": actor_id,
        "from_status": from_status,
        "to_status": to_status,
        "forced": forced,
    }
    extra_data.update(kwargs)

    logger.info(
        f"Exchange {exchange_id}: {from_status} -> {to_status}"
        + (" (forced)" if forced else ""),
        extra=extra_data,
    )
