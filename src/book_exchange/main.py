"""FastAPI application entry point.

This module initializes the FastAPI application with all routers,
middleware, database lifecycle management, configuration, logging,
and global exception handlers for consistent error responses.
"""

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .database import lifespan
from .exceptions import (
    APIException,
    api_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .logging_config import LoggingMiddleware, setup_logging
from .middleware import AuthenticationContextMiddleware, SecurityHeadersMiddleware
from .routers import (
    admin_router,
    auth_router,
    books_router,
    exchanges_router,
    health_router,
    messages_router,
    notifications_router,
    reviews_router,
    websockets_router,
    wishlist_router,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

# Initialize logging before creating the app
setup_logging(settings)
logger.info("Starting FastAPI application initialization")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    This function creates the FastAPI application instance with all necessary
    configuration including middleware, exception handlers, and routers.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Book Exchange API",
        description="Peer-to-peer book exchange marketplace with real-time notifications",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    logger.info("FastAPI application created with basic configuration")

    # Configure middleware stack (order matters!)
    configure_middleware(app)

    # Register exception handlers
    configure_exception_handlers(app)

    # Register routers
    configure_routers(app)

    # Add root endpoint
    configure_root_endpoints(app)

    logger.info("FastAPI application configuration completed")
    return app


def configure_middleware(app: FastAPI) -> None:
    """Configure middleware stack for the application.

    Middleware added last runs first, so request logging wraps everything
    and assigns the request ID seen by the inner layers.

    Args:
        app: FastAPI application instance
    """
    logger.info("Configuring middleware stack")

    app.add_middleware(SecurityHeadersMiddleware)
    configure_cors_middleware(app)
    app.add_middleware(AuthenticationContextMiddleware)
    app.add_middleware(LoggingMiddleware)

    logger.info("Middleware stack configuration completed")


def configure_cors_middleware(app: FastAPI) -> None:
    """Configure CORS middleware based on environment.

    Args:
        app: FastAPI application instance
    """
    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORS configured for development (allow all origins)")
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
            max_age=86400,  # Cache preflight requests for 24 hours
        )
        logger.info(f"CORS configured with origins: {settings.cors_origins}")


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers.

    Args:
        app: FastAPI application instance
    """
    logger.info("Configuring exception handlers")

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Must be last
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers configuration completed")


def configure_routers(app: FastAPI) -> None:
    """Configure and register API routers.

    Args:
        app: FastAPI application instance
    """
    logger.info("Configuring API routers")

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(books_router)
    app.include_router(exchanges_router)
    app.include_router(messages_router)
    app.include_router(notifications_router)
    app.include_router(reviews_router)
    app.include_router(wishlist_router)
    app.include_router(admin_router)
    app.include_router(websockets_router)

    logger.info("API routers registered successfully")


def configure_root_endpoints(app: FastAPI) -> None:
    """Configure root and utility endpoints.

    Args:
        app: FastAPI application instance
    """

    @app.get("/", tags=["root"], summary="API Information")
    async def root() -> dict[str, Any]:
        """Root endpoint providing API information.

        Returns:
            Dict[str, Any]: API information
        """
        return {
            "message": "Book Exchange API is running",
            "version": __version__,
            "environment": settings.environment,
            "docs": "/docs" if not settings.is_production else None,
            "health": "/api/health",
            "endpoints": {
                "auth": "/api/auth",
                "books": "/api/books",
                "exchanges": "/api/exchanges",
                "messages": "/api/messages",
                "notifications": "/api/notifications",
                "reviews": "/api/reviews",
                "wishlist": "/api/wishlist",
                "admin": "/api/admin",
                "realtime": "/ws/notifications",
            },
        }

    logger.info("Root endpoints configured")


# Create the FastAPI application instance
app = create_app()

logger.info(
    "FastAPI application initialized successfully",
    extra={
        "environment": settings.environment,
        "debug": settings.debug,
    },
)
