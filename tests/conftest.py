"""Test configuration and fixtures.

This module provides test configuration, database setup, fixtures,
and test data factories for testing the book exchange server.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_key_for_testing_only")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable, Dict, Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from book_exchange.config import Settings, get_settings
from book_exchange.database import get_session
from book_exchange.dependencies import get_connection_manager, get_media_service
from book_exchange.main import app
from book_exchange.models.book import Book
from book_exchange.models.enums import AvailabilityStatus, BookCondition, ExchangeStatus
from book_exchange.models.exchange import ExchangeRequest
from book_exchange.models.user import User
from book_exchange.services.auth_service import AuthService
from book_exchange.services.media_service import MediaService
from book_exchange.services.notification_service import NotificationService
from book_exchange.services.realtime import ConnectionManager

# Test database configuration
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "secret123"
UPLOADED_IMAGE_URL = "https://res.cloudinary.com/demo/image/upload/cover.jpg"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings the application under test was configured with."""
    return get_settings()


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash of TEST_PASSWORD, computed once."""
    return AuthService.hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with in-memory SQLite."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session(test_engine) -> Generator[Session, None, None]:
    """Create test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def connections() -> ConnectionManager:
    """Fresh real-time channel registry for each test."""
    return ConnectionManager()


@pytest.fixture(scope="function")
def mock_media(test_settings: Settings) -> MediaService:
    """Media service whose uploads succeed without network access."""
    media = MediaService(test_settings)
    media.upload_image = AsyncMock(return_value=UPLOADED_IMAGE_URL)
    return media


@pytest.fixture(scope="function")
def notifier(test_session: Session, connections: ConnectionManager) -> NotificationService:
    return NotificationService(test_session, connections)


@pytest.fixture(scope="function")
def client(
    test_session: Session, connections: ConnectionManager, mock_media: MediaService
) -> Generator[TestClient, None, None]:
    """Create test client bound to the test database session."""

    def get_test_session():
        return test_session

    app.dependency_overrides[get_session] = get_test_session
    app.dependency_overrides[get_connection_manager] = lambda: connections
    app.dependency_overrides[get_media_service] = lambda: mock_media

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


class TestDataFactory:
    """Factory for users, books and exchanges stored straight in the database."""

    def __init__(self, session: Session, password_hash: str, settings: Settings) -> None:
        self.session = session
        self.password_hash = password_hash
        self.auth_service = AuthService(settings)
        self._counter = 0

    def _save(self, instance):
        self.session.add(instance)
        self.session.commit()
        self.session.refresh(instance)
        return instance

    def user(self, username: str | None = None, is_admin: bool = False, **fields: Any) -> User:
        self._counter += 1
        username = username or f"reader{self._counter}"
        return self._save(
            User(
                username=username,
                email=fields.pop("email", f"{username}@example.com"),
                hashed_password=self.password_hash,
                is_admin=is_admin,
                **fields,
            )
        )

    def book(
        self,
        owner: User,
        title: str = "Dune",
        author: str = "Frank Herbert",
        condition: BookCondition = BookCondition.GOOD,
        availability_status: AvailabilityStatus = AvailabilityStatus.AVAILABLE,
        **fields: Any,
    ) -> Book:
        return self._save(
            Book(
                owner_id=owner.id,
                title=title,
                author=author,
                condition=condition,
                availability_status=availability_status,
                **fields,
            )
        )

    def exchange(
        self,
        requester: User,
        requested_book: Book,
        offered_book: Book | None = None,
        status: ExchangeStatus = ExchangeStatus.PENDING,
        request_message: str = "",
    ) -> ExchangeRequest:
        return self._save(
            ExchangeRequest(
                requester_id=requester.id,
                owner_id=requested_book.owner_id,
                requested_book_id=requested_book.id,
                offered_book_id=offered_book.id if offered_book else None,
                status=status,
                request_message=request_message,
            )
        )

    def headers(self, user: User) -> Dict[str, str]:
        token = self.auth_service.create_jwt_token(user.id, user.is_admin)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def factory(test_session: Session, password_hash: str, test_settings: Settings) -> TestDataFactory:
    """Provide test data factory."""
    return TestDataFactory(test_session, password_hash, test_settings)


@pytest.fixture(scope="function")
def owner(factory: TestDataFactory) -> User:
    return factory.user("owner")


@pytest.fixture(scope="function")
def requester(factory: TestDataFactory) -> User:
    return factory.user("requester")


@pytest.fixture(scope="function")
def outsider(factory: TestDataFactory) -> User:
    return factory.user("outsider")


@pytest.fixture(scope="function")
def admin(factory: TestDataFactory) -> User:
    return factory.user("admin", is_admin=True)


@pytest.fixture(scope="function")
def auth_headers(factory: TestDataFactory) -> Callable[[User], Dict[str, str]]:
    """Build bearer headers for a user."""
    return factory.headers


@pytest.fixture(scope="function")
def invalid_auth_headers() -> Dict[str, str]:
    """Create invalid authentication headers for testing."""
    return {"Authorization": "Bearer invalid_token"}
