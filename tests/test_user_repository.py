"""Unit tests for UserRepository.

This module contains unit tests for the UserRepository class,
including lookups, uniqueness checks, and error handling.
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from book_exchange.models.user import User
from book_exchange.repositories.user_repository import (
    UserAlreadyExistsError,
    UserRepository,
    UserRepositoryError,
)


class TestUserRepository:
    """Test cases for UserRepository."""

    @pytest.fixture
    def user_repository(self, test_session: Session) -> UserRepository:
        """Create UserRepository instance for testing."""
        return UserRepository(test_session)

    @pytest.mark.asyncio
    async def test_get_by_id_success(self, user_repository: UserRepository, owner: User):
        result = await user_repository.get_by_id(owner.id)

        assert result is not None
        assert result.id == owner.id
        assert result.username == owner.username

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, user_repository: UserRepository):
        assert await user_repository.get_by_id(999) is None

    @pytest.mark.asyncio
    async def test_get_by_id_database_error(self, user_repository: UserRepository):
        """Test user retrieval by ID with database error."""
        with patch.object(user_repository.session, "exec") as mock_exec:
            mock_exec.side_effect = SQLAlchemyError("Database error")

            with pytest.raises(UserRepositoryError) as exc_info:
                await user_repository.get_by_id(1)

            assert "Failed to get user by ID" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_get_by_email_ignores_case(self, user_repository: UserRepository, owner: User):
        result = await user_repository.get_by_email(owner.email.upper())

        assert result is not None
        assert result.id == owner.id

    @pytest.mark.asyncio
    async def test_get_many(self, user_repository: UserRepository, owner: User, requester: User):
        result = await user_repository.get_many({owner.id, requester.id, 999})

        assert set(result) == {owner.id, requester.id}
        assert await user_repository.get_many(set()) == {}

    @pytest.mark.asyncio
    async def test_get_all_with_pagination(self, user_repository: UserRepository, factory):
        for _ in range(5):
            factory.user()

        first_page = await user_repository.get_all(limit=2, offset=0)
        second_page = await user_repository.get_all(limit=2, offset=2)

        assert len(first_page) == 2
        assert len(second_page) == 2
        assert {u.id for u in first_page}.isdisjoint({u.id for u in second_page})

    @pytest.mark.asyncio
    async def test_create_success(self, user_repository: UserRepository):
        user = await user_repository.create(
            username="bookworm", email="Reader@Example.com", hashed_password="hash"
        )

        assert user.id is not None
        assert user.email == "reader@example.com"
        assert user.is_admin is False

    @pytest.mark.asyncio
    async def test_create_duplicate_email(self, user_repository: UserRepository, owner: User):
        with pytest.raises(UserAlreadyExistsError):
            await user_repository.create(
                username="someone", email=owner.email.upper(), hashed_password="hash"
            )

    @pytest.mark.asyncio
    async def test_create_duplicate_username(self, user_repository: UserRepository, owner: User):
        with pytest.raises(UserAlreadyExistsError):
            await user_repository.create(
                username=owner.username, email="other@example.com", hashed_password="hash"
            )

    @pytest.mark.asyncio
    async def test_find_conflicting_excludes_user(self, user_repository: UserRepository, owner: User):
        assert await user_repository.find_conflicting(owner.email, owner.username) is not None
        assert (
            await user_repository.find_conflicting(owner.email, owner.username, exclude_user_id=owner.id)
            is None
        )

    @pytest.mark.asyncio
    async def test_update_partial(self, user_repository: UserRepository, owner: User):
        updated = await user_repository.update(owner, {"city": "Lisbon"})

        assert updated.city == "Lisbon"
        assert updated.username == "owner"

    @pytest.mark.asyncio
    async def test_update_database_error(self, user_repository: UserRepository, owner: User):
        with patch.object(user_repository.session, "commit") as mock_commit:
            mock_commit.side_effect = SQLAlchemyError("Database error")

            with pytest.raises(UserRepositoryError):
                await user_repository.update(owner, {"city": "Lisbon"})

    def test_delete(self, user_repository: UserRepository, test_session: Session, owner: User):
        owner_id = owner.id

        user_repository.delete(owner)
        test_session.commit()

        assert test_session.exec(select(User).where(User.id == owner_id)).first() is None


class TestUserRepositoryExceptions:
    """Test cases for UserRepository exception classes."""

    def test_user_repository_error(self):
        original_error = Exception("Original error")
        error = UserRepositoryError("Test error", original_error)

        assert error.message == "Test error"
        assert error.original_error == original_error
        assert str(error) == "Test error"

    def test_user_already_exists_error(self):
        error = UserAlreadyExistsError("User exists")

        assert isinstance(error, UserRepositoryError)
        assert error.original_error is None
