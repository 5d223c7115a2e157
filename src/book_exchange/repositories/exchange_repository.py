"""Exchange request repository for database operations.

Besides plain reads, this repository provides the compare-and-set status
write that serializes concurrent transitions on the same exchange, and the
book-reference queries used by the availability reconciliation and the
sibling invalidation sweep.
"""

from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ..models.enums import ACTIVE_EXCHANGE_STATUSES, ExchangeStatus
from ..models.exchange import ExchangeRequest
from .base import BaseRepository, RepositoryError


class ExchangeRepositoryError(RepositoryError):
    """Base exception for exchange repository errors."""
    pass


def _references_any(book_ids: list[int]):
    return or_(
        ExchangeRequest.requested_book_id.in_(book_ids),
        ExchangeRequest.offered_book_id.in_(book_ids),
    )


class ExchangeRepository(BaseRepository):
    """Repository for exchange request database operations."""

    table = "exchange_requests"

    def create(
        self,
        requester_id: int,
        owner_id: int,
        requested_book_id: int,
        offered_book_id: int | None,
        request_message: str,
    ) -> ExchangeRequest:
        """Persist a new Pending exchange request and commit.

        Raises:
            ExchangeRepositoryError: If database operation fails
        """
        try:
            exchange = ExchangeRequest(
                requester_id=requester_id,
                owner_id=owner_id,
                requested_book_id=requested_book_id,
                offered_book_id=offered_book_id,
                request_message=request_message,
                status=ExchangeStatus.PENDING,
            )
            self.session.add(exchange)
            self.session.commit()
            self.session.refresh(exchange)
            return exchange
        except SQLAlchemyError as e:
            self.session.rollback()
            raise ExchangeRepositoryError(
                f"Database error while creating exchange request: {str(e)}",
                original_error=e,
            ) from e

    def get_by_id(self, exchange_id: int) -> ExchangeRequest | None:
        try:
            return self.session.get(ExchangeRequest, exchange_id)
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while retrieving exchange {exchange_id}: {str(e)}",
                original_error=e,
            ) from e

    def find_active_request(
        self, requester_id: int, requested_book_id: int
    ) -> ExchangeRequest | None:
        """Find a Pending or Accepted request by this requester for this book."""
        try:
            statement = select(ExchangeRequest).where(
                ExchangeRequest.requester_id == requester_id,
                ExchangeRequest.requested_book_id == requested_book_id,
                ExchangeRequest.status.in_(ACTIVE_EXCHANGE_STATUSES),
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while checking for duplicate requests: {str(e)}",
                original_error=e,
            ) from e

    def list_sent(self, user_id: int) -> list[ExchangeRequest]:
        return self._list(ExchangeRequest.requester_id == user_id)

    def list_received(self, user_id: int) -> list[ExchangeRequest]:
        return self._list(ExchangeRequest.owner_id == user_id)

    def list_all(self) -> list[ExchangeRequest]:
        return self._list()

    def _list(self, *criteria) -> list[ExchangeRequest]:
        try:
            statement = (
                select(ExchangeRequest)
                .where(*criteria)
                .order_by(ExchangeRequest.created_at.desc(), ExchangeRequest.id.desc())
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while listing exchange requests: {str(e)}",
                original_error=e,
            ) from e

    def compare_and_set_status(
        self,
        exchange: ExchangeRequest,
        new_status: ExchangeStatus,
        completed_at: datetime | None,
    ) -> bool:
        """Write a new status if nobody changed the exchange since it was read.

        The UPDATE matches on the id, version and status the caller observed,
        and bumps the version. Caller commits.

        Args:
            exchange: Exchange as read by the caller
            new_status: Target status
            completed_at: Completion timestamp to store (None clears it)

        Returns:
            bool: False if a concurrent writer got there first
        """
        try:
            result = self.session.execute(
                update(ExchangeRequest)
                .where(
                    ExchangeRequest.id == exchange.id,
                    ExchangeRequest.version == exchange.version,
                    ExchangeRequest.status == exchange.status,
                )
                .values(
                    status=new_status,
                    completed_at=completed_at,
                    version=ExchangeRequest.version + 1,
                    updated_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return False
            self.session.refresh(exchange)
            return True
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while updating exchange {exchange.id}: {str(e)}",
                original_error=e,
            ) from e

    def list_active_referencing(
        self, book_ids: list[int], exclude_id: int | None = None
    ) -> list[ExchangeRequest]:
        """Find Pending or Accepted requests that reference any of the books."""
        if not book_ids:
            return []
        try:
            statement = select(ExchangeRequest).where(
                ExchangeRequest.status.in_(ACTIVE_EXCHANGE_STATUSES),
                _references_any(book_ids),
            )
            if exclude_id is not None:
                statement = statement.where(ExchangeRequest.id != exclude_id)
            return list(self.session.exec(statement.order_by(ExchangeRequest.id)).all())
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while scanning sibling requests: {str(e)}",
                original_error=e,
            ) from e

    def statuses_referencing_book(
        self, book_id: int, exclude_id: int | None = None
    ) -> set[ExchangeStatus]:
        """Collect the statuses of the exchanges that reference the book."""
        try:
            statement = select(ExchangeRequest.status).where(_references_any([book_id]))
            if exclude_id is not None:
                statement = statement.where(ExchangeRequest.id != exclude_id)
            return set(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while reading exchanges for book {book_id}: {str(e)}",
                original_error=e,
            ) from e

    def ids_referencing_books(self, book_ids: Iterable[int]) -> list[int]:
        ids = list(book_ids)
        if not ids:
            return []
        try:
            statement = select(ExchangeRequest.id).where(_references_any(ids))
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while listing exchanges for books: {str(e)}",
                original_error=e,
            ) from e

    def delete_by_ids(self, exchange_ids: list[int]) -> int:
        """Delete exchange requests by ID. Caller commits."""
        if not exchange_ids:
            return 0
        try:
            result = self.session.execute(
                delete(ExchangeRequest)
                .where(ExchangeRequest.id.in_(exchange_ids))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise ExchangeRepositoryError(
                f"Database error while deleting exchange requests: {str(e)}",
                original_error=e,
            ) from e
