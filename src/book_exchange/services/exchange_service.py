"""Exchange lifecycle service.

This module owns every status change of an exchange request. All entry
points (party status updates, administrative force, reconciliation) go
through the same transition table and the same apply procedure:

1. the status is written with a compare-and-set on the request's version;
2. the request's books are settled for the new status: Accepted reserves
   them, Completed marks them Exchanged, and any other status releases a
   reservation no other Accepted request still holds;
3. on completion, every other active request for either book is cancelled
   and any book left reserved without an active request is released;
4. the whole change is committed as one transaction, and the affected users
   are notified afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..exceptions import (
    AuthorizationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from ..logging_config import (
    SecurityLoggingMixin,
    get_logger,
    log_database_operation,
    log_exchange_transition,
)
from ..models.book import Book
from ..models.enums import AvailabilityStatus, ExchangeStatus, NotificationType
from ..models.exchange import ExchangeRequest
from ..models.user import User
from ..repositories.base import RepositoryError
from ..repositories.book_repository import BookRepository
from ..repositories.exchange_repository import ExchangeRepository
from ..repositories.user_repository import UserRepository
from ..schemas.common import BookSummary, UserSummary
from ..schemas.exchange_schemas import (
    ExchangeCreate,
    ExchangeDetail,
    MyRequestsResponse,
    ReconcileResponse,
)
from .notification_service import NotificationService

logger = get_logger("exchange_service")

OWNER = "owner"
REQUESTER = "requester"


@dataclass(frozen=True)
class Transition:
    """A user-settable target status and who may set it from where."""

    target: ExchangeStatus
    allowed_from: frozenset[ExchangeStatus]
    actors: frozenset[str]


TRANSITIONS: dict[ExchangeStatus, Transition] = {
    ExchangeStatus.ACCEPTED: Transition(
        ExchangeStatus.ACCEPTED,
        frozenset({ExchangeStatus.PENDING}),
        frozenset({OWNER}),
    ),
    ExchangeStatus.DECLINED: Transition(
        ExchangeStatus.DECLINED,
        frozenset({ExchangeStatus.PENDING}),
        frozenset({OWNER}),
    ),
    ExchangeStatus.CANCELLED: Transition(
        ExchangeStatus.CANCELLED,
        frozenset({ExchangeStatus.PENDING, ExchangeStatus.ACCEPTED}),
        frozenset({OWNER, REQUESTER}),
    ),
    ExchangeStatus.COMPLETED: Transition(
        ExchangeStatus.COMPLETED,
        frozenset({ExchangeStatus.ACCEPTED}),
        frozenset({OWNER, REQUESTER}),
    ),
}


def availability_for(
    status: ExchangeStatus,
    current: AvailabilityStatus,
    other_statuses: Iterable[ExchangeStatus] = (),
) -> AvailabilityStatus:
    """Availability of one of a request's books once the request is in `status`.

    Args:
        status: Status of the request being settled
        current: The book's availability right now
        other_statuses: Statuses of the other requests referencing the book
    """
    if status == ExchangeStatus.COMPLETED:
        return AvailabilityStatus.EXCHANGED
    if status == ExchangeStatus.ACCEPTED:
        return AvailabilityStatus.PENDING_EXCHANGE
    if (
        current == AvailabilityStatus.PENDING_EXCHANGE
        and ExchangeStatus.ACCEPTED not in set(other_statuses)
    ):
        return AvailabilityStatus.AVAILABLE
    return current


def parse_status(raw_status: str) -> ExchangeStatus:
    """Parse a client-supplied status.

    Raises:
        ValidationException: If the value is not a known status
    """
    try:
        return ExchangeStatus(raw_status)
    except ValueError:
        raise ValidationException(
            "Invalid status provided", field="status", value=raw_status
        )


@dataclass
class TransitionOutcome:
    """What one applied transition changed."""

    exchange: ExchangeRequest
    from_status: ExchangeStatus
    changed_books: list[Book] = field(default_factory=list)
    cancelled_siblings: list[ExchangeRequest] = field(default_factory=list)
    released_books: list[Book] = field(default_factory=list)


class ExchangeService(SecurityLoggingMixin):
    """Service for the exchange request lifecycle.

    Notifications are sent through the injected notifier once the
    transaction has been committed.
    """

    def __init__(self, session: Session, notifier: NotificationService | None = None) -> None:
        """Initialize exchange service.

        Args:
            session: SQLModel database session
            notifier: Notification service used to inform the parties
        """
        super().__init__()
        self.session = session
        self.notifier = notifier
        self.exchange_repository = ExchangeRepository(session)
        self.book_repository = BookRepository(session)
        self.user_repository = UserRepository(session)

    # Creation and queries

    async def request_exchange(self, requester: User, data: ExchangeCreate) -> ExchangeDetail:
        """Create a Pending request for another user's book.

        Args:
            requester: Authenticated user making the request
            data: Requested book, optional offered book and message

        Returns:
            ExchangeDetail: The created request

        Raises:
            NotFoundException: If the requested or offered book does not exist
            ValidationException: If the requester owns the requested book or
                does not own the offered book
            PreconditionException: If either book is not Available
            ConflictException: If the requester already has an active request for the book
        """
        try:
            requested_book = self.book_repository.get_by_id(data.requested_book_id)
            if requested_book is None:
                raise NotFoundException("Book", data.requested_book_id, "Requested book not found")
            if requested_book.owner_id == requester.id:
                raise ValidationException(
                    "You cannot request your own book", field="requestedBookId"
                )
            if requested_book.availability_status != AvailabilityStatus.AVAILABLE:
                raise PreconditionException(
                    "The requested book is currently not available for exchange",
                    current_state=requested_book.availability_status.value,
                    resource="book",
                )

            if data.offered_book_id is not None:
                offered_book = self.book_repository.get_by_id(data.offered_book_id)
                if offered_book is None:
                    raise NotFoundException("Book", data.offered_book_id, "Offered book not found")
                if offered_book.owner_id != requester.id:
                    raise ValidationException(
                        "The offered book does not belong to you", field="offeredBookId"
                    )
                if offered_book.availability_status != AvailabilityStatus.AVAILABLE:
                    raise PreconditionException(
                        "Your offered book is not available for exchange",
                        current_state=offered_book.availability_status.value,
                        resource="book",
                    )

            existing = self.exchange_repository.find_active_request(
                requester.id, requested_book.id
            )
            if existing is not None:
                raise ConflictException(
                    "An active exchange request for this book already exists from you",
                    resource="exchange_request",
                    identifier=existing.id,
                )

            exchange = self.exchange_repository.create(
                requester_id=requester.id,
                owner_id=requested_book.owner_id,
                requested_book_id=requested_book.id,
                offered_book_id=data.offered_book_id,
                request_message=data.request_message,
            )
        except RepositoryError as e:
            log_database_operation(
                operation="INSERT", table="exchange_requests", success=False, error=e.message
            )
            raise DatabaseException("Failed to create exchange request", operation="create") from e

        log_database_operation(
            operation="INSERT",
            table="exchange_requests",
            success=True,
            exchange_id=exchange.id,
            requester_id=requester.id,
        )
        logger.info(
            f"User {requester.id} requested book {requested_book.id}",
            extra={"exchange_id": exchange.id, "requester_id": requester.id},
        )

        await self._notify(
            recipient_id=exchange.owner_id,
            sender_id=requester.id,
            type=NotificationType.EXCHANGE_REQUEST,
            reference_id=exchange.id,
            message=(
                f"{requester.username} has sent an exchange request for your book "
                f"\"{requested_book.title}\"!"
            ),
        )
        return await self._detail(exchange)

    async def get_exchange(self, exchange_id: int, user: User) -> ExchangeDetail:
        """Get one exchange request visible to a party or an administrator.

        Raises:
            NotFoundException: If the request does not exist
            AuthorizationException: If the user is neither a party nor an admin
        """
        exchange = self._load(exchange_id)
        if not exchange.is_party(user.id) and not user.is_admin:
            self.log_authorization_failure(
                user_id=user.id,
                resource=f"exchange_request:{exchange_id}",
                action="view",
                reason="not a party to the exchange",
            )
            raise AuthorizationException("Not authorized to view this request")
        return await self._detail(exchange)

    async def my_requests(self, user_id: int) -> MyRequestsResponse:
        try:
            sent = self.exchange_repository.list_sent(user_id)
            received = self.exchange_repository.list_received(user_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load exchange requests", operation="list") from e

        details = await self._details(sent + received)
        return MyRequestsResponse(
            sent_requests=details[: len(sent)],
            received_requests=details[len(sent):],
        )

    async def list_all(self) -> list[ExchangeDetail]:
        try:
            exchanges = self.exchange_repository.list_all()
        except RepositoryError as e:
            raise DatabaseException("Failed to load exchange requests", operation="list") from e
        return await self._details(exchanges)

    # Status changes

    async def update_status(self, exchange_id: int, raw_status: str, actor: User) -> ExchangeDetail:
        """Apply a status change requested by one of the parties.

        Authorization is checked before legality, so a non-party learns
        nothing about the request's current state.

        Raises:
            ValidationException: If the status is unknown or not user-settable
            NotFoundException: If the request does not exist
            AuthorizationException: If the actor may not perform this change
            PreconditionException: If the current status does not allow it
            ConflictException: If the request was modified concurrently
        """
        target = parse_status(raw_status)
        transition = TRANSITIONS.get(target)
        if transition is None:
            raise ValidationException(
                f"Status '{target.value}' cannot be set directly", field="status", value=raw_status
            )

        exchange = self._load(exchange_id)
        role = self._role_of(exchange, actor.id)
        if role not in transition.actors:
            self.log_authorization_failure(
                user_id=actor.id,
                resource=f"exchange_request:{exchange_id}",
                action=f"set_status:{target.value}",
                reason=f"role {role or 'none'} may not set {target.value}",
            )
            raise AuthorizationException(
                f"Not authorized to set this request to {target.value}"
            )

        if exchange.status not in transition.allowed_from:
            raise PreconditionException(
                f"Request is already {exchange.status.value}. Cannot change it to {target.value}.",
                current_state=exchange.status.value,
                resource="exchange_request",
            )

        outcome = self._apply(exchange, target, actor_id=actor.id, forced=False)
        await self._notify_transition(outcome, actor)
        return await self._detail(outcome.exchange)

    async def force_status(self, exchange_id: int, raw_status: str, admin: User) -> ExchangeDetail:
        """Set any status, bypassing the actor and state guards.

        Book side effects are those of the regular transition into the
        target status. Forcing a Completed request back to Pending also
        undoes its completion. Both parties receive a system alert.
        """
        target = parse_status(raw_status)
        exchange = self._load(exchange_id)

        outcome = self._apply(exchange, target, actor_id=admin.id, forced=True)
        self.log_admin_action(
            admin_id=admin.id,
            action="force_status",
            resource="exchange_request",
            identifier=exchange_id,
            additional_data={
                "from_status": outcome.from_status.value,
                "to_status": target.value,
            },
        )

        title = self._title_of(outcome.exchange.requested_book_id)
        for recipient_id in (outcome.exchange.requester_id, outcome.exchange.owner_id):
            await self._notify(
                recipient_id=recipient_id,
                sender_id=admin.id,
                type=NotificationType.SYSTEM_ALERT,
                reference_id=outcome.exchange.id,
                message=(
                    f"An administrator changed the exchange for \"{title}\" "
                    f"from {outcome.from_status.value} to {target.value}."
                ),
            )
        await self._notify_cancelled_siblings(outcome, admin.id)
        return await self._detail(outcome.exchange)

    async def reconcile(self, exchange_id: int, admin: User | None = None) -> ReconcileResponse:
        """Settle an exchange's books for its current status and commit.

        Safe to run any number of times.
        """
        exchange = self._load(exchange_id)
        try:
            changed = self.settle_books(exchange)
            self.session.commit()
        except (RepositoryError, SQLAlchemyError) as e:
            self.session.rollback()
            raise DatabaseException("Failed to reconcile book availability", operation="reconcile") from e

        if admin is not None:
            self.log_admin_action(
                admin_id=admin.id,
                action="reconcile",
                resource="exchange_request",
                identifier=exchange_id,
                additional_data={"changed_books": len(changed)},
            )

        books = self.book_repository.get_many(exchange.book_ids)
        return ReconcileResponse(
            exchange_id=exchange.id,
            books=[BookSummary.model_validate(book) for book in books.values()],
            changed=len(changed),
        )

    def settle_books(self, exchange: ExchangeRequest, reopened: bool = False) -> list[Book]:
        """Bring the availability of an exchange's books in line with its status.

        With ``reopened`` the completion of this exchange is undone first:
        its Exchanged books go back to Available unless another Completed
        request also references them. Caller commits.

        Returns:
            List[Book]: Books whose availability changed
        """
        changed = []
        books = self.book_repository.get_many(exchange.book_ids)
        for book_id in sorted(books):
            book = books[book_id]
            others = self.exchange_repository.statuses_referencing_book(book_id, exclude_id=exchange.id)
            current = book.availability_status
            if (
                reopened
                and current == AvailabilityStatus.EXCHANGED
                and ExchangeStatus.COMPLETED not in others
            ):
                current = AvailabilityStatus.AVAILABLE
            if self.book_repository.set_availability(book, availability_for(exchange.status, current, others)):
                changed.append(book)
        return changed

    def release_reservations(self, book_ids: Iterable[int]) -> list[Book]:
        """Release Pending Exchange books no Accepted request holds any more.

        Used after requests are deleted. Exchanged books are left alone.
        Caller commits.
        """
        changed = []
        books = self.book_repository.get_many(book_ids)
        for book_id in sorted(books):
            book = books[book_id]
            others = self.exchange_repository.statuses_referencing_book(book_id)
            settled = availability_for(ExchangeStatus.CANCELLED, book.availability_status, others)
            if self.book_repository.set_availability(book, settled):
                changed.append(book)
        return changed

    def _apply(
        self,
        exchange: ExchangeRequest,
        target: ExchangeStatus,
        actor_id: int,
        forced: bool,
    ) -> TransitionOutcome:
        outcome = TransitionOutcome(exchange=exchange, from_status=exchange.status)
        completed_at = datetime.utcnow() if target == ExchangeStatus.COMPLETED else None

        try:
            self._compare_and_set(exchange, target, completed_at)
            outcome.changed_books = self.settle_books(
                exchange,
                reopened=outcome.from_status == ExchangeStatus.COMPLETED
                and target == ExchangeStatus.PENDING,
            )

            if target == ExchangeStatus.COMPLETED:
                outcome.cancelled_siblings = self._invalidate_siblings(exchange)
                outcome.released_books = self._release_stray_reservations(exchange.book_ids)

            self.session.commit()
        except ConflictException:
            self.session.rollback()
            raise
        except (RepositoryError, SQLAlchemyError) as e:
            self.session.rollback()
            logger.error(
                f"Failed to apply status {target.value} to exchange {exchange.id}: {str(e)}",
                exc_info=True,
                extra={"exchange_id": exchange.id},
            )
            raise DatabaseException("Failed to update exchange request status", operation="update_status") from e

        self.session.refresh(exchange)
        log_exchange_transition(
            exchange_id=exchange.id,
            actor_id=actor_id,
            from_status=outcome.from_status.value,
            to_status=target.value,
            forced=forced,
            changed_books=len(outcome.changed_books),
            cancelled_siblings=len(outcome.cancelled_siblings),
            released_books=len(outcome.released_books),
        )
        return outcome

    def _compare_and_set(
        self,
        exchange: ExchangeRequest,
        target: ExchangeStatus,
        completed_at: datetime | None,
    ) -> None:
        if not self.exchange_repository.compare_and_set_status(exchange, target, completed_at):
            logger.warning(
                f"Concurrent modification of exchange {exchange.id} detected",
                extra={"exchange_id": exchange.id, "target_status": target.value},
            )
            raise ConflictException(
                "Exchange request was modified concurrently; reload and try again",
                resource="exchange_request",
                identifier=exchange.id,
            )

    def _invalidate_siblings(self, exchange: ExchangeRequest) -> list[ExchangeRequest]:
        """Cancel every other active request that references either book."""
        siblings = self.exchange_repository.list_active_referencing(
            exchange.book_ids, exclude_id=exchange.id
        )
        for sibling in siblings:
            self._compare_and_set(sibling, ExchangeStatus.CANCELLED, None)
            self.settle_books(sibling)
        return siblings

    def _release_stray_reservations(self, exclude_ids: list[int]) -> list[Book]:
        released = self.book_repository.find_stray_reservations(exclude_ids)
        for book in released:
            self.book_repository.set_availability(book, AvailabilityStatus.AVAILABLE)
        if released:
            logger.info(
                f"Released {len(released)} stray reservation(s)",
                extra={"book_ids": [book.id for book in released]},
            )
        return released

    # Notifications

    async def _notify_transition(self, outcome: TransitionOutcome, actor: User) -> None:
        exchange = outcome.exchange
        title = self._title_of(exchange.requested_book_id)
        recipient_id = exchange.other_party(actor.id)

        if exchange.status == ExchangeStatus.ACCEPTED:
            message = f"{actor.username} has accepted your exchange request for \"{title}\"!"
        elif exchange.status == ExchangeStatus.DECLINED:
            message = f"{actor.username} has declined your exchange request for \"{title}\"."
        elif exchange.status == ExchangeStatus.CANCELLED:
            message = f"{actor.username} has cancelled the exchange request for \"{title}\"."
        else:
            message = f"Exchange for \"{title}\" marked as completed by {actor.username}!"

        await self._notify(
            recipient_id=recipient_id,
            sender_id=actor.id,
            type=NotificationType.STATUS_UPDATE,
            reference_id=exchange.id,
            message=message,
        )
        await self._notify_cancelled_siblings(outcome, actor.id)

    async def _notify_cancelled_siblings(self, outcome: TransitionOutcome, sender_id: int) -> None:
        for sibling in outcome.cancelled_siblings:
            title = self._title_of(sibling.requested_book_id)
            await self._notify(
                recipient_id=sibling.requester_id,
                sender_id=sender_id,
                type=NotificationType.STATUS_UPDATE,
                reference_id=sibling.id,
                message=(
                    f"Your exchange request for \"{title}\" was cancelled because "
                    f"a book in it has been exchanged."
                ),
            )

    async def _notify(self, **kwargs) -> None:
        """Send a notification without letting a failure reach the caller."""
        if self.notifier is None:
            return
        try:
            await self.notifier.notify(**kwargs)
        except Exception as e:
            logger.error(
                f"Failed to send notification: {str(e)}",
                exc_info=True,
                extra={
                    "recipient_id": kwargs.get("recipient_id"),
                    "reference_id": kwargs.get("reference_id"),
                },
            )

    # Helpers

    def _load(self, exchange_id: int) -> ExchangeRequest:
        try:
            exchange = self.exchange_repository.get_by_id(exchange_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load exchange request", operation="get") from e
        if exchange is None:
            raise NotFoundException("ExchangeRequest", exchange_id, "Exchange request not found")
        return exchange

    @staticmethod
    def _role_of(exchange: ExchangeRequest, user_id: int) -> str | None:
        if user_id == exchange.owner_id:
            return OWNER
        if user_id == exchange.requester_id:
            return REQUESTER
        return None

    def _title_of(self, book_id: int) -> str:
        book = self.book_repository.get_by_id(book_id)
        return book.title if book else "a book"

    async def _detail(self, exchange: ExchangeRequest) -> ExchangeDetail:
        return (await self._details([exchange]))[0]

    async def _details(self, exchanges: list[ExchangeRequest]) -> list[ExchangeDetail]:
        """Resolve parties and books for a batch of requests."""
        user_ids = {e.requester_id for e in exchanges} | {e.owner_id for e in exchanges}
        book_ids = {e.requested_book_id for e in exchanges} | {
            e.offered_book_id for e in exchanges if e.offered_book_id is not None
        }
        try:
            users = await self.user_repository.get_many(user_ids)
            books = self.book_repository.get_many(book_ids)
        except RepositoryError as e:
            raise DatabaseException("Failed to load exchange details", operation="get") from e

        def user_summary(user_id: int) -> UserSummary | None:
            user = users.get(user_id)
            return UserSummary.model_validate(user) if user else None

        def book_summary(book_id: int | None) -> BookSummary | None:
            book = books.get(book_id) if book_id is not None else None
            return BookSummary.model_validate(book) if book else None

        return [
            ExchangeDetail.model_validate(exchange).model_copy(
                update={
                    "requester": user_summary(exchange.requester_id),
                    "owner": user_summary(exchange.owner_id),
                    "requested_book": book_summary(exchange.requested_book_id),
                    "offered_book": book_summary(exchange.offered_book_id),
                }
            )
            for exchange in exchanges
        ]
