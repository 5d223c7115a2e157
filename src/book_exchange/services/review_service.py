"""Review service: ratings between the parties of completed exchanges."""

from sqlmodel import Session

from ..exceptions import (
    AuthorizationException,
    ConflictException,
    DatabaseException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from ..logging_config import get_logger, log_database_operation
from ..models.enums import ExchangeStatus, NotificationType
from ..models.exchange import ExchangeRequest
from ..models.user import User
from ..repositories.base import RepositoryError
from ..repositories.exchange_repository import ExchangeRepository
from ..repositories.review_repository import ReviewAlreadyExistsError, ReviewRepository
from ..repositories.user_repository import UserRepository
from ..schemas.common import UserSummary
from ..schemas.review_schemas import (
    ReviewCreate,
    ReviewResponse,
    ReviewStatusResponse,
    UserReviewsResponse,
)
from .notification_service import NotificationService

logger = get_logger("review_service")


class ReviewService:
    """Service for creating and reading reviews."""

    def __init__(self, session: Session, notifier: NotificationService | None = None) -> None:
        self.session = session
        self.notifier = notifier
        self.review_repository = ReviewRepository(session)
        self.exchange_repository = ExchangeRepository(session)
        self.user_repository = UserRepository(session)

    async def add_review(self, reviewer: User, data: ReviewCreate) -> ReviewResponse:
        """Review the other party of a completed exchange.

        Raises:
            ValidationException: If the reviewer targets themselves or a non-party
            NotFoundException: If the exchange does not exist
            PreconditionException: If the exchange is not Completed
            AuthorizationException: If the reviewer is not a party
            ConflictException: If the reviewer already reviewed this exchange
        """
        if data.reviewee_id == reviewer.id:
            raise ValidationException("You cannot review yourself", field="revieweeId")

        exchange = self._load(data.exchange_id)
        if exchange.status != ExchangeStatus.COMPLETED:
            raise PreconditionException(
                "Review can only be added for a completed exchange",
                current_state=exchange.status.value,
                resource="exchange_request",
            )
        if not exchange.is_party(reviewer.id):
            raise AuthorizationException("You are not involved in this exchange")
        if exchange.other_party(reviewer.id) != data.reviewee_id:
            raise ValidationException(
                "The reviewee specified is not the other party in this exchange",
                field="revieweeId",
            )

        try:
            review = self.review_repository.create(
                reviewer_id=reviewer.id,
                reviewee_id=data.reviewee_id,
                exchange_request_id=exchange.id,
                rating=data.rating,
                comment=data.comment,
            )
        except ReviewAlreadyExistsError as e:
            raise ConflictException(e.message, resource="review", identifier=exchange.id) from e
        except RepositoryError as e:
            log_database_operation(operation="INSERT", table="reviews", success=False, error=e.message)
            raise DatabaseException("Failed to add review", operation="create") from e

        log_database_operation(
            operation="INSERT", table="reviews", success=True, review_id=review.id, exchange_id=exchange.id
        )

        if self.notifier is not None:
            try:
                await self.notifier.notify(
                    recipient_id=data.reviewee_id,
                    sender_id=reviewer.id,
                    type=NotificationType.REVIEW,
                    reference_id=review.id,
                    message=f"{reviewer.username} left you a {data.rating}-star review.",
                )
            except Exception as e:
                logger.error(
                    f"Failed to send review notification: {str(e)}",
                    exc_info=True,
                    extra={"review_id": review.id},
                )

        return ReviewResponse(
            **ReviewResponse.model_validate(review).model_dump(exclude={"reviewer"}),
            reviewer=UserSummary.model_validate(reviewer),
        )

    async def user_reviews(self, user_id: int) -> UserReviewsResponse:
        """List reviews about a user with the rating average."""
        try:
            user = await self.user_repository.get_by_id(user_id)
            if user is None:
                raise NotFoundException("User", user_id, "User not found")
            reviews = self.review_repository.list_for_reviewee(user_id)
            average, count = self.review_repository.rating_stats(user_id)
            reviewers = await self.user_repository.get_many({r.reviewer_id for r in reviews})
        except RepositoryError as e:
            raise DatabaseException("Failed to load reviews", operation="list") from e

        items = []
        for review in reviews:
            reviewer = reviewers.get(review.reviewer_id)
            items.append(
                ReviewResponse(
                    **ReviewResponse.model_validate(review).model_dump(exclude={"reviewer"}),
                    reviewer=UserSummary.model_validate(reviewer) if reviewer else None,
                )
            )
        return UserReviewsResponse(
            reviews=items, average_rating=round(average, 2), num_reviews=count
        )

    async def review_status(self, exchange_id: int, user: User) -> ReviewStatusResponse:
        """Tell a party whether they can still review the exchange.

        Raises:
            NotFoundException: If the exchange does not exist
            AuthorizationException: If the user is not a party
        """
        exchange = self._load(exchange_id)
        if not exchange.is_party(user.id):
            raise AuthorizationException("Not authorized to view review status for this exchange")
        if exchange.status != ExchangeStatus.COMPLETED:
            return ReviewStatusResponse(can_review=False, message="Exchange not completed yet.")

        other_party_id = exchange.other_party(user.id)
        try:
            existing = self.review_repository.find(user.id, other_party_id, exchange.id)
            other_party = await self.user_repository.get_by_id(other_party_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load review status", operation="get") from e

        return ReviewStatusResponse(
            can_review=existing is None,
            has_reviewed=existing is not None,
            other_party_id=other_party_id,
            other_party_username=other_party.username if other_party else None,
            message=(
                "You have already reviewed this exchange."
                if existing
                else "Ready to review this exchange."
            ),
        )

    def _load(self, exchange_id: int) -> ExchangeRequest:
        try:
            exchange = self.exchange_repository.get_by_id(exchange_id)
        except RepositoryError as e:
            raise DatabaseException("Failed to load exchange request", operation="get") from e
        if exchange is None:
            raise NotFoundException("ExchangeRequest", exchange_id, "Exchange not found")
        return exchange
