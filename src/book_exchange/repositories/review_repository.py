"""Review repository for database operations."""

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ..models.review import Review
from .base import AlreadyExistsError, BaseRepository, RepositoryError


class ReviewRepositoryError(RepositoryError):
    """Base exception for review repository errors."""
    pass


class ReviewAlreadyExistsError(AlreadyExistsError, ReviewRepositoryError):
    """Raised when the reviewer already reviewed this party for this exchange."""
    pass


class ReviewRepository(BaseRepository):
    """Repository for counterparty reviews."""

    table = "reviews"

    def create(
        self,
        reviewer_id: int,
        reviewee_id: int,
        exchange_request_id: int,
        rating: int,
        comment: str | None,
    ) -> Review:
        try:
            review = Review(
                reviewer_id=reviewer_id,
                reviewee_id=reviewee_id,
                exchange_request_id=exchange_request_id,
                rating=rating,
                comment=comment,
            )
            self.session.add(review)
            self.session.commit()
            self.session.refresh(review)
            return review
        except IntegrityError as e:
            self.session.rollback()
            raise ReviewAlreadyExistsError(
                "You have already reviewed this user for this exchange",
                original_error=e,
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise ReviewRepositoryError(
                f"Database error while creating review: {str(e)}", original_error=e
            ) from e

    def find(self, reviewer_id: int, reviewee_id: int, exchange_request_id: int) -> Review | None:
        try:
            statement = select(Review).where(
                Review.reviewer_id == reviewer_id,
                Review.reviewee_id == reviewee_id,
                Review.exchange_request_id == exchange_request_id,
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise ReviewRepositoryError(
                f"Database error while retrieving review: {str(e)}", original_error=e
            ) from e

    def list_for_reviewee(self, reviewee_id: int) -> list[Review]:
        try:
            statement = (
                select(Review)
                .where(Review.reviewee_id == reviewee_id)
                .order_by(Review.created_at.desc(), Review.id.desc())
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise ReviewRepositoryError(
                f"Database error while listing reviews: {str(e)}", original_error=e
            ) from e

    def rating_stats(self, reviewee_id: int) -> tuple[float, int]:
        """Return (average rating, number of reviews) for a user."""
        try:
            statement = select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.reviewee_id == reviewee_id
            )
            average, count = self.session.exec(statement).one()
            return float(average or 0), int(count or 0)
        except SQLAlchemyError as e:
            raise ReviewRepositoryError(
                f"Database error while computing ratings: {str(e)}", original_error=e
            ) from e

    def delete_for_exchanges(self, exchange_ids: list[int]) -> int:
        """Delete reviews attached to the given exchanges. Caller commits."""
        if not exchange_ids:
            return 0
        return self._delete(Review.exchange_request_id.in_(exchange_ids))

    def delete_for_user(self, user_id: int) -> int:
        """Delete reviews written by or about a user. Caller commits."""
        return self._delete(or_(Review.reviewer_id == user_id, Review.reviewee_id == user_id))

    def _delete(self, criterion) -> int:
        try:
            result = self.session.execute(
                delete(Review).where(criterion).execution_options(synchronize_session=False)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise ReviewRepositoryError(
                f"Database error while deleting reviews: {str(e)}", original_error=e
            ) from e
