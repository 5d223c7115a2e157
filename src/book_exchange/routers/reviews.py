"""Review router.

Parties of a completed exchange can rate each other once. Anyone can read
the reviews a user received.
"""

from fastapi import APIRouter, Depends, status

from ..dependencies import CurrentUser, get_review_service
from ..schemas.review_schemas import (
    ReviewCreate,
    ReviewResponse,
    ReviewStatusResponse,
    UserReviewsResponse,
)
from ..services.review_service import ReviewService

router = APIRouter(
    prefix="/api/reviews",
    tags=["reviews"],
    responses={
        400: {"description": "Bad request or exchange not completed"},
        401: {"description": "Unauthorized"},
        403: {"description": "Not a party of the exchange"},
        404: {"description": "Exchange or user not found"},
        409: {"description": "Already reviewed"},
    },
)


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review the other party of an exchange",
)
async def add_review(
    data: ReviewCreate,
    current_user: CurrentUser,
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    """Rate the other party of a Completed exchange.

    Args:
        data: Reviewee, exchange, rating from 1 to 5 and optional comment
        current_user: The reviewer
        review_service: Review service

    Returns:
        ReviewResponse: The stored review

    Raises:
        ValidationException: If the reviewee is the caller or not the other party
        NotFoundException: If the exchange does not exist
        PreconditionException: If the exchange is not Completed
        AuthorizationException: If the caller is not a party
        ConflictException: If the caller already reviewed this exchange

    Example:
        POST /api/reviews
        {
            "revieweeId": 2,
            "exchangeId": 3,
            "rating": 5,
            "comment": "Book arrived as described"
        }
    """
    return await review_service.add_review(current_user, data)


@router.get(
    "/user/{user_id}",
    response_model=UserReviewsResponse,
    summary="List a user's reviews",
)
async def user_reviews(
    user_id: int,
    review_service: ReviewService = Depends(get_review_service),
) -> UserReviewsResponse:
    """List the reviews a user received with their average rating.

    Raises:
        NotFoundException: If the user does not exist
    """
    return await review_service.user_reviews(user_id)


@router.get(
    "/exchange-status/{exchange_id}",
    response_model=ReviewStatusResponse,
    summary="Check whether I can review an exchange",
)
async def review_status(
    exchange_id: int,
    current_user: CurrentUser,
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewStatusResponse:
    return await review_service.review_status(exchange_id, current_user)
