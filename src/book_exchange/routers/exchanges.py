"""Exchange request router.

This module exposes the exchange lifecycle: creating a request for another
user's book, listing the caller's sent and received requests, reading one
request and moving it through its states.
"""

from fastapi import APIRouter, Depends, status

from ..dependencies import CurrentUser, get_exchange_service
from ..schemas.exchange_schemas import (
    ExchangeCreate,
    ExchangeDetail,
    MyRequestsResponse,
    StatusUpdate,
)
from ..services.exchange_service import ExchangeService

router = APIRouter(
    prefix="/api/exchanges",
    tags=["exchanges"],
    responses={
        400: {"description": "Invalid request or transition"},
        401: {"description": "Unauthorized"},
        403: {"description": "Not allowed to act on this exchange"},
        404: {"description": "Exchange or book not found"},
        409: {"description": "Duplicate request or concurrent update"},
        500: {"description": "Internal server error"},
    },
)


@router.post(
    "",
    response_model=ExchangeDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Request an exchange",
    description="Request another user's book, optionally offering one of your own in return",
)
async def create_exchange(
    data: ExchangeCreate,
    current_user: CurrentUser,
    exchange_service: ExchangeService = Depends(get_exchange_service),
) -> ExchangeDetail:
    """Create a Pending exchange request.

    Both books must be Available, the requested book must belong to someone
    else and the offered book to the caller. The owner is notified.

    Args:
        data: Requested book, optional offered book and a message
        current_user: The requester
        exchange_service: Exchange lifecycle service

    Returns:
        ExchangeDetail: The new request with party and book summaries

    Raises:
        NotFoundException: If a book does not exist
        ValidationException: If the caller requests their own book or offers
            a book they do not own
        PreconditionException: If a book is not Available
        ConflictException: If the caller already has an open request for the book

    Example:
        POST /api/exchanges
        {
            "requestedBookId": 12,
            "offeredBookId": 7,
            "requestMessage": "Happy to swap!"
        }

        Response:
        {
            "id": 3,
            "requesterId": 1,
            "ownerId": 2,
            "requestedBookId": 12,
            "offeredBookId": 7,
            "status": "Pending",
            "version": 1,
            ...
        }
    """
    return await exchange_service.request_exchange(current_user, data)


@router.get(
    "/myrequests",
    response_model=MyRequestsResponse,
    summary="List my exchange requests",
)
async def my_requests(
    current_user: CurrentUser,
    exchange_service: ExchangeService = Depends(get_exchange_service),
) -> MyRequestsResponse:
    """List the requests the caller sent and received, newest first."""
    return await exchange_service.my_requests(current_user.id)


@router.get(
    "/{exchange_id}",
    response_model=ExchangeDetail,
    summary="Get an exchange request",
)
async def get_exchange(
    exchange_id: int,
    current_user: CurrentUser,
    exchange_service: ExchangeService = Depends(get_exchange_service),
) -> ExchangeDetail:
    """Get one exchange request.

    Only its two parties and administrators may read it.

    Raises:
        NotFoundException: If the exchange does not exist
        AuthorizationException: If the caller is not a party
    """
    return await exchange_service.get_exchange(exchange_id, current_user)


@router.put(
    "/{exchange_id}/status",
    response_model=ExchangeDetail,
    summary="Change an exchange's status",
    description="Accept, decline, cancel or complete an exchange request",
)
async def update_exchange_status(
    exchange_id: int,
    data: StatusUpdate,
    current_user: CurrentUser,
    exchange_service: ExchangeService = Depends(get_exchange_service),
) -> ExchangeDetail:
    """Apply a lifecycle transition.

    The owner may accept or decline a Pending request. Either party may
    cancel a Pending or Accepted request, or complete an Accepted one.
    Completing an exchange cancels the other open requests for the same
    books. Book availability follows the exchange in the same transaction.

    Raises:
        ValidationException: If the status is unknown or not a user target
        NotFoundException: If the exchange does not exist
        AuthorizationException: If the caller's role may not make this change
        PreconditionException: If the exchange is not in a valid source state
        ConflictException: If another change was applied concurrently
    """
    return await exchange_service.update_status(exchange_id, data.status, current_user)
