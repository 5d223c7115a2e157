"""Exchange conversation router.

Messages are attached to an exchange request and can only be exchanged
between its two parties.
"""

from fastapi import APIRouter, Depends, status

from ..dependencies import CurrentUser, get_message_service
from ..schemas.common import CountResponse
from ..schemas.message_schemas import MessageCreate, MessageResponse
from ..services.message_service import MessageService

router = APIRouter(
    prefix="/api/messages",
    tags=["messages"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Not a party of the exchange"},
        404: {"description": "Exchange not found"},
    },
)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    data: MessageCreate,
    current_user: CurrentUser,
    message_service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    """Send a message to the other party of an exchange.

    The receiver is notified.

    Raises:
        ValidationException: If the caller messages themselves or someone
            who is not the other party
        NotFoundException: If the exchange does not exist
        AuthorizationException: If the caller is not a party
    """
    return await message_service.send_message(current_user, data)


@router.get(
    "/unread-count",
    response_model=CountResponse,
    summary="Count unread messages",
)
async def unread_count(
    current_user: CurrentUser,
    message_service: MessageService = Depends(get_message_service),
) -> CountResponse:
    return CountResponse(count=await message_service.unread_count(current_user.id))


@router.get(
    "/{exchange_request_id}",
    response_model=list[MessageResponse],
    summary="Read a conversation",
)
async def get_conversation(
    exchange_request_id: int,
    current_user: CurrentUser,
    message_service: MessageService = Depends(get_message_service),
) -> list[MessageResponse]:
    """Read the messages of an exchange, oldest first.

    Messages the caller received are marked read.

    Raises:
        NotFoundException: If the exchange does not exist
        AuthorizationException: If the caller is not a party
    """
    return await message_service.get_conversation(exchange_request_id, current_user)
