"""Notification inbox router."""

from fastapi import APIRouter, Depends

from ..dependencies import CurrentUser, get_notification_service
from ..schemas.common import CountResponse
from ..schemas.message_schemas import (
    MarkAllReadResponse,
    NotificationReadResponse,
    NotificationResponse,
)
from ..services.notification_service import NotificationService

router = APIRouter(
    prefix="/api/notifications",
    tags=["notifications"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Not the recipient"},
        404: {"description": "Notification not found"},
    },
)


@router.get(
    "",
    response_model=list[NotificationResponse],
    summary="List my notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    notification_service: NotificationService = Depends(get_notification_service),
) -> list[NotificationResponse]:
    """List the caller's notifications, newest first."""
    return await notification_service.list_notifications(current_user.id)


@router.get(
    "/unread-count",
    response_model=CountResponse,
    summary="Count unread notifications",
)
async def unread_count(
    current_user: CurrentUser,
    notification_service: NotificationService = Depends(get_notification_service),
) -> CountResponse:
    return CountResponse(count=await notification_service.unread_count(current_user.id))


@router.put(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications read",
)
async def mark_all_read(
    current_user: CurrentUser,
    notification_service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    return await notification_service.mark_all_read(current_user.id)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationReadResponse,
    summary="Mark a notification read",
)
async def mark_read(
    notification_id: int,
    current_user: CurrentUser,
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationReadResponse:
    """Mark one of the caller's notifications read.

    Raises:
        NotFoundException: If the notification does not exist
        AuthorizationException: If it belongs to another user
    """
    return await notification_service.mark_read(notification_id, current_user.id)
