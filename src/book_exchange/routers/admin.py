"""Administration router.

Every endpoint requires an administrator. Administrators can inspect all
users, books and exchanges, delete users and books with everything that
depends on them, force an exchange into any status and re-run the book
availability reconciliation for an exchange.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from ..dependencies import AdminUser, get_admin_service
from ..schemas.auth_schemas import UserProfile
from ..schemas.book_schemas import BookWithOwner
from ..schemas.exchange_schemas import ExchangeDetail, ReconcileResponse, StatusUpdate
from ..services.admin_service import AdminService

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator access required"},
        404: {"description": "Resource not found"},
        500: {"description": "Internal server error"},
    },
)


@router.get(
    "/users",
    response_model=list[UserProfile],
    summary="List users",
)
async def list_users(
    admin: AdminUser,
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum number of users"),
    offset: int = Query(default=0, ge=0, description="Number of users to skip"),
    admin_service: AdminService = Depends(get_admin_service),
) -> list[UserProfile]:
    return await admin_service.list_users(limit=limit, offset=offset)


@router.delete(
    "/users/{user_id}",
    response_model=dict[str, Any],
    summary="Delete a user",
    description="Delete a user with their books, exchanges, messages, notifications, reviews and wishlist",
)
async def delete_user(
    user_id: int,
    admin: AdminUser,
    admin_service: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    """Delete a user and everything that references them.

    Books of other users that were reserved by the deleted exchanges are
    made Available again.

    Returns:
        Dict[str, Any]: Confirmation with the number of deleted rows per table

    Raises:
        ValidationException: If the administrator targets themselves
        NotFoundException: If the user does not exist

    Example:
        DELETE /api/admin/users/5

        Response:
        {
            "message": "User deleted successfully",
            "deleted": {"books": 2, "exchange_requests": 3, ...}
        }
    """
    counts = await admin_service.delete_user(user_id, admin)
    return {"message": "User deleted successfully", "deleted": counts}


@router.get(
    "/books",
    response_model=list[BookWithOwner],
    summary="List all books",
)
async def list_books(
    admin: AdminUser,
    admin_service: AdminService = Depends(get_admin_service),
) -> list[BookWithOwner]:
    return await admin_service.list_books()


@router.delete(
    "/books/{book_id}",
    response_model=dict[str, Any],
    summary="Delete a book",
    description="Delete any book with its wishlist entries, exchanges and their messages and reviews",
)
async def delete_book(
    book_id: int,
    admin: AdminUser,
    admin_service: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    """Delete a book even while it is part of an active exchange.

    Raises:
        NotFoundException: If the book does not exist
    """
    counts = await admin_service.delete_book(book_id, admin)
    return {"message": "Book deleted successfully", "deleted": counts}


@router.get(
    "/exchanges",
    response_model=list[ExchangeDetail],
    summary="List all exchanges",
)
async def list_exchanges(
    admin: AdminUser,
    admin_service: AdminService = Depends(get_admin_service),
) -> list[ExchangeDetail]:
    return await admin_service.list_exchanges()


@router.put(
    "/exchanges/{exchange_id}/status",
    response_model=ExchangeDetail,
    summary="Force an exchange status",
    description="Move an exchange to any status, bypassing role and source-state checks",
)
async def force_exchange_status(
    exchange_id: int,
    data: StatusUpdate,
    admin: AdminUser,
    admin_service: AdminService = Depends(get_admin_service),
) -> ExchangeDetail:
    """Force an exchange into a status.

    Books are settled as for a regular transition into the same status
    and both parties receive a system alert.

    Raises:
        ValidationException: If the status is unknown
        NotFoundException: If the exchange does not exist
        ConflictException: If another change was applied concurrently
    """
    return await admin_service.force_exchange_status(exchange_id, data.status, admin)


@router.post(
    "/exchanges/{exchange_id}/reconcile",
    response_model=ReconcileResponse,
    summary="Reconcile book availability",
)
async def reconcile_exchange(
    exchange_id: int,
    admin: AdminUser,
    admin_service: AdminService = Depends(get_admin_service),
) -> ReconcileResponse:
    """Settle the availability of the exchange's books for its status.

    Running it again without intervening changes changes nothing.

    Raises:
        NotFoundException: If the exchange does not exist
    """
    return await admin_service.reconcile_exchange(exchange_id, admin)
