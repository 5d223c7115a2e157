"""Wishlist router."""

from fastapi import APIRouter, Depends, status

from ..dependencies import CurrentUserId, get_wishlist_service
from ..schemas.common import OperationResponse
from ..schemas.review_schemas import (
    WishlistCreate,
    WishlistItemResponse,
    WishlistStatusResponse,
)
from ..services.wishlist_service import WishlistService

router = APIRouter(
    prefix="/api/wishlist",
    tags=["wishlist"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Not the owner of the entry"},
        404: {"description": "Entry or book not found"},
        409: {"description": "Already in the wishlist"},
    },
)


@router.post(
    "",
    response_model=WishlistItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add to my wishlist",
)
async def add_item(
    data: WishlistCreate,
    user_id: CurrentUserId,
    wishlist_service: WishlistService = Depends(get_wishlist_service),
) -> WishlistItemResponse:
    """Add a listed book, or a wanted title and author, to the wishlist.

    Raises:
        ValidationException: If neither a book nor a title and author is given
        NotFoundException: If the linked book does not exist
        ConflictException: If the entry already exists
    """
    return await wishlist_service.add_item(user_id, data)


@router.get(
    "",
    response_model=list[WishlistItemResponse],
    summary="List my wishlist",
)
async def list_items(
    user_id: CurrentUserId,
    wishlist_service: WishlistService = Depends(get_wishlist_service),
) -> list[WishlistItemResponse]:
    return await wishlist_service.list_items(user_id)


@router.get(
    "/status/{book_id}",
    response_model=WishlistStatusResponse,
    summary="Check whether a book is in my wishlist",
)
async def wishlist_status(
    book_id: int,
    user_id: CurrentUserId,
    wishlist_service: WishlistService = Depends(get_wishlist_service),
) -> WishlistStatusResponse:
    return await wishlist_service.status_for_book(user_id, book_id)


@router.delete(
    "/{item_id}",
    response_model=OperationResponse,
    summary="Remove from my wishlist",
)
async def remove_item(
    item_id: int,
    user_id: CurrentUserId,
    wishlist_service: WishlistService = Depends(get_wishlist_service),
) -> OperationResponse:
    """Remove an entry from the caller's wishlist.

    Raises:
        NotFoundException: If the entry does not exist
        AuthorizationException: If the entry belongs to another user
    """
    await wishlist_service.remove_item(item_id, user_id)
    return OperationResponse(message="Removed from wishlist")
