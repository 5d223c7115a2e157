"""Book listing router.

This module provides endpoints to list books for exchange, browse the
books that are currently available, and manage the caller's own books.
Create and update accept multipart form data with an optional cover image.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status

from ..dependencies import CurrentUser, get_book_service
from ..schemas.book_schemas import (
    BookCreate,
    BookResponse,
    BookSearchParams,
    BookUpdate,
    BookWithOwner,
)
from ..schemas.common import OperationResponse
from ..services.book_service import BookService
from .forms import blank_fields, read_image, validate_form

router = APIRouter(
    prefix="/api/books",
    tags=["books"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Not the owner of the book"},
        404: {"description": "Book not found"},
        500: {"description": "Internal server error"},
    },
)


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a book",
    description="List a new book for exchange. The optional image file becomes the cover.",
)
async def create_book(
    current_user: CurrentUser,
    title: Annotated[str, Form()],
    author: Annotated[str, Form()],
    condition: Annotated[str, Form()],
    genre: Annotated[str | None, Form()] = None,
    isbn: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    image: Annotated[UploadFile | None, File()] = None,
    book_service: BookService = Depends(get_book_service),
) -> BookResponse:
    """List a new book owned by the caller.

    The book starts Available. Without an image the placeholder cover is
    used.

    Returns:
        BookResponse: The created book

    Raises:
        ValidationException: If the image is not an acceptable image
        ConflictException: If the ISBN is already listed
        DependencyException: If the cover upload fails

    Example:
        POST /api/books (multipart/form-data)
        title=Dune, author=Frank Herbert, condition=Good, image=@cover.jpg
    """
    data = validate_form(
        BookCreate,
        {
            "title": title,
            "author": author,
            "condition": condition,
            "genre": genre,
            "isbn": isbn,
            "description": description,
        },
    )
    upload = await read_image(image)
    return await book_service.create_book(current_user, data, upload)


@router.get(
    "",
    response_model=list[BookWithOwner],
    summary="Browse available books",
    description="Public browse of Available books with keyword, genre and condition filters",
)
async def browse_books(
    keyword: Annotated[str | None, Query(max_length=100)] = None,
    genre: Annotated[str | None, Query(max_length=100)] = None,
    condition: Annotated[str | None, Query(max_length=20)] = None,
    book_service: BookService = Depends(get_book_service),
) -> list[BookWithOwner]:
    """Browse books that are Available for exchange.

    Args:
        keyword: Case-insensitive match on title, author or description
        genre: Exact genre, or ``All``
        condition: Exact condition, or ``All``
        book_service: Book service

    Returns:
        List[BookWithOwner]: Matching books, newest first
    """
    params = BookSearchParams(keyword=keyword, genre=genre, condition=condition)
    return await book_service.browse(params)


@router.get(
    "/mybooks",
    response_model=list[BookResponse],
    summary="List my books",
)
async def my_books(
    current_user: CurrentUser,
    book_service: BookService = Depends(get_book_service),
) -> list[BookResponse]:
    return await book_service.my_books(current_user.id)


@router.get(
    "/{book_id}",
    response_model=BookWithOwner,
    summary="Get a book",
)
async def get_book(
    book_id: int,
    book_service: BookService = Depends(get_book_service),
) -> BookWithOwner:
    """Get one book with its owner's summary.

    Raises:
        NotFoundException: If the book does not exist
    """
    return await book_service.get_book(book_id)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Partial update of one of the caller's books, sent as multipart form data",
)
async def update_book(
    book_id: int,
    request: Request,
    current_user: CurrentUser,
    title: Annotated[str | None, Form()] = None,
    author: Annotated[str | None, Form()] = None,
    condition: Annotated[str | None, Form()] = None,
    genre: Annotated[str | None, Form()] = None,
    isbn: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    image_url: Annotated[str | None, Form(alias="imageUrl")] = None,
    availability_status: Annotated[str | None, Form(alias="availabilityStatus")] = None,
    image: Annotated[UploadFile | None, File()] = None,
    book_service: BookService = Depends(get_book_service),
) -> BookResponse:
    """Update one of the caller's books.

    Only submitted fields change. An uploaded image replaces the cover and
    an empty ``imageUrl`` restores the placeholder. Availability cannot be
    changed by hand while a Pending or Accepted exchange references the
    book.

    Raises:
        NotFoundException: If the book does not exist
        AuthorizationException: If the caller does not own the book
        PreconditionException: If availability is locked by an exchange
        ConflictException: If the new ISBN is already listed
    """
    if "imageUrl" in await blank_fields(request, "imageUrl"):
        image_url = ""

    changes = validate_form(
        BookUpdate,
        {
            "title": title,
            "author": author,
            "condition": condition,
            "genre": genre,
            "isbn": isbn,
            "description": description,
            "image_url": image_url,
            "availability_status": availability_status,
        },
    )
    upload = await read_image(image)
    return await book_service.update_book(book_id, current_user, changes, upload)


@router.delete(
    "/{book_id}",
    response_model=OperationResponse,
    summary="Delete a book",
)
async def delete_book(
    book_id: int,
    current_user: CurrentUser,
    book_service: BookService = Depends(get_book_service),
) -> OperationResponse:
    """Delete one of the caller's books with its exchange history.

    Raises:
        NotFoundException: If the book does not exist
        AuthorizationException: If the caller does not own the book
        PreconditionException: If the book is part of an active exchange
    """
    await book_service.delete_book(book_id, current_user)
    return OperationResponse(message="Book deleted successfully")
