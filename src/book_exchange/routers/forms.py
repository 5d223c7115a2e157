"""Helpers for endpoints that accept multipart forms.

Create and update endpoints for books and profiles receive their fields as
form data next to an optional image file. The fields are validated through
the same Pydantic schemas as JSON bodies so that errors have the usual 422
shape.
"""

from typing import Any, TypeVar

from fastapi import Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from ..services.media_service import ImageUpload

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_form(schema: type[SchemaT], fields: dict[str, Any]) -> SchemaT:
    """Validate form fields against a schema.

    Fields that were not submitted (``None``) are left out so that partial
    updates only touch what the client sent.

    Raises:
        RequestValidationError: If the fields do not satisfy the schema
    """
    submitted = {name: value for name, value in fields.items() if value is not None}
    try:
        return schema.model_validate(submitted)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


async def blank_fields(request: Request, *names: str) -> set[str]:
    """Names of form fields that were submitted with an empty value.

    FastAPI reads an empty optional form field as not sent at all; this tells
    the two apart for fields where clearing has a meaning.
    """
    form = await request.form()
    return {name for name in names if form.get(name) == ""}


async def read_image(upload: UploadFile | None) -> ImageUpload | None:
    """Read an uploaded file into memory, or return None if none was sent."""
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    return ImageUpload(
        content=content,
        content_type=upload.content_type,
        filename=upload.filename,
    )
