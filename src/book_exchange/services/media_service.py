"""Media service for image uploads to the hosted media store.

Images are sent to the Cloudinary upload REST API as signed multipart
requests over httpx; the returned ``secure_url`` is what books and profiles
store.
"""

import hashlib
import time
from dataclasses import dataclass
from datetime import datetime

import httpx

from ..config import Settings
from ..exceptions import DependencyException, ValidationException
from ..logging_config import get_logger, log_external_api_call

logger = get_logger("media_service")

MEDIA_SERVICE_NAME = "Cloudinary"


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded file as received from the client."""

    content: bytes
    content_type: str | None
    filename: str | None = None


class MediaService:
    """Uploads user images and returns their public URL."""

    UPLOAD_URL_TEMPLATE = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.max_upload_bytes = settings.media_max_upload_bytes

    @property
    def upload_url(self) -> str:
        return self.UPLOAD_URL_TEMPLATE.format(cloud_name=self.cloud_name)

    def validate_image(self, content: bytes, content_type: str | None, filename: str | None = None) -> None:
        """Reject non-image uploads and files over the size limit.

        Raises:
            ValidationException: If the file is not an acceptable image
        """
        if not content_type or not content_type.startswith("image/"):
            raise ValidationException(
                "Only image files are allowed", field="image", value=content_type
            )
        if not content:
            raise ValidationException("Uploaded image is empty", field="image", value=filename)
        if len(content) > self.max_upload_bytes:
            raise ValidationException(
                f"Image exceeds the maximum size of {self.max_upload_bytes} bytes",
                field="image",
                value=len(content),
            )

    def _sign(self, params: dict[str, str]) -> str:
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    async def upload_image(self, image: ImageUpload, folder: str) -> str:
        """Upload an image and return its public URL.

        Args:
            image: Uploaded file
            folder: Destination folder on the media host

        Returns:
            str: HTTPS URL of the stored image

        Raises:
            ValidationException: If the file is not an acceptable image
            DependencyException: If the media host is not configured or the upload fails
        """
        content = image.content
        self.validate_image(content, image.content_type, image.filename)

        if not self.settings.media_configured:
            logger.error("Image upload requested but media host is not configured")
            raise DependencyException(
                "Image uploads are not available", service=MEDIA_SERVICE_NAME
            )

        params = {"folder": folder, "timestamp": str(int(time.time()))}
        data = {**params, "api_key": self.api_key, "signature": self._sign(params)}
        files = {"file": (image.filename or "upload", content, image.content_type)}

        start_time = datetime.utcnow()
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.upload_url, data=data, files=files, timeout=30.0)

            duration = (datetime.utcnow() - start_time).total_seconds()
            log_external_api_call(
                service=MEDIA_SERVICE_NAME,
                endpoint=self.upload_url,
                method="POST",
                status_code=response.status_code,
                duration=duration,
                success=response.status_code == 200,
                folder=folder,
                size=len(content),
            )

            if response.status_code != 200:
                raise DependencyException(
                    f"Image upload failed with status {response.status_code}",
                    service=MEDIA_SERVICE_NAME,
                )

            secure_url = response.json().get("secure_url")
            if not secure_url:
                raise DependencyException(
                    "Image upload response did not include a URL",
                    service=MEDIA_SERVICE_NAME,
                )
            return secure_url

        except httpx.RequestError as e:
            duration = (datetime.utcnow() - start_time).total_seconds()
            log_external_api_call(
                service=MEDIA_SERVICE_NAME,
                endpoint=self.upload_url,
                method="POST",
                duration=duration,
                success=False,
                error=str(e),
            )
            raise DependencyException(
                f"Failed to connect to media host: {str(e)}", service=MEDIA_SERVICE_NAME
            ) from e
        except ValueError as e:
            raise DependencyException(
                "Media host returned an unreadable response", service=MEDIA_SERVICE_NAME
            ) from e
