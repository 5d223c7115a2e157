"""Unit tests for MediaService."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from book_exchange.config import Settings
from book_exchange.exceptions import DependencyException, ValidationException
from book_exchange.services.media_service import ImageUpload, MediaService

PNG = ImageUpload(content=b"\x89PNG\r\n", content_type="image/png", filename="cover.png")


class TestMediaService:
    """Test cases for MediaService."""

    @pytest.fixture
    def configured_settings(self, test_settings: Settings) -> Settings:
        return test_settings.model_copy(
            update={
                "cloudinary_cloud_name": "demo",
                "cloudinary_api_key": "key",
                "cloudinary_api_secret": "secret",
            }
        )

    @pytest.fixture
    def media(self, configured_settings: Settings) -> MediaService:
        return MediaService(configured_settings)

    @pytest.fixture
    def mock_http(self):
        """Patch httpx.AsyncClient and expose the client's post mock."""
        with patch("book_exchange.services.media_service.httpx.AsyncClient") as mock_client:
            client = mock_client.return_value.__aenter__.return_value
            client.post = AsyncMock()
            yield client.post

    def test_validate_rejects_non_images(self, media: MediaService):
        with pytest.raises(ValidationException):
            media.validate_image(b"%PDF", "application/pdf", "doc.pdf")

    def test_validate_rejects_oversized_images(self, configured_settings: Settings):
        media = MediaService(configured_settings.model_copy(update={"media_max_upload_bytes": 4}))
        with pytest.raises(ValidationException):
            media.validate_image(b"12345", "image/jpeg")

    def test_validate_rejects_empty_file(self, media: MediaService):
        with pytest.raises(ValidationException):
            media.validate_image(b"", "image/jpeg")

    @pytest.mark.asyncio
    async def test_upload_success(self, media: MediaService, mock_http):
        response = Mock(status_code=200)
        response.json.return_value = {"secure_url": "https://res.cloudinary.com/demo/x.png"}
        mock_http.return_value = response

        url = await media.upload_image(PNG, folder="book-exchange/books")

        assert url == "https://res.cloudinary.com/demo/x.png"
        args, kwargs = mock_http.call_args
        assert args[0] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        assert kwargs["data"]["folder"] == "book-exchange/books"
        assert kwargs["data"]["api_key"] == "key"
        assert len(kwargs["data"]["signature"]) == 40

    @pytest.mark.asyncio
    async def test_upload_http_error(self, media: MediaService, mock_http):
        mock_http.return_value = Mock(status_code=401)

        with pytest.raises(DependencyException) as exc_info:
            await media.upload_image(PNG, folder="books")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_upload_network_error(self, media: MediaService, mock_http):
        mock_http.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(DependencyException):
            await media.upload_image(PNG, folder="books")

    @pytest.mark.asyncio
    async def test_upload_without_url(self, media: MediaService, mock_http):
        response = Mock(status_code=200)
        response.json.return_value = {}
        mock_http.return_value = response

        with pytest.raises(DependencyException):
            await media.upload_image(PNG, folder="books")

    @pytest.mark.asyncio
    async def test_upload_unconfigured(self, test_settings: Settings, mock_http):
        media = MediaService(test_settings)

        with pytest.raises(DependencyException):
            await media.upload_image(PNG, folder="books")

        mock_http.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_validates_before_sending(self, media: MediaService, mock_http):
        with pytest.raises(ValidationException):
            await media.upload_image(
                ImageUpload(content=b"text", content_type="text/plain"), folder="books"
            )

        mock_http.assert_not_called()
