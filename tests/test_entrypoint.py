"""Tests for the command-line server entry point."""

from unittest.mock import patch

from book_exchange.__main__ import main
from book_exchange.config import settings


class TestEntrypoint:
    """Test cases for running the server under uvicorn."""

    def test_main_runs_uvicorn_with_settings(self):
        with patch("book_exchange.__main__.uvicorn.run") as mock_run:
            main()

        mock_run.assert_called_once_with(
            "book_exchange.main:app",
            host=settings.server_host,
            port=settings.server_port,
            reload=settings.is_development,
            log_config=None,
        )
