"""Run the API under uvicorn: ``python -m book_exchange`` or ``book-exchange``."""

import uvicorn

from .config import settings


def main() -> None:
    # Logging is configured by the application itself
    uvicorn.run(
        "book_exchange.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    main()
