"""Main entry point - runs the exchange API."""

import logging

import uvicorn

from burnswap.api.app import create_app
from burnswap.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run() -> None:
    """Start the API server."""
    settings = get_settings()
    configure_logging(settings.debug)

    logger.info("Starting burnswap...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Engine: {settings.engine_address}")

    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
