"""
Run the kwkhtmltopdf service with uvicorn.

Usage:
    python -m kwkhtmltopdf_service
"""

import logging

import uvicorn

from .app import app
from .config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)
    logger.info(f"kwkhtmltopdf server listening on port {settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=False,  # AccessLogMiddleware logs requests, skipping /status
    )


if __name__ == "__main__":
    main()
