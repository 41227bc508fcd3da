"""Main entry point for the RabbitMQ firehose bridge."""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from firehose.api import create_fastapi_app
from firehose.app import Application
from firehose.config import Settings
from firehose.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    # Get configuration from environment
    settings = Settings.from_env()
    setup_logging(
        log_level=settings.log_level,
        log_file=str(settings.log_file),
        broker_log_level=settings.broker_log_level,
    )

    # Create FastAPI app
    app = create_fastapi_app(Application(settings))

    logger.info(
        "RabbitMQ Firehose Visualizer Server running on port %d", settings.api_port
    )

    # Run with uvicorn
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
