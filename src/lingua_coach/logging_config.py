"""structlog configuration shared by the API server and the bot."""

import logging
import os

import structlog


def configure_logging(production: bool | None = None) -> None:
    """Configure structlog based on environment.

    Args:
        production: Force JSON output. Defaults to ``ENV == "production"``.
    """
    if production is None:
        production = os.getenv("ENV", "development").lower() == "production"

    if production:
        # Production: JSON format for machine parsing
        renderer = structlog.processors.JSONRenderer()
        level = logging.INFO
    else:
        # Development: console format for human readability
        renderer = structlog.dev.ConsoleRenderer()
        level = logging.DEBUG

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
