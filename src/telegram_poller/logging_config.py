"""
Structured logging setup for the Telegram poller.
"""

import logging

import structlog


def setup_logging(level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure stdlib logging and the structlog processor chain.

    Args:
        level: Standard log level name
        log_format: ``json`` for machine-readable output, anything else
            for the console renderer
    """
    logging.basicConfig(level=getattr(logging, level.upper()), format="%(message)s")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
