"""
Structured Logging Configuration with structlog
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog for JSON structured logging

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # The Cassandra driver is chatty at INFO
    logging.getLogger("cassandra").setLevel(max(logging.WARNING, logging.root.level))

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def log_redelivery(
    logger: structlog.stdlib.BoundLogger,
    group: str,
    insertion_id: str,
    success: bool,
    error: Optional[str] = None,
) -> None:
    """
    Log one redelivery attempt (success or failure)

    Args:
        logger: Structlog logger
        group: Listener group the event was redelivered to
        insertion_id: Dead letter being redelivered
        success: Whether the listener processed the event
        error: Error message if failed
    """
    log_data = {
        "event": "redelivery_succeeded" if success else "redelivery_failed",
        "group": group,
        "insertion_id": insertion_id,
        "success": success,
    }

    if error:
        log_data["error"] = error

    if success:
        logger.info(**log_data)
    else:
        logger.warning(**log_data)
