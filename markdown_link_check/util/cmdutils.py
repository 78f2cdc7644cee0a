"""Utilities for build commandline applications."""

import logging
import sys
from typing import Any, Dict

import structlog

EXTERNAL_LOGGERS = {
    "requests",
    "urllib3",
}


# Console renderer for structured logging
def renderer(_logger: logging.Logger, _name: str, eventdict: Dict[Any, Any]) -> str:
    event = eventdict.pop("event", "")
    if not eventdict:
        return "{}".format(event)
    extras = " ".join("{}={}".format(key, value) for key, value in sorted(eventdict.items()))
    return "{} {}".format(event, extras)


def configure_structlog() -> None:
    """Route structlog through the standard logging module with the plain console renderer."""
    structlog.configure(
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
        processors=[
            structlog.stdlib.filter_by_level,
            renderer,
        ],
    )


def enable_logging(verbose: bool) -> None:
    """
    Enable logging for execution.

    :param verbose: Should verbose logging be enabled.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="[%(asctime)s - %(name)s - %(levelname)s] %(message)s",
        level=level,
        stream=sys.stdout,
    )
    configure_structlog()
    for log_name in EXTERNAL_LOGGERS:
        logging.getLogger(log_name).setLevel(logging.WARNING)
