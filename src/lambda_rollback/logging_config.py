"""
lambda_rollback.logging_config — structlog setup for the rollback CLI.

Library modules only call structlog.get_logger(); the process entry point
decides rendering and level.  Output is one JSON object per line on stdout.
"""

from __future__ import annotations

import logging
import sys

import structlog

_configured = False


def configure_logging(level: str = "INFO") -> None:
    global _configured
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise RuntimeError(f"Unknown log level: {level!r}")
    logging.getLogger().setLevel(numeric_level)
    if _configured:
        return
    logging.basicConfig(level=numeric_level, format="%(message)s", stream=sys.stdout)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True
