"""structlog wiring for the sync process.

Log records go to stderr so that stdout stays free for cron. Third-party
loggers are routed through the same renderer as our own events.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from .config import LoggingConfig

# Libraries that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(config: LoggingConfig | None = None, *, stream: TextIO | None = None) -> None:
    """Configure structlog and the stdlib root logger from *config*.

    Calling it again replaces the previous setup, which lets the entry
    point log with environment settings before the config file is read.
    """
    config = config or LoggingConfig()

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(config.json_output),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(config.level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
