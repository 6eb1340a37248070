"""structlog configuration for the catalog.

Dual renderers over one shared processor chain: coloured console lines for
local work, one JSON object per line in production (``APP_ENV=production``
or ``json_output=True``).  Everything is written to stderr by default, since
the CLI reserves stdout for its JSON results.

stdlib ``logging`` is routed through the same chain, so warnings from
aiosqlite or asyncio look like catalog events.
"""

import logging
import os
import sys
from typing import TextIO

import structlog


def _shared_processors() -> list[structlog.types.Processor]:
    # contextvars first so import_id bindings reach every line of a batch.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _renderer(use_json: bool, stream: TextIO) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON lines even outside production.
        stream: Destination for every log line; defaults to ``sys.stderr``.

    Returns:
        A logger from the new configuration.
    """
    out = stream or sys.stderr
    level = logging.getLevelName(log_level.upper())
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    renderer = _renderer(use_json, out)

    structlog.configure(
        processors=[*_shared_processors(), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_shared_processors(),
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    return structlog.get_logger()
