"""structlog setup.

stdout carries the MCP stdio transport, so every log line goes to stderr.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given level."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    # The mcp SDK logs through stdlib logging; keep it on stderr too.
    logging.basicConfig(level=numeric_level, stream=sys.stderr, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "event"]
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def truncate_text(text: str | None, *, limit: int = 2000) -> str:
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    trimmed = text[:limit]
    hidden = len(text) - limit
    return f"{trimmed}\n\n...[truncated {hidden} chars; original={len(text)}]"
