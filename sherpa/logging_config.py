"""
Structured logging for Sherpa, built on structlog wrapping stdlib.

Console output for humans, JSON lines when SHERPA_LOG_FORMAT=json. Everything
goes to stderr: stdout belongs to the protocol layer that embeds us.

The learning engine binds the current user and session ids into the
structlog context, so every event logged while a session is live carries
them without each call site passing them along.

Usage:
    from sherpa.logging_config import setup_logging, get_logger
    setup_logging()
    logger = get_logger(__name__)
    logger.info("hint_emitted", hint_type="prevention")
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

_configured = False


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    global _configured

    if level is None:
        level = os.environ.get("SHERPA_LOG_LEVEL", "WARNING")

    if json_output is None:
        json_output = os.environ.get("SHERPA_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    sherpa_logger = logging.getLogger("sherpa")
    sherpa_logger.handlers.clear()
    sherpa_logger.addHandler(handler)
    sherpa_logger.setLevel(numeric_level)
    sherpa_logger.propagate = False

    _configured = True


def is_configured() -> bool:
    return _configured


def bind_session(user_id: str, session_id: str) -> None:
    """Attach user/session ids to every subsequent log event in this context."""
    structlog.contextvars.bind_contextvars(user_id=user_id, session_id=session_id)


def clear_session() -> None:
    structlog.contextvars.unbind_contextvars("user_id", "session_id")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["bind_session", "clear_session", "get_logger", "is_configured", "setup_logging"]
