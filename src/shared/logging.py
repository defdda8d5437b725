"""Structured logging setup for the DataForSEO MCP server.

Uses structlog for consistent, machine-parseable log output. Everything is
written to stderr; records from uvicorn and httpx go through the same
processor chain, so credentials are redacted there too.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

# Keys whose values must never reach log output
SENSITIVE_KEYS = {
    "password",
    "authorization",
    "token",
    "secret",
    "api_key",
    "apikey",
    "credential",
    "credentials",
}

# Chatty third-party loggers and the level they are capped at
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def redact_sensitive(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Replace values of sensitive keys with a placeholder, including in nested dicts."""
    return _redact(event_dict)


def _redact(data: dict[str, Any]) -> dict[str, Any]:
    for key, value in data.items():
        if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
            data[key] = "[REDACTED]"
        elif isinstance(value, dict):
            data[key] = _redact(dict(value))
    return data


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON; otherwise, use colored console output
    """
    level = getattr(logging, log_level.upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive,
    ]

    if json_output:
        renderer: Processor = structlog.processors.JSONRenderer()
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        processors = [*shared_processors, renderer]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Standard library records (uvicorn, httpx) share the renderer
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name, cap in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, cap))


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically module name)
        **initial_context: Initial context values to bind to logger
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def bind_context(**context: Any) -> None:
    """Bind request-scoped values (request id, path) to every log line of this task."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
