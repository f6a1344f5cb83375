"""Structured logging for Docchain.

Events are emitted through structlog and written by stdlib logging handlers,
either to a stream or to a size-rotated file, rendered as JSON lines or as
colourised console output. Two pieces of context are attached automatically:
the request correlation ID set by the web middleware, and the project and
document type of the generation run in progress.

Example usage:
    >>> from docchain.config import LoggingConfig
    >>> from docchain.logging import setup_logging, get_logger, bind_generation_context
    >>>
    >>> setup_logging(LoggingConfig(level="INFO", format="console"))
    >>> logger = get_logger(__name__)
    >>> with bind_generation_context(project_id="9b2c...", document_type="prd"):
    ...     logger.info("generation_started", model="gemini-2.0-flash")
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import logging.handlers
import sys
from collections.abc import Iterator
from typing import Any, TextIO

import structlog

from docchain.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor stamping the active correlation ID onto each event."""
    current = _correlation_id.get()
    if current is not None:
        event_dict.setdefault("correlation_id", current)
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID for current context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


@contextlib.contextmanager
def bind_generation_context(project_id: str, document_type: str) -> Iterator[None]:
    """Bind project and document type to all logs emitted inside the block.

    Previous bindings are restored on exit, so nested blocks (a whole-project
    run wrapping per-document runs) log the innermost document type.

    Args:
        project_id: Project identifier to bind
        document_type: Document type value (e.g. "technical-spec") to bind
    """
    with structlog.contextvars.bound_contextvars(
        project_id=project_id, document_type=document_type
    ):
        yield


def setup_logging(config: LoggingConfig, stream: TextIO | None = None) -> None:
    """Configure structlog with the given configuration.

    Args:
        config: Logging configuration from DocchainConfig
        stream: Stream for console output when no log file is configured
                (defaults to stdout)
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            filename=config.file,
            maxBytes=config.rotation_size_mb * 1024 * 1024,
            backupCount=config.retention_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(stream or sys.stdout)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if config.format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
