"""Structured logging for murmur.

Uses structlog with stdlib logging as the backend. Two formats:
- console: human-readable for development (default)
- json: structured for production

Backend libraries (transformers, onnxruntime) log through stdlib logging;
`capture_backend_logs` routes their records into a LogJournal.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import structlog

from murmur._types import LogLevel

if TYPE_CHECKING:
    from collections.abc import Iterable

    from murmur.journal import LogJournal

_configured = False


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
) -> None:
    """Configure structured logging for the runtime.

    Idempotent — subsequent calls are ignored.

    Args:
        log_format: "json" or "console". Default via MURMUR_LOG_FORMAT env or "console".
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default via MURMUR_LOG_LEVEL env or "INFO".
    """
    global _configured
    if _configured:
        return

    resolved_format = log_format or os.environ.get("MURMUR_LOG_FORMAT", "console")
    resolved_level = level or os.environ.get("MURMUR_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if resolved_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, resolved_level.upper(), logging.INFO))

    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a logger with component context.

    Args:
        component: Component name (e.g., "engine.lifecycle", "preprocessing.validation").

    Returns:
        BoundLogger with the component field bound.
    """
    configure_logging()
    return structlog.get_logger().bind(component=component)  # type: ignore[no-any-return]


DEFAULT_BACKEND_LOGGERS: tuple[str, ...] = ("transformers", "onnxruntime")


class JournalHandler(logging.Handler):
    """stdlib handler that appends records to a LogJournal.

    Records are stored with ``mirror=False``: they already went through
    stdlib logging, so they are not re-emitted.
    """

    def __init__(self, journal: LogJournal, level: int = logging.WARNING) -> None:
        super().__init__(level=level)
        self._journal = journal

    @property
    def journal(self) -> LogJournal:
        return self._journal

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return

        if record.levelno >= logging.ERROR:
            severity = LogLevel.ERROR
        elif record.levelno >= logging.WARNING:
            severity = LogLevel.WARN
        else:
            severity = LogLevel.INFO
        self._journal.record(severity, f"{record.name}: {message}", mirror=False)


def capture_backend_logs(
    journal: LogJournal,
    logger_names: Iterable[str] = DEFAULT_BACKEND_LOGGERS,
    level: int = logging.WARNING,
) -> JournalHandler:
    """Attach a JournalHandler feeding ``journal`` to each named backend logger.

    At most one handler per journal: a handler already feeding ``journal`` on
    any of the loggers is reused instead of stacking a new one. Returns the
    handler so callers can detach it with ``release_backend_logs``.
    """
    names = tuple(logger_names)
    handler = _find_journal_handler(journal, names)
    if handler is None:
        handler = JournalHandler(journal, level=level)
    for name in names:
        logging.getLogger(name).addHandler(handler)
    return handler


def _find_journal_handler(journal: LogJournal, logger_names: Iterable[str]) -> JournalHandler | None:
    for name in logger_names:
        for existing in logging.getLogger(name).handlers:
            if isinstance(existing, JournalHandler) and existing.journal is journal:
                return existing
    return None


def release_backend_logs(
    handler: JournalHandler,
    logger_names: Iterable[str] = DEFAULT_BACKEND_LOGGERS,
) -> None:
    for name in logger_names:
        logging.getLogger(name).removeHandler(handler)
