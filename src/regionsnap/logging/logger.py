"""Logging setup for regionsnap.

Library modules emit structlog events; ``setup_logging`` renders them through
the stdlib root logger so a host application can add its own handlers.
Nothing is configured at import time: the first ``get_logger`` call applies
the logging fields of :class:`~regionsnap.config.RegionSnapSettings`.
"""

import logging
import os
import sys
import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, cast

import structlog

from ..config import get_settings
from ..exceptions import ConfigurationError

DISABLE_ENV_VAR = "REGIONSNAP_DISABLE_CONSOLE_LOGGING"


def _output_disabled() -> bool:
    return os.getenv(DISABLE_ENV_VAR) == "1"


def _processor_chain(structured: bool, add_timestamp: bool, colors: bool) -> list[Any]:
    chain: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain.append(structlog.processors.StackInfoRenderer())
    chain.append(structlog.processors.format_exc_info)

    if structured:
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=colors))
    return chain


def _build_handlers(console: bool, log_file: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if console:
        # stdout carries CLI results
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    structured: bool = True,
    console: bool = True,
    add_timestamp: bool = True,
    colorize: bool = True,
) -> None:
    """Route regionsnap log events to stderr and/or a file.

    Args:
        level: Minimum level name, e.g. ``"DEBUG"`` or ``"WARNING"``
        log_file: File to append to; parent directories are created
        structured: Render each event as one JSON object instead of key=value text
        console: Write to stderr
        add_timestamp: Stamp events with an ISO timestamp
        colorize: Use ANSI colours for console text output

    With ``REGIONSNAP_DISABLE_CONSOLE_LOGGING=1`` both outputs are dropped and
    the root logger only receives a ``NullHandler``.
    """
    if _output_disabled():
        console, log_file = False, None

    structlog.configure(
        processors=_processor_chain(structured, add_timestamp, colors=colorize and console),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers = _build_handlers(console, log_file)
    if not handlers:
        handlers = [logging.NullHandler()]
        level = "CRITICAL"

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)


_configured = False


def _configure_from_settings() -> None:
    global _configured

    if _configured:
        return
    _configured = True

    if _output_disabled():
        logging.disable(logging.CRITICAL)
        return

    try:
        settings = get_settings()
        setup_logging(
            level="DEBUG" if settings.debug_mode else settings.log_level,
            log_file=settings.log_file,
            structured=settings.structured_logs,
            colorize=settings.debug_mode,
        )
    except (ConfigurationError, OSError, ValueError):
        # bad settings or unwritable log file
        setup_logging(level="INFO", structured=False)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger, configuring logging on first use."""
    _configure_from_settings()
    return cast(structlog.BoundLogger, structlog.get_logger(name))


class PerformanceLogger:
    """Collects durations per operation and logs each one at debug level."""

    def __init__(self, base_logger: structlog.BoundLogger | None = None) -> None:
        self.logger = base_logger or get_logger(__name__)
        self.metrics: dict[str, list[float]] = defaultdict(list)

    def log_timing(self, operation: str, duration: float, **kwargs) -> None:
        """Record ``duration`` seconds for ``operation``; ``kwargs`` go into the event."""
        self.metrics[operation].append(duration)
        self.logger.debug("performance_timing", operation=operation, duration=duration, **kwargs)

    @contextmanager
    def timed(self, operation: str, **kwargs) -> Iterator[None]:
        """Time the enclosed block. The duration is recorded even if it raises."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.log_timing(operation, time.perf_counter() - started, **kwargs)

    def get_stats(self, operation: str | None = None) -> dict[str, Any]:
        """Summaries keyed by operation, or the summary of one operation.

        An operation that was never timed gives an empty dict.
        """
        if operation is not None:
            durations = self.metrics.get(operation)
            return _summarize(durations) if durations else {}
        return {name: _summarize(durations) for name, durations in self.metrics.items()}


def _summarize(durations: list[float]) -> dict[str, Any]:
    total = sum(durations)
    return {
        "count": len(durations),
        "mean": total / len(durations),
        "min": min(durations),
        "max": max(durations),
        "total": total,
    }
