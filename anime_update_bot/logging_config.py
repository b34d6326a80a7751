"""JSON log output shared by every Anime Update Bot component.

Each record becomes one JSON line on stdout. Components log through an
``ExecutionLogger`` so every line carries the cycle's execution id and the
component name, which is enough to follow one poll cycle through
``docker logs`` with ``jq``.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

ROOT_LOGGER_NAME = "anime_update_bot"


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in ("execution_id", "component", *ExecutionLogger.PROMOTED_KEYS):
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        context = getattr(record, "context", None)
        if context:
            log_entry["context"] = context

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Component logger bound to one execution id.

    Keyword arguments given to the log methods end up in the ``context``
    object of the JSON line, except ``item_title`` and ``metrics`` which
    get their own top-level keys.
    """

    PROMOTED_KEYS = ("item_title", "metrics")

    def __init__(self, execution_id: str, component: str = "main"):
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None

    def _log_with_context(
        self, level: int, message: str, exc_info: bool = False, **kwargs
    ) -> None:
        extra: dict[str, Any] = {
            "execution_id": self.execution_id,
            "component": self.component,
        }
        for key in self.PROMOTED_KEYS:
            if key in kwargs:
                extra[key] = kwargs.pop(key)
        if kwargs:
            extra["context"] = kwargs
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log_with_context(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Like error(), with the traceback of the exception being handled."""
        self._log_with_context(logging.ERROR, message, exc_info=True, **kwargs)

    def log_execution_start(self, **kwargs) -> None:
        """Mark the start of a cycle and remember when it began."""
        self.start_time = datetime.now(UTC)
        self.info(
            f"Starting {self.component} execution",
            execution_start=self.start_time.isoformat(),
            **kwargs,
        )

    def log_execution_end(self, success: bool = True, **kwargs) -> None:
        """Mark the end of a cycle.

        The duration is only reported when log_execution_start() ran first.
        """
        self.end_time = datetime.now(UTC)
        duration_seconds = (
            (self.end_time - self.start_time).total_seconds() if self.start_time else None
        )

        self.info(
            f"Completed {self.component} execution",
            execution_end=self.end_time.isoformat(),
            execution_duration_seconds=duration_seconds,
            execution_success=success,
            **kwargs,
        )

    def log_item_processing(
        self, item_title: str, action: str, success: bool = True
    ) -> None:
        """Record what happened to one timeline entry; failures log at ERROR."""
        self._log_with_context(
            logging.INFO if success else logging.ERROR,
            f"Item {action}: {item_title}",
            item_title=item_title,
            action=action,
            success=success,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self.info("Cycle metrics", metrics=metrics)


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Send all log output to stdout as JSON lines.

    Unknown level names fall back to INFO. Component loggers live under
    ``anime_update_bot.*`` and inherit the level from the package logger.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)
    # urllib3 connection chatter at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Return a logger for ``component``, minting an execution id if none is given."""
    return ExecutionLogger(execution_id or new_execution_id(), component)


def new_execution_id(prefix: str = "exec") -> str:
    """Timestamp id such as ``exec_20261019_233000_123456``."""
    return f"{prefix}_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
