from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from typing import IO, Any

FIELDS_ATTR = "fields"

_LTSV_LEVELS = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}

# Context variables for structured logging
_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "log_context", default=None
)


def get_log_context() -> dict[str, Any]:
    """Get the current logging context."""
    ctx = _log_context.get()
    return ctx.copy() if ctx else {}


class LogContext:
    """Context manager for temporary log context."""

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self.token: contextvars.Token | None = None

    def __enter__(self) -> LogContext:
        current = get_log_context()
        current.update(self.kwargs)
        self.token = _log_context.set(current)
        return self

    def __exit__(self, *args: Any) -> None:
        if self.token is not None:
            _log_context.reset(self.token)


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = getattr(record, FIELDS_ATTR, None)
    return dict(fields) if isinstance(fields, dict) else {}


def _ltsv_value(value: Any) -> str:
    # One event per line: tabs and newlines would break the framing.
    text = str(value)
    return text.replace("\t", " ").replace("\r", " ").replace("\n", " ")


class LtsvFormatter(logging.Formatter):
    """Render ``level:warn<TAB>status:...<TAB>key:value`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        level = _LTSV_LEVELS.get(record.levelno, record.levelname.lower())
        parts = [f"level:{level}"]
        fields = record_fields(record)
        if not fields:
            fields = {"message": record.getMessage()}
        for key, value in fields.items():
            parts.append(f"{key}:{_ltsv_value(value)}")
        if record.exc_info:
            parts.append(f"exc_info:{_ltsv_value(self.formatException(record.exc_info))}")
        return "\t".join(parts)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        fields = record_fields(record)
        if fields:
            formatted = f"{formatted} | {json.dumps(fields, sort_keys=True, ensure_ascii=False)}"
        return formatted


class JsonFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__()
        self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = record_fields(record)
        if fields:
            payload["fields"] = fields

        # Include structured context
        context = get_log_context()
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


LOG_FORMATS = ("ltsv", "text", "json")


def build_formatter(fmt: str = "ltsv") -> logging.Formatter:
    fmt = fmt.lower()
    if fmt == "json":
        return JsonFormatter()
    if fmt == "text":
        return TextFormatter()
    return LtsvFormatter()


def resolve_level(level: str | int | None, default: int = logging.WARNING) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        return default
    return logging._nameToLevel.get(str(level).upper(), default)


def configure_logger(
    logger: logging.Logger,
    *,
    level: str | int | None = None,
    fmt: str = "ltsv",
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach a single stderr handler to ``logger``, replacing earlier ones."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(build_formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    return handler


def add_logging_args(parser: Any) -> None:
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Diagnostics threshold when --verbose is set (default: WARNING; INFO adds progress notices)",
    )
    parser.add_argument(
        "--log-format",
        default="ltsv",
        choices=list(LOG_FORMATS),
        help="Diagnostics format (default: ltsv)",
    )
