"""Human-readable skip and progress notices on a stream disjoint from the data."""

from __future__ import annotations

import logging
from typing import IO, Any

from zipblob_core.exceptions import ZipBlobError
from zipblob_core.logging_config import FIELDS_ATTR, configure_logger, resolve_level
from zipblob_core.result import Outcome

PACKAGE_LOGGER = "zipblob_core"
DIAGNOSTICS_LOGGER = "zipblob_core.diagnostics"

STATUS_ZIP_PROCESSING_FAILED = "zip_processing_failed"
STATUS_ZIP_DONE = "zip_done"
STATUS_RUN_DONE = "run_done"
STATUS_FATAL = "fatal"

_SKIP_MESSAGES = {
    "size_limit_exceeded": "oversized",
    "read_error": "unreadable",
    "content_type_mismatch": "type mismatch",
    "directory_entry": "directory entry",
    "encrypted": "encrypted",
}


def _skip_message(scope: str, reason: str | None) -> str:
    label = _SKIP_MESSAGES.get(reason or "", reason or "unknown")
    return f"{scope} skipped: {label}"


class DiagnosticsReporter:
    """Write one line per skip decision, plus optional progress notices.

    Without ``verbose`` only fatal errors get through. With ``verbose`` skip
    lines always show; ``level`` can lower the threshold (INFO adds progress,
    DEBUG adds the package's module loggers) but never raise it above WARNING.
    """

    def __init__(
        self,
        *,
        verbose: bool = False,
        level: str | int | None = "WARNING",
        fmt: str = "ltsv",
        stream: IO[str] | None = None,
        logger_name: str = DIAGNOSTICS_LOGGER,
    ) -> None:
        self.verbose = verbose
        if verbose:
            self.threshold = min(resolve_level(level), logging.WARNING)
        else:
            self.threshold = logging.ERROR
        self.logger = logging.getLogger(logger_name)
        configure_logger(self.logger, level=self.threshold, fmt=fmt, stream=stream)
        configure_logger(logging.getLogger(PACKAGE_LOGGER), level=self.threshold, fmt=fmt, stream=stream)

    def _emit(self, level: int, message: str, fields: dict[str, Any]) -> None:
        self.logger.log(level, message, extra={FIELDS_ATTR: fields})

    def archive_skipped(self, outcome: Outcome[Any]) -> None:
        self._emit(logging.WARNING, _skip_message("archive", outcome.reason), outcome.to_fields())

    def item_skipped(self, outcome: Outcome[Any]) -> None:
        self._emit(logging.WARNING, _skip_message("item", outcome.reason), outcome.to_fields())

    def archive_failed(self, path: str, error: Exception) -> None:
        self._emit(
            logging.WARNING,
            "archive processing failed",
            {"status": STATUS_ZIP_PROCESSING_FAILED, "path": path, "reason": str(error)},
        )

    def progress(self, status: str, **fields: Any) -> None:
        self._emit(logging.INFO, status.replace("_", " "), {"status": status, **fields})

    def fatal(self, error: BaseException) -> None:
        fields: dict[str, Any] = {"status": STATUS_FATAL}
        if isinstance(error, ZipBlobError):
            log_fields = error.as_log_fields()
            fields["code"] = log_fields["error_code"]
            fields["reason"] = log_fields["error_message"]
        else:
            fields["reason"] = str(error)
        self._emit(logging.ERROR, f"fatal: {error}", fields)
