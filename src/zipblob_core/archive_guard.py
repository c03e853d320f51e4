"""Cheap pre-open check that rejects archives above ``zip_size_max``."""

from __future__ import annotations

import logging
import os
import stat

from zipblob_core.result import Accepted, Outcome, SkippedArchive
from zipblob_core.utils import display_path

logger = logging.getLogger(__name__)

REASON_SIZE_LIMIT = "size_limit_exceeded"
REASON_READ_ERROR = "read_error"


def probe_archive_size(path: str) -> int:
    """Return the byte size of a regular file without opening it.

    Raises:
        OSError: the path cannot be stat'ed or is not a regular file
        ValueError: the path contains a NUL byte
    """
    st = os.stat(path)
    if not stat.S_ISREG(st.st_mode):
        raise OSError(f"not a regular file: {display_path(path)}")
    return st.st_size


def check_archive_size(path: str, zip_size_max: int) -> Outcome[int]:
    """Decide whether ``path`` may be opened; the accepted value is its size."""
    shown = display_path(path)
    try:
        size = probe_archive_size(path)
    except (OSError, ValueError) as exc:
        return SkippedArchive(REASON_READ_ERROR, path=shown, error=str(exc))
    if size > zip_size_max:
        return SkippedArchive(REASON_SIZE_LIMIT, path=shown, size=size, limit=zip_size_max)
    logger.debug("Archive within limit: path=%s size=%d limit=%d", shown, size, zip_size_max)
    return Accepted(size, path=shown)
