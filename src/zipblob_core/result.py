"""
zipblob_core/result.py

Tagged outcomes for per-archive and per-item decisions.

Error Handling Convention:
--------------------------
1. **Exceptions** are raised for fatal conditions:
   - ConfigValidationError / YamlParseError: invalid constraints
   - ManifestReadError: standard input cannot be read
   - OutputStreamError / RecordSerializationError: the data stream is broken

2. **Outcomes** (this module) are returned for recoverable decisions:
   - Accepted: an entry passed every check and carries its record
   - SkippedArchive: the whole archive was rejected (oversized, unreadable)
   - SkippedItem: a single entry was rejected (oversized, type mismatch)

3. At the diagnostics boundary, outcomes are serialized with ``to_fields()``:
   - {"status": "zip_skipped", "reason": "size_limit_exceeded", "path": ...}
   - {"status": "item_skipped", "reason": "...", "path": ..., "item": ...}

Usage:
------
    from zipblob_core.result import Accepted, SkippedItem

    def check(entry) -> Outcome:
        if entry.file_size > limit:
            return SkippedItem("size_limit_exceeded", item=entry.name, size=entry.file_size)
        return Accepted(entry)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

STATUS_ACCEPTED = "accepted"
STATUS_ZIP_SKIPPED = "zip_skipped"
STATUS_ITEM_SKIPPED = "item_skipped"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of evaluating one archive or one entry.

    Attributes:
        status: "accepted", "zip_skipped" or "item_skipped"
        value: The accepted value (only meaningful when status="accepted")
        reason: Skip reason tag (only meaningful for skips)
        extras: Additional context (path, item, size, limit, ...)
    """

    status: str
    value: T | None = None
    reason: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def is_accepted(self) -> bool:
        return self.status == STATUS_ACCEPTED

    @property
    def is_archive_skip(self) -> bool:
        return self.status == STATUS_ZIP_SKIPPED

    @property
    def is_item_skip(self) -> bool:
        return self.status == STATUS_ITEM_SKIPPED

    def to_fields(self) -> dict[str, Any]:
        """Serialize to an ordered field mapping for diagnostics."""
        d: dict[str, Any] = {"status": self.status}
        if self.reason:
            d["reason"] = self.reason
        d.update(self.extras)
        return d


def Accepted(value: T, **extras: Any) -> Outcome[T]:  # noqa: N802 - intentional PascalCase
    """Create an accepted outcome."""
    return Outcome(status=STATUS_ACCEPTED, value=value, extras=extras)


def SkippedArchive(reason: str, **extras: Any) -> Outcome[Any]:  # noqa: N802
    """Create an archive-level skip."""
    return Outcome(status=STATUS_ZIP_SKIPPED, reason=reason, extras=extras)


def SkippedItem(reason: str, **extras: Any) -> Outcome[Any]:  # noqa: N802
    """Create an item-level skip."""
    return Outcome(status=STATUS_ITEM_SKIPPED, reason=reason, extras=extras)
