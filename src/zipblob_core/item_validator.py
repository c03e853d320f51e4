"""Per-entry accept/reject decisions.

Rules run in order and the first failing rule names the skip reason:

1. the entry is a directory (no payload)
2. declared uncompressed size above ``item_size_max``
3. declared content type differs from ``item_content_type`` (exact match)
4. the entry is encrypted and cannot be read

After decompression, ``validate_payload`` re-checks the real byte count
and applies the configured content encoding.
"""

from __future__ import annotations

from zipblob_core.archive_reader import ArchiveEntry
from zipblob_core.constraints import Constraints, apply_content_encoding
from zipblob_core.result import Accepted, Outcome, SkippedItem

REASON_DIRECTORY = "directory_entry"
REASON_SIZE_LIMIT = "size_limit_exceeded"
REASON_TYPE_MISMATCH = "content_type_mismatch"
REASON_ENCRYPTED = "encrypted"


def declared_content_type(entry: ArchiveEntry, constraints: Constraints) -> str:
    """ZIP carries no content type, so an unspecified one takes the expected value."""
    if entry.content_type is None:
        return constraints.item_content_type
    return entry.content_type


def validate_item(entry: ArchiveEntry, constraints: Constraints, *, path: str) -> Outcome[ArchiveEntry]:
    if entry.is_dir:
        return SkippedItem(REASON_DIRECTORY, path=path, item=entry.name)
    if entry.file_size > constraints.item_size_max:
        return SkippedItem(
            REASON_SIZE_LIMIT,
            path=path,
            item=entry.name,
            size=entry.file_size,
            limit=constraints.item_size_max,
        )
    content_type = declared_content_type(entry, constraints)
    if content_type != constraints.item_content_type:
        return SkippedItem(
            REASON_TYPE_MISMATCH,
            path=path,
            item=entry.name,
            content_type=content_type,
            expected=constraints.item_content_type,
        )
    if entry.is_encrypted:
        return SkippedItem(REASON_ENCRYPTED, path=path, item=entry.name)
    return Accepted(entry)


def validate_payload(
    entry: ArchiveEntry,
    payload: bytes,
    constraints: Constraints,
    *,
    path: str,
) -> Outcome[bytes]:
    """Check the decompressed bytes, which may disagree with the declared size."""
    if len(payload) > constraints.item_size_max:
        return SkippedItem(
            REASON_SIZE_LIMIT,
            path=path,
            item=entry.name,
            size=len(payload),
            declared_size=entry.file_size,
            limit=constraints.item_size_max,
        )
    return Accepted(apply_content_encoding(payload, constraints.item_content_encoding))
