"""Turn an accepted entry into a self-describing, JSON-ready record."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any

from zipblob_core.archive_reader import ArchiveEntry
from zipblob_core.constraints import Constraints
from zipblob_core.item_validator import declared_content_type

CONTENT_TRANSFER_ENCODING = "base64"


def zip_datetime_to_rfc3339(date_time: tuple[int, int, int, int, int, int]) -> str:
    """Format a DOS timestamp as RFC 3339 UTC.

    An impossible date falls back to 1970-01-01 and an impossible time to
    00:00:00, each independently.
    """
    year, month, day, hour, minute, second = date_time
    try:
        d = date(year, month, day)
    except ValueError:
        d = date(1970, 1, 1)
    try:
        t = time(hour, minute, second)
    except ValueError:
        t = time(0, 0, 0)
    return datetime.combine(d, t, tzinfo=timezone.utc).isoformat()


@dataclass(frozen=True)
class BlobMetadata:
    zip_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"ZipName": self.zip_name}


@dataclass(frozen=True)
class Blob:
    name: str
    content_type: str
    content_encoding: str
    content_transfer_encoding: str
    body: str
    metadata: BlobMetadata
    content_length: int
    last_modified: str

    def to_dict(self) -> dict[str, Any]:
        # Key order is part of the output format.
        return {
            "name": self.name,
            "content_type": self.content_type,
            "content_encoding": self.content_encoding,
            "content_transfer_encoding": self.content_transfer_encoding,
            "body": self.body,
            "metadata": self.metadata.to_dict(),
            "content_length": self.content_length,
            "last_modified": self.last_modified,
        }


def build_blob(
    entry: ArchiveEntry,
    payload: bytes,
    *,
    zip_name: str,
    constraints: Constraints,
) -> Blob:
    return Blob(
        name=entry.name,
        content_type=declared_content_type(entry, constraints),
        content_encoding=constraints.item_content_encoding,
        content_transfer_encoding=CONTENT_TRANSFER_ENCODING,
        body=base64.b64encode(payload).decode("ascii"),
        metadata=BlobMetadata(zip_name=zip_name),
        content_length=len(payload),
        last_modified=zip_datetime_to_rfc3339(entry.date_time),
    )
