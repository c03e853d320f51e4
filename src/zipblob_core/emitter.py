"""Write records as newline-delimited JSON, one flushed line per record."""

from __future__ import annotations

import json
from typing import IO, Any

from zipblob_core.blob_builder import Blob
from zipblob_core.exceptions import OutputStreamError, RecordSerializationError

_SEPARATORS = (",", ":")


def serialize_record(record: dict[str, Any]) -> bytes:
    """Encode one record as a compact JSON line.

    Raises:
        RecordSerializationError: the record is not JSON-serializable
    """
    try:
        line = json.dumps(record, ensure_ascii=False, separators=_SEPARATORS, allow_nan=False)
        return (line + "\n").encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise RecordSerializationError(
            f"Cannot serialize record: {exc}",
            context={"name": str(record.get("name", ""))},
        ) from exc


class JsonlEmitter:
    """Single writer for the data stream."""

    def __init__(self, stream: IO[bytes]) -> None:
        self.stream = stream
        self.records_written = 0
        self.bytes_written = 0

    def emit(self, blob: Blob) -> None:
        data = serialize_record(blob.to_dict())
        try:
            self.stream.write(data)
            self.stream.flush()
        except (OSError, ValueError) as exc:
            raise OutputStreamError(
                f"Cannot write to output stream: {exc}",
                context={"records_written": self.records_written},
            ) from exc
        self.records_written += 1
        self.bytes_written += len(data)
