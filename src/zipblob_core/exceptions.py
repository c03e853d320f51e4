from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class ZipBlobError(Exception):
    message: str
    code: str = "zipblob_error"
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, message: str, *, code: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.context = dict(context or {})

    def __str__(self) -> str:
        return self.message

    def as_log_fields(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "error_message": self.message,
            "error_context": self.context,
        }


class ConfigValidationError(ZipBlobError):
    code = "config_validation_error"


class YamlParseError(ZipBlobError):
    code = "yaml_parse_error"


class ManifestReadError(ZipBlobError):
    code = "manifest_read_error"


class OutputStreamError(ZipBlobError):
    code = "output_stream_error"


class RecordSerializationError(ZipBlobError):
    code = "record_serialization_error"


class ArchiveError(ZipBlobError):
    """Base for failures confined to a single archive."""

    code = "archive_error"


class CorruptArchiveError(ArchiveError):
    """Raised when an archive's directory cannot be opened or parsed."""

    code = "corrupt_archive"


class EntryReadError(ArchiveError):
    """Raised when an entry's data cannot be decoded after the archive opened."""

    code = "entry_read_error"
