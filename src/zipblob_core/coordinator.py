"""
zipblob_core/coordinator.py

Drive the manifest through guard, reader, validator, builder and emitter.

Archives are processed strictly one at a time in manifest order, entries in
central-directory order. Archive- and item-level problems become tagged
outcomes plus a diagnostic; only ``ZipBlobError`` subclasses that are not
``ArchiveError`` (manifest, output stream, serialization, config) escape.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import IO

from zipblob_core.archive_guard import REASON_READ_ERROR, check_archive_size
from zipblob_core.archive_reader import ZipArchiveReader
from zipblob_core.blob_builder import build_blob
from zipblob_core.constraints import Constraints
from zipblob_core.diagnostics import STATUS_RUN_DONE, STATUS_ZIP_DONE, DiagnosticsReporter
from zipblob_core.emitter import JsonlEmitter
from zipblob_core.exceptions import CorruptArchiveError, EntryReadError, ManifestReadError
from zipblob_core.item_validator import validate_item, validate_payload
from zipblob_core.logging_config import LogContext
from zipblob_core.result import SkippedArchive
from zipblob_core.utils import decode_path_line, display_path

logger = logging.getLogger(__name__)


@dataclass
class ArchiveSummary:
    path: str
    processed: bool = False
    failed: bool = False
    items_emitted: int = 0
    items_skipped: int = 0
    bytes_emitted: int = 0


@dataclass
class RunSummary:
    archives_seen: int = 0
    archives_processed: int = 0
    archives_skipped: int = 0
    archives_failed: int = 0
    items_emitted: int = 0
    items_skipped: int = 0
    bytes_emitted: int = 0

    def add(self, archive: ArchiveSummary) -> None:
        self.archives_seen += 1
        if archive.processed:
            self.archives_processed += 1
        else:
            self.archives_skipped += 1
        if archive.failed:
            self.archives_failed += 1
        self.items_emitted += archive.items_emitted
        self.items_skipped += archive.items_skipped
        self.bytes_emitted += archive.bytes_emitted

    def to_fields(self) -> dict[str, int]:
        return {
            "archives_seen": self.archives_seen,
            "archives_processed": self.archives_processed,
            "archives_skipped": self.archives_skipped,
            "archives_failed": self.archives_failed,
            "items_emitted": self.items_emitted,
            "items_skipped": self.items_skipped,
            "bytes_emitted": self.bytes_emitted,
        }


def read_manifest(stream: IO[bytes]) -> Iterator[str]:
    """Yield archive paths from a newline-delimited byte stream, skipping blank lines.

    Raises:
        ManifestReadError: the stream cannot be read
    """
    line_no = 0
    while True:
        try:
            raw = stream.readline()
        except (OSError, ValueError) as exc:
            raise ManifestReadError(
                f"Cannot read manifest: {exc}",
                context={"line": line_no + 1},
            ) from exc
        if not raw:
            return
        line_no += 1
        path = decode_path_line(raw)
        if path.strip():
            yield path


def process_archive(
    path: str,
    constraints: Constraints,
    emitter: JsonlEmitter,
    reporter: DiagnosticsReporter,
) -> ArchiveSummary:
    shown = display_path(path)
    summary = ArchiveSummary(path=shown)

    guard = check_archive_size(path, constraints.zip_size_max)
    if not guard.is_accepted:
        reporter.archive_skipped(guard)
        return summary

    try:
        with ZipArchiveReader(path) as reader:
            summary.processed = True
            for entry in reader.entries():
                decision = validate_item(entry, constraints, path=shown)
                if not decision.is_accepted:
                    summary.items_skipped += 1
                    reporter.item_skipped(decision)
                    continue
                payload = reader.read_entry(entry, constraints.item_size_max)
                checked = validate_payload(entry, payload, constraints, path=shown)
                if not checked.is_accepted:
                    summary.items_skipped += 1
                    reporter.item_skipped(checked)
                    continue
                blob = build_blob(entry, checked.value or b"", zip_name=shown, constraints=constraints)
                emitter.emit(blob)
                summary.items_emitted += 1
                summary.bytes_emitted += blob.content_length
    except CorruptArchiveError as exc:
        reporter.archive_skipped(SkippedArchive(REASON_READ_ERROR, path=shown, error=str(exc)))
        summary.processed = False
        return summary
    except EntryReadError as exc:
        summary.failed = True
        reporter.archive_failed(shown, exc)
        return summary

    reporter.progress(
        STATUS_ZIP_DONE,
        path=shown,
        items_emitted=summary.items_emitted,
        items_skipped=summary.items_skipped,
    )
    return summary


def run(
    paths: Iterable[str],
    constraints: Constraints,
    emitter: JsonlEmitter,
    reporter: DiagnosticsReporter,
) -> RunSummary:
    """Process every manifest path in order; never stops on a single archive."""
    summary = RunSummary()
    for path in paths:
        with LogContext(archive=display_path(path)):
            summary.add(process_archive(path, constraints, emitter, reporter))
    logger.debug("Run complete: %s", summary.to_fields())
    reporter.progress(STATUS_RUN_DONE, **summary.to_fields())
    return summary
