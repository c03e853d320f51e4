"""Lazy, forward-only traversal of a ZIP archive's entries.

The central directory is parsed once when the archive is opened; entry
payloads are decompressed only when asked for, through a bounded streaming
read, so peak memory stays near one entry's size plus the directory.
"""

from __future__ import annotations

import logging
import lzma
import zipfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from types import TracebackType

from zipblob_core.exceptions import CorruptArchiveError, EntryReadError
from zipblob_core.utils import display_path

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024

_FLAG_ENCRYPTED = 0x1
_FLAG_UTF8 = 0x800

_ENTRY_READ_ERRORS = (
    zipfile.BadZipFile,
    NotImplementedError,
    zlib.error,
    lzma.LZMAError,
    EOFError,
    OSError,
    ValueError,
)


def _entry_name(info: zipfile.ZipInfo) -> str:
    # zipfile decodes names without the UTF-8 flag as cp437; recover the raw
    # bytes and decode them as (lossy) UTF-8 instead.
    if info.flag_bits & _FLAG_UTF8:
        return info.filename
    try:
        raw = info.filename.encode("cp437")
    except UnicodeEncodeError:
        return info.filename
    return raw.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ArchiveEntry:
    """One named payload inside an archive, in central-directory order."""

    name: str
    file_size: int
    compressed_size: int
    date_time: tuple[int, int, int, int, int, int]
    content_type: str | None = None
    is_dir: bool = False
    is_encrypted: bool = False
    info: zipfile.ZipInfo | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_zipinfo(cls, info: zipfile.ZipInfo) -> ArchiveEntry:
        return cls(
            name=_entry_name(info),
            file_size=info.file_size,
            compressed_size=info.compress_size,
            date_time=tuple(info.date_time),  # type: ignore[arg-type]
            is_dir=info.is_dir(),
            is_encrypted=bool(info.flag_bits & _FLAG_ENCRYPTED),
            info=info,
        )


class ZipArchiveReader:
    """Open a ZIP archive and yield its entries lazily.

    Usage::

        with ZipArchiveReader(path) as reader:
            for entry in reader.entries():
                data = reader.read_entry(entry, limit)
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._zf: zipfile.ZipFile | None = None

    def __enter__(self) -> ZipArchiveReader:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def open(self) -> None:
        """Parse the central directory.

        Raises:
            CorruptArchiveError: bad magic, truncated directory, unreadable file
        """
        try:
            self._zf = zipfile.ZipFile(self.path, "r")
        except (zipfile.BadZipFile, OSError, ValueError, EOFError) as exc:
            raise CorruptArchiveError(
                f"Cannot open archive {display_path(self.path)}: {exc}",
                context={"path": display_path(self.path), "error": str(exc)},
            ) from exc
        logger.debug("Opened archive: path=%s entries=%d", display_path(self.path), len(self._zf.infolist()))

    def close(self) -> None:
        if self._zf is not None:
            self._zf.close()
            self._zf = None

    def _require_open(self) -> zipfile.ZipFile:
        if self._zf is None:
            raise RuntimeError("archive is not open")
        return self._zf

    def entries(self) -> Iterator[ArchiveEntry]:
        zf = self._require_open()
        for info in zf.infolist():
            yield ArchiveEntry.from_zipinfo(info)

    def read_entry(self, entry: ArchiveEntry, limit: int) -> bytes:
        """Decompress ``entry`` and return at most ``limit + 1`` bytes.

        A result longer than ``limit`` means the entry expanded beyond the
        ceiling; the caller rejects it without the rest ever being inflated.

        Raises:
            EntryReadError: CRC mismatch, unsupported method, truncated data
        """
        zf = self._require_open()
        if entry.info is None:
            raise EntryReadError(
                f"Entry {entry.name} does not belong to an open archive",
                context={"path": display_path(self.path), "item": entry.name},
            )
        buf = bytearray()
        try:
            with zf.open(entry.info) as src:
                while len(buf) <= limit:
                    chunk = src.read(min(READ_CHUNK_BYTES, limit + 1 - len(buf)))
                    if not chunk:
                        break
                    buf.extend(chunk)
        except _ENTRY_READ_ERRORS as exc:
            raise EntryReadError(
                str(exc),
                context={"path": display_path(self.path), "item": entry.name},
            ) from exc
        return bytes(buf)
