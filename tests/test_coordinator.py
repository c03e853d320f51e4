"""Tests for manifest handling and the per-archive partial-failure policy."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from zipblob_core.constraints import Constraints
from zipblob_core.coordinator import process_archive, read_manifest, run
from zipblob_core.diagnostics import DiagnosticsReporter
from zipblob_core.emitter import JsonlEmitter
from zipblob_core.exceptions import ManifestReadError, OutputStreamError


class ExplodingStream(io.BytesIO):
    def readline(self, size: int | None = -1) -> bytes:  # type: ignore[override]
        raise OSError("stdin gone")


class BrokenOutput(io.BytesIO):
    def write(self, data: bytes) -> int:  # type: ignore[override]
        raise BrokenPipeError("closed")


@pytest.fixture
def diag() -> tuple[DiagnosticsReporter, io.StringIO]:
    stream = io.StringIO()
    return DiagnosticsReporter(verbose=True, level="INFO", stream=stream), stream


def _statuses(stream: io.StringIO) -> list[str]:
    return [line.split("\t")[1] for line in stream.getvalue().splitlines()]


class TestReadManifest:
    def test_lines_in_order(self) -> None:
        stream = io.BytesIO(b"/in/b.zip\n/in/a.zip\n/in/c.zip")
        assert list(read_manifest(stream)) == ["/in/b.zip", "/in/a.zip", "/in/c.zip"]

    def test_crlf_and_blank_lines(self) -> None:
        stream = io.BytesIO(b"/in/a.zip\r\n\n   \n/in/b.zip\n")
        assert list(read_manifest(stream)) == ["/in/a.zip", "/in/b.zip"]

    def test_undecodable_bytes_survive(self) -> None:
        (path,) = list(read_manifest(io.BytesIO(b"/in/caf\xe9.zip\n")))
        assert path.encode("utf-8", "surrogateescape") == b"/in/caf\xe9.zip"

    def test_read_failure_is_fatal(self) -> None:
        with pytest.raises(ManifestReadError):
            list(read_manifest(ExplodingStream()))

    def test_lazy(self) -> None:
        it = read_manifest(io.BytesIO(b"/in/a.zip\n"))
        assert next(it) == "/in/a.zip"
        with pytest.raises(StopIteration):
            next(it)


class TestProcessArchive:
    def test_emits_entries_in_directory_order(
        self, make_zip: Callable[..., Path], diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, _ = diag
        path = make_zip("multi.zip", [("b.txt", b"bb"), ("a.txt", b"a")])
        out = io.BytesIO()
        summary = process_archive(str(path), Constraints(), JsonlEmitter(out), reporter)
        assert summary.processed
        assert summary.items_emitted == 2
        assert summary.bytes_emitted == 3
        assert [line.split(b'"')[3] for line in out.getvalue().splitlines()] == [b"b.txt", b"a.txt"]

    def test_oversized_archive_not_opened(
        self, make_zip: Callable[..., Path], diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, stream = diag
        path = make_zip("big.zip", [("a.txt", b"x" * 400)])
        out = io.BytesIO()
        summary = process_archive(str(path), Constraints(zip_size_max=100), JsonlEmitter(out), reporter)
        assert not summary.processed
        assert out.getvalue() == b""
        assert _statuses(stream) == ["status:zip_skipped"]

    def test_corrupt_archive_skipped(
        self, tmp_path: Path, diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, stream = diag
        junk = tmp_path / "junk.zip"
        junk.write_bytes(b"PK\x03\x04 but not really")
        summary = process_archive(str(junk), Constraints(), JsonlEmitter(io.BytesIO()), reporter)
        assert not summary.processed
        assert "reason:read_error" in stream.getvalue()

    def test_item_skip_does_not_stop_archive(
        self, make_zip: Callable[..., Path], diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, stream = diag
        path = make_zip("mixed.zip", [("big.txt", b"x" * 10), ("small.txt", b"ok")])
        out = io.BytesIO()
        summary = process_archive(str(path), Constraints(item_size_max=5), JsonlEmitter(out), reporter)
        assert summary.items_skipped == 1
        assert summary.items_emitted == 1
        assert b"small.txt" in out.getvalue()
        assert b"big.txt" not in out.getvalue()
        assert _statuses(stream) == ["status:item_skipped", "status:zip_done"]

    def test_directory_entries_skipped(
        self, tmp_path: Path, diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, stream = diag
        path = tmp_path / "dirs.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr(zipfile.ZipInfo("sub/"), b"")
            zf.writestr(zipfile.ZipInfo("sub/a.txt"), b"a")
        out = io.BytesIO()
        summary = process_archive(str(path), Constraints(), JsonlEmitter(out), reporter)
        assert summary.items_emitted == 1
        assert "reason:directory_entry" in stream.getvalue()

    def test_entry_failure_keeps_earlier_records(
        self, make_zip: Callable[..., Path], diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, stream = diag
        path = make_zip("crc.zip", [("good.txt", b"good\n"), ("bad.txt", b"bad!\n"), ("late.txt", b"late\n")])
        path.write_bytes(path.read_bytes().replace(b"bad!\n", b"BAD!\n", 1))
        out = io.BytesIO()
        summary = process_archive(str(path), Constraints(), JsonlEmitter(out), reporter)
        assert summary.failed
        assert summary.items_emitted == 1
        assert b"good.txt" in out.getvalue()
        assert b"late.txt" not in out.getvalue()
        assert _statuses(stream) == ["status:zip_processing_failed"]

    def test_output_failure_propagates(
        self, make_zip: Callable[..., Path], diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, _ = diag
        path = make_zip("a.zip", [("a.txt", b"a")])
        with pytest.raises(OutputStreamError):
            process_archive(str(path), Constraints(), JsonlEmitter(BrokenOutput()), reporter)


class TestRun:
    def test_resilience_and_order(
        self,
        hello_zips: dict[str, Path],
        tmp_path: Path,
        diag: tuple[DiagnosticsReporter, io.StringIO],
    ) -> None:
        reporter, stream = diag
        junk = tmp_path / "junk.zip"
        junk.write_bytes(b"junk")
        paths = [
            str(hello_zips["hw0"]),
            str(tmp_path / "missing.zip"),
            str(junk),
            str(hello_zips["hw1"]),
            str(hello_zips["hw2"]),
        ]
        out = io.BytesIO()
        summary = run(paths, Constraints(), JsonlEmitter(out), reporter)
        assert summary.archives_seen == 5
        assert summary.archives_processed == 3
        assert summary.archives_skipped == 2
        assert summary.items_emitted == 4
        names = [line.split(b'"')[3] for line in out.getvalue().splitlines()]
        assert names == [b"hw00.txt", b"hw10.txt", b"hw11.txt", b"hw20.txt"]
        assert _statuses(stream)[-1] == "status:run_done"

    def test_repeatable(self, hello_zips: dict[str, Path], diag: tuple[DiagnosticsReporter, io.StringIO]) -> None:
        reporter, _ = diag
        paths = [str(p) for p in hello_zips.values()]
        first, second = io.BytesIO(), io.BytesIO()
        run(paths, Constraints(), JsonlEmitter(first), reporter)
        run(paths, Constraints(), JsonlEmitter(second), reporter)
        assert first.getvalue() == second.getvalue()

    def test_empty_manifest(self, diag: tuple[DiagnosticsReporter, io.StringIO]) -> None:
        reporter, _ = diag
        out = io.BytesIO()
        summary = run([], Constraints(), JsonlEmitter(out), reporter)
        assert summary.archives_seen == 0
        assert out.getvalue() == b""

    def test_nul_path_does_not_stop_run(
        self, hello_zips: dict[str, Path], diag: tuple[DiagnosticsReporter, io.StringIO]
    ) -> None:
        reporter, stream = diag
        manifest = io.BytesIO(b"/in/bad\x00name.zip\n" + str(hello_zips["hw0"]).encode() + b"\n")
        out = io.BytesIO()
        summary = run(read_manifest(manifest), Constraints(), JsonlEmitter(out), reporter)
        assert summary.archives_skipped == 1
        assert summary.items_emitted == 1
        assert b"hw00.txt" in out.getvalue()
        assert _statuses(stream)[0] == "status:zip_skipped"
