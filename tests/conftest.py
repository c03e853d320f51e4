"""
Shared pytest fixtures for zipblob tests.

Provides:
- ZIP archive builders with deterministic timestamps
- In-process and subprocess CLI runners
"""

from __future__ import annotations

import io
import json
import os
import subprocess
import sys
import zipfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if SRC_ROOT.is_dir():
    sys.path.insert(0, str(SRC_ROOT))

REPO_ROOT = Path(__file__).resolve().parents[1]

FIXED_DATE_TIME = (2024, 1, 2, 3, 4, 6)


# =============================================================================
# Archive fixtures
# =============================================================================


def write_zip(
    path: Path,
    entries: list[tuple[str, bytes]],
    *,
    compression: int = zipfile.ZIP_STORED,
    date_time: tuple[int, int, int, int, int, int] = FIXED_DATE_TIME,
) -> Path:
    """Write ``entries`` (name, data) to a ZIP at ``path`` in the given order."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries:
            info = zipfile.ZipInfo(name, date_time=date_time)
            info.compress_type = compression
            zf.writestr(info, data)
    return path


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str, entries: list[tuple[str, bytes]], **kwargs: Any) -> Path:
        return write_zip(tmp_path / name, entries, **kwargs)

    return _make


@pytest.fixture
def hello_zips(make_zip: Callable[..., Path]) -> dict[str, Path]:
    """Three small stored archives holding 5-byte text files."""
    return {
        "hw0": make_zip("hw0.zip", [("hw00.txt", b"hw00\n")]),
        "hw1": make_zip("hw1.zip", [("hw10.txt", b"hw10\n"), ("hw11.txt", b"hw11\n")]),
        "hw2": make_zip("hw2.zip", [("hw20.txt", b"hw20\n")]),
    }


def manifest_bytes(paths: list[Path | str]) -> bytes:
    return b"".join(os.fsencode(str(p)) + b"\n" for p in paths)


# =============================================================================
# CLI runners
# =============================================================================


@dataclass
class CliRun:
    returncode: int
    stdout: bytes
    stderr: str
    records: list[dict[str, Any]] = field(default_factory=list)

    @property
    def diagnostics(self) -> list[dict[str, str]]:
        """Parse LTSV diagnostic lines into dicts."""
        parsed = []
        for line in self.stderr.splitlines():
            if not line.startswith("level:"):
                continue
            parsed.append(dict(part.split(":", 1) for part in line.split("\t")))
        return parsed

    def with_status(self, status: str) -> list[dict[str, str]]:
        return [d for d in self.diagnostics if d.get("status") == status]


def _parse_records(stdout: bytes) -> list[dict[str, Any]]:
    return [json.loads(line) for line in stdout.decode("utf-8").splitlines() if line]


@pytest.fixture
def invoke() -> Callable[..., CliRun]:
    """Run the CLI in-process with byte streams standing in for stdio."""
    from zipblob_core.zb_cli import main

    def _invoke(paths: list[Path | str], args: list[str]) -> CliRun:
        stdin = io.BytesIO(manifest_bytes(paths))
        stdout = io.BytesIO()
        stderr = io.StringIO()
        code = main(args, stdin=stdin, stdout=stdout, stderr=stderr)
        out = stdout.getvalue()
        return CliRun(code, out, stderr.getvalue(), _parse_records(out))

    return _invoke


def _build_env() -> dict[str, str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = f"{REPO_ROOT / 'src'}{os.pathsep}{env.get('PYTHONPATH', '')}".strip(
        os.pathsep
    )
    return env


@pytest.fixture
def run_cli() -> Callable[..., CliRun]:
    """Run ``python -m zipblob_core.zb_cli`` in a subprocess."""

    def _run(paths: list[Path | str], args: list[str], *, timeout: float = 60) -> CliRun:
        result = subprocess.run(
            [sys.executable, "-m", "zipblob_core.zb_cli", *args],
            input=manifest_bytes(paths),
            capture_output=True,
            env=_build_env(),
            cwd=REPO_ROOT,
            timeout=timeout,
        )
        stderr = result.stderr.decode("utf-8", errors="replace")
        return CliRun(result.returncode, result.stdout, stderr, _parse_records(result.stdout))

    return _run


@pytest.fixture
def demo_args() -> list[str]:
    """Flags used by the demonstration runs: text entries, pass-through, verbose."""
    return [
        "--item-content-type",
        "text/plain",
        "--item-content-encoding",
        "identical",
        "--verbose",
    ]
