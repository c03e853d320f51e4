#!/usr/bin/env python3
"""Read ZIP paths from stdin and write one JSON blob per accepted entry to stdout."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import IO

from zipblob_core import __version__
from zipblob_core.constraints import (
    DEFAULT_CONTENT_ENCODING,
    DEFAULT_CONTENT_TYPE,
    MAX_ITEM_BYTES_DEFAULT,
    MAX_ZIP_BYTES_DEFAULT,
    Constraints,
    resolve_settings,
)
from zipblob_core.coordinator import read_manifest, run
from zipblob_core.diagnostics import DiagnosticsReporter
from zipblob_core.emitter import JsonlEmitter
from zipblob_core.exceptions import ManifestReadError, OutputStreamError, ZipBlobError
from zipblob_core.logging_config import add_logging_args


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zipblobs",
        description="Converts zip archives into a stream of JSON blobs.",
        epilog=(
            "Reads zip filenames from stdin (one per line), and for each file inside "
            "the zips, outputs a JSON blob. The blob contains metadata and "
            "base64-encoded content."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--zip-size-max",
        type=int,
        default=None,
        help=f"Max size in bytes for each zip file (skipped if exceeded; default: {MAX_ZIP_BYTES_DEFAULT}).",
    )
    parser.add_argument(
        "--item-size-max",
        type=int,
        default=None,
        help=(
            "Max size in bytes for a file within a zip "
            f"(skipped if exceeded; default: {MAX_ITEM_BYTES_DEFAULT})."
        ),
    )
    parser.add_argument(
        "--item-content-type",
        default=None,
        help=f"Content-Type for zip entries (default: {DEFAULT_CONTENT_TYPE}).",
    )
    parser.add_argument(
        "--item-content-encoding",
        default=None,
        help=(
            "Content-Encoding for zip entries; only pass-through values "
            f"(identity, identical) are supported (default: {DEFAULT_CONTENT_ENCODING})."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable verbose output (warnings for skipped files); --no-verbose overrides the config file.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with default settings; command-line flags take precedence.",
    )
    add_logging_args(parser)
    return parser


def _stdout_buffer() -> IO[bytes]:
    if sys.stdout is None:
        raise OutputStreamError("Standard output is not available")
    return sys.stdout.buffer


def _stdin_buffer() -> IO[bytes]:
    if sys.stdin is None:
        raise ManifestReadError("Standard input is not available")
    return sys.stdin.buffer


def main(
    argv: list[str] | None = None,
    *,
    stdin: IO[bytes] | None = None,
    stdout: IO[bytes] | None = None,
    stderr: IO[str] | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        "zip_size_max": args.zip_size_max,
        "item_size_max": args.item_size_max,
        "item_content_type": args.item_content_type,
        "item_content_encoding": args.item_content_encoding,
        "verbose": args.verbose,
    }

    try:
        settings = resolve_settings(args.config, overrides)
        constraints = Constraints.from_mapping(settings)
    except ZipBlobError as exc:
        DiagnosticsReporter(verbose=False, fmt=args.log_format, stream=stderr).fatal(exc)
        return 1

    reporter = DiagnosticsReporter(
        verbose=bool(settings["verbose"]),
        level=args.log_level,
        fmt=args.log_format,
        stream=stderr,
    )
    try:
        emitter = JsonlEmitter(stdout if stdout is not None else _stdout_buffer())
        manifest = stdin if stdin is not None else _stdin_buffer()
        run(read_manifest(manifest), constraints, emitter, reporter)
    except ZipBlobError as exc:
        reporter.fatal(exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
