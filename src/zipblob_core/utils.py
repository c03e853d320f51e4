"""
zipblob_core/utils.py

Small helpers shared by the manifest reader, the coordinator and the blob builder.
"""

from __future__ import annotations

import os


def decode_path_line(raw: bytes) -> str:
    """Strip the line terminator and decode with the filesystem encoding."""
    return os.fsdecode(raw.rstrip(b"\r\n"))


def display_path(path: str) -> str:
    """Return ``path`` as valid UTF-8 text, replacing undecodable bytes with U+FFFD."""
    raw = os.fsencode(path)
    return raw.decode("utf-8", errors="replace")
