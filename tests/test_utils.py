from __future__ import annotations

from zipblob_core.utils import decode_path_line, display_path


def test_decode_path_line_strips_terminators() -> None:
    assert decode_path_line(b"/in/a.zip\r\n") == "/in/a.zip"
    assert decode_path_line(b"/in/a.zip") == "/in/a.zip"


def test_display_path_is_lossy_utf8() -> None:
    path = decode_path_line(b"/in/caf\xe9.zip\n")
    assert display_path(path) == "/in/caf�.zip"
    assert display_path("/in/café.zip") == "/in/café.zip"
