"""
zipblob_core/constraints.py

Run-scoped, read-only limits applied to every archive and entry.

Settings are layered: built-in defaults, then an optional YAML file
(validated against ``schemas/constraints.schema.json``), then explicit
command-line values. Anything invalid is a fatal ``ConfigValidationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from zipblob_core.config_validator import read_yaml
from zipblob_core.exceptions import ConfigValidationError

MAX_ZIP_BYTES_DEFAULT = 1 << 20  # 1 MiB
MAX_ITEM_BYTES_DEFAULT = 1 << 17  # 128 KiB
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_CONTENT_ENCODING = "identity"

# Encodings under which payload bytes are emitted unmodified.
PASSTHROUGH_ENCODINGS = frozenset({"identity", "identical"})

CONSTRAINTS_SCHEMA = "constraints"

SETTING_DEFAULTS: dict[str, Any] = {
    "zip_size_max": MAX_ZIP_BYTES_DEFAULT,
    "item_size_max": MAX_ITEM_BYTES_DEFAULT,
    "item_content_type": DEFAULT_CONTENT_TYPE,
    "item_content_encoding": DEFAULT_CONTENT_ENCODING,
    "verbose": False,
}


def _require_size(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigValidationError(
            f"{name} must be a non-negative integer, got {value!r}",
            context={"setting": name, "value": repr(value)},
        )


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ConfigValidationError(
            f"{name} must be a non-empty string, got {value!r}",
            context={"setting": name, "value": repr(value)},
        )


@dataclass(frozen=True)
class Constraints:
    zip_size_max: int = MAX_ZIP_BYTES_DEFAULT
    item_size_max: int = MAX_ITEM_BYTES_DEFAULT
    item_content_type: str = DEFAULT_CONTENT_TYPE
    item_content_encoding: str = DEFAULT_CONTENT_ENCODING

    def __post_init__(self) -> None:
        _require_size("zip_size_max", self.zip_size_max)
        _require_size("item_size_max", self.item_size_max)
        _require_text("item_content_type", self.item_content_type)
        _require_text("item_content_encoding", self.item_content_encoding)
        if self.item_content_encoding not in PASSTHROUGH_ENCODINGS:
            supported = ", ".join(sorted(PASSTHROUGH_ENCODINGS))
            raise ConfigValidationError(
                f"Unsupported item content encoding {self.item_content_encoding!r} "
                f"(supported: {supported})",
                context={
                    "setting": "item_content_encoding",
                    "value": self.item_content_encoding,
                    "supported": sorted(PASSTHROUGH_ENCODINGS),
                },
            )

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> Constraints:
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in settings.items() if key in names})


def apply_content_encoding(data: bytes, encoding: str) -> bytes:
    """Return the payload bytes to emit under ``encoding``."""
    if encoding in PASSTHROUGH_ENCODINGS:
        return data
    raise ConfigValidationError(
        f"No transformation defined for content encoding {encoding!r}",
        context={"setting": "item_content_encoding", "value": encoding},
    )


def resolve_settings(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge defaults, the YAML file and explicit overrides (``None`` means unset)."""
    settings = dict(SETTING_DEFAULTS)
    if config_path is not None:
        settings.update(read_yaml(config_path, schema_name=CONSTRAINTS_SCHEMA))
    for key, value in (overrides or {}).items():
        if value is not None:
            settings[key] = value
    return settings


def load_constraints(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Constraints:
    return Constraints.from_mapping(resolve_settings(config_path, overrides))
