"""Load YAML settings files and check them against packaged JSON schemas."""

from __future__ import annotations

import json
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import ValidationError

from zipblob_core.exceptions import ConfigValidationError, YamlParseError

MAX_REPORTED_ERRORS = 10


@cache
def load_schema(schema_name: str) -> dict[str, Any]:
    resource = resources.files("zipblob_core").joinpath("schemas").joinpath(f"{schema_name}.schema.json")
    try:
        return json.loads(resource.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"Schema not found: {schema_name}") from exc


def _error_location(error: ValidationError) -> str:
    return ".".join(str(p) for p in error.path) if error.path else "<root>"


def validate_config(config: Any, schema_name: str, *, config_path: Path | None = None) -> None:
    validator = Draft7Validator(load_schema(schema_name), format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(config), key=lambda exc: list(exc.path))
    if not errors:
        return
    location = str(config_path) if config_path else "<config>"
    shown = errors[:MAX_REPORTED_ERRORS]
    details = [{"path": _error_location(e), "message": e.message} for e in shown]
    lines = [f"Schema validation failed for {location} ({schema_name})."]
    lines.extend(f"- {d['path']}: {d['message']}" for d in details)
    hidden = len(errors) - len(shown)
    if hidden:
        lines.append(f"... and {hidden} more errors.")
    raise ConfigValidationError(
        "\n".join(lines),
        context={
            "path": location,
            "schema": schema_name,
            "errors": details,
            "truncated": hidden > 0,
        },
    )


def read_yaml(path: Path, schema_name: str | None = None) -> Any:
    """Parse ``path`` as YAML (empty file means ``{}``) and optionally validate it."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigValidationError(
            f"Cannot read config file {path}: {exc}",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise YamlParseError(
            f"YAML parse error in {path}: {exc}",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    if data is None:
        data = {}
    if schema_name:
        validate_config(data, schema_name, config_path=path)
    return data
