from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from sheet_linker.errors import ConfigError
from sheet_linker.header_locator import DEFAULT_HEADER_LABEL

CONFIG_FILENAME = "sheet-linker.yml"

STARTER_CONFIG = """linking:
  header_label: Document ID
  worksheet_header_rows: 3
  table_header_rows: 1

output:
  progress_every: 500
  errata_prefix: errata
"""


@dataclass(frozen=True)
class LinkerConfig:
    header_label: str = DEFAULT_HEADER_LABEL
    worksheet_header_rows: int = 3
    table_header_rows: int = 1
    progress_every: int = 500
    errata_prefix: str = "errata"

    def __post_init__(self) -> None:
        if not str(self.header_label).strip():
            raise ConfigError("header_label must not be empty")
        for name in ("worksheet_header_rows", "table_header_rows"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1")
        if self.progress_every < 0:
            raise ConfigError("progress_every must be zero (disabled) or positive")

    def with_overrides(self, **overrides: Any) -> "LinkerConfig":
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _flatten(raw: dict[str, Any]) -> dict[str, Any]:
    known = {field.name for field in fields(LinkerConfig)}
    flat: dict[str, Any] = {}
    for section, body in raw.items():
        if isinstance(body, dict):
            for key, value in body.items():
                if key not in known:
                    raise ConfigError(f"Unknown config key: {section}.{key}")
                flat[key] = value
        elif section in known:
            flat[section] = body
        else:
            raise ConfigError(f"Unknown config key: {section}")
    return flat


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    coerced: dict[str, Any] = {}
    for field in fields(LinkerConfig):
        if field.name not in values:
            continue
        value = values[field.name]
        try:
            coerced[field.name] = int(value) if field.type == "int" else str(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {field.name}: {value!r}") from exc
    return coerced


def load_config(path: Path) -> LinkerConfig:
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse config {path}: {exc}") from exc
    if data is None:
        return LinkerConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    return LinkerConfig(**_coerce(_flatten(data)))


def resolve_config(root: Path, explicit: Path | None = None) -> LinkerConfig:
    if explicit is not None:
        if not explicit.exists():
            raise ConfigError(f"Config file not found: {explicit}")
        return load_config(explicit)
    candidate = root / CONFIG_FILENAME
    if candidate.exists():
        return load_config(candidate)
    return LinkerConfig()
