from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from pydantic import ValidationError

from scrutineer.exceptions import ConfigurationError
from scrutineer.schema import ProbeSettings

DEFAULT_CONFIG_NAME = "scrutineer.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

_LIST_KEYS = ("targets", "dependencies")
_BOOL_KEYS = ("report_phony", "verbose")


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def probe_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("probe", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    # Items are paths and may contain commas.
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def resolve_settings(payload: TomlTable, defaults: TomlTable) -> ProbeSettings:
    """Merge explicit values over config defaults and validate the result."""
    merged = merge_payload(payload, defaults)
    for key in _LIST_KEYS:
        if key in merged:
            merged[key] = _normalize_name_list(merged[key])
    for key in _BOOL_KEYS:
        if key in merged:
            merged[key] = _as_bool(merged[key])
    if "directory" in merged and isinstance(merged["directory"], Path):
        merged["directory"] = str(merged["directory"])
    try:
        return ProbeSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "load_config",
    "merge_payload",
    "probe_defaults",
    "resolve_settings",
]
