"""Grid settings and the column-width settings store."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class SettingsError(Exception):
    def __init__(self, errors: list[str]):
        super().__init__("\n".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class GridSettings:
    default_column_width: int = 150
    min_column_width: int = 50
    default_row_height: int = 32
    overscan: int = 15
    header_height: int = 32
    bottom_buffer: int = 40
    edit_max_width: int = 300
    edit_char_width: int = 8
    edit_padding: int = 16
    menu_width: int = 130

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


DEFAULT_SETTINGS = GridSettings()

# overscan may legitimately be zero, everything else is a size
_ALLOW_ZERO = {"overscan", "bottom_buffer", "edit_padding"}


def get_user_config_dir() -> Path:
    """Get platform-appropriate user config directory."""
    if os.name == "nt":  # Windows
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(base) / "cellgrid"
    else:  # macOS, Linux
        return Path.home() / ".config" / "cellgrid"


def default_settings_path() -> Path:
    return get_user_config_dir() / "settings.yaml"


def settings_from_mapping(data: dict[str, Any]) -> GridSettings:
    """Validate a plain mapping and build settings from it.

    Raises:
        SettingsError: with one message per offending key
    """
    known = {f.name for f in fields(GridSettings)}
    errors: list[str] = []
    values: dict[str, int] = {}
    for key, value in data.items():
        if key not in known:
            errors.append(f"Unknown setting '{key}'.")
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"Setting '{key}' must be an integer, got {value!r}.")
            continue
        floor = 0 if key in _ALLOW_ZERO else 1
        if value < floor:
            errors.append(f"Setting '{key}' must be >= {floor}, got {value}.")
            continue
        values[key] = value
    if errors:
        raise SettingsError(errors)
    return GridSettings(**values)


def load_settings(path: str | Path | None = None) -> GridSettings:
    """Load settings from YAML.

    With no explicit path the user settings file is used when it exists;
    a missing file yields the defaults.
    """
    target = Path(path) if path is not None else default_settings_path()
    if not target.exists():
        if path is not None:
            raise SettingsError([f"Settings file not found: {target}"])
        return DEFAULT_SETTINGS
    try:
        data = yaml.safe_load(target.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise SettingsError([f"YAML parse error: {e}"]) from None
    if not isinstance(data, dict):
        raise SettingsError(["Top-level YAML must be a mapping of setting names to integers."])
    return settings_from_mapping(data)


def load_column_widths(path: str | Path) -> dict[str, float]:
    """Read a persisted key -> width record. Failures yield an empty record."""
    target = Path(path)
    if not target.exists():
        return {}
    try:
        data = yaml.safe_load(target.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load column widths from %s: %s", target, e)
        return {}
    if not isinstance(data, dict):
        logger.error("Ignoring column widths in %s: not a mapping", target)
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, (int, float)) and not isinstance(v, bool)}


def save_column_widths(path: str | Path, record: dict[str, float]) -> bool:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(yaml.safe_dump(dict(record), sort_keys=True), encoding="utf-8")
    except OSError as e:
        logger.error("Failed to save column widths to %s: %s", target, e)
        return False
    return True
