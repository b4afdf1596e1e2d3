"""Tests for grid settings and the column-width store."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from cellgrid.core.settings import (
    DEFAULT_SETTINGS,
    SettingsError,
    load_column_widths,
    load_settings,
    save_column_widths,
    settings_from_mapping,
)


def test_defaults() -> None:
    s = DEFAULT_SETTINGS
    assert s.default_column_width == 150
    assert s.min_column_width == 50
    assert s.default_row_height == 32
    assert s.overscan == 15
    assert s.header_height == 32
    assert s.bottom_buffer == 40
    assert s.edit_max_width == 300
    assert s.to_dict()["edit_padding"] == 16


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    p = tmp_path / "settings.yaml"
    p.write_text("overscan: 5\ndefault_column_width: 120\n", encoding="utf-8")
    s = load_settings(p)
    assert s.overscan == 5
    assert s.default_column_width == 120
    assert s.min_column_width == 50


def test_settings_errors_are_collected() -> None:
    with pytest.raises(SettingsError) as exc:
        settings_from_mapping({"bogus": 1, "overscan": -1, "menu_width": "wide", "header_height": True})
    assert len(exc.value.errors) == 4
    assert any("bogus" in e for e in exc.value.errors)


def test_zero_allowed_only_where_meaningful() -> None:
    assert settings_from_mapping({"overscan": 0}).overscan == 0
    with pytest.raises(SettingsError):
        settings_from_mapping({"default_row_height": 0})


def test_missing_explicit_settings_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        load_settings(tmp_path / "nope.yaml")


def test_missing_default_settings_file_gives_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("cellgrid.core.settings.get_user_config_dir", lambda: tmp_path / "cfg")
    assert load_settings() == DEFAULT_SETTINGS


def test_malformed_settings(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("overscan: [1, 2\n", encoding="utf-8")
    with pytest.raises(SettingsError, match="YAML parse error"):
        load_settings(p)
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(SettingsError, match="mapping"):
        load_settings(p)


def test_column_widths_round_trip(tmp_path: Path) -> None:
    p = tmp_path / "widths" / "data.yaml"
    assert save_column_widths(p, {"name": 200, "qty": 60.5})
    assert yaml.safe_load(p.read_text(encoding="utf-8")) == {"name": 200, "qty": 60.5}
    assert load_column_widths(p) == {"name": 200, "qty": 60.5}


def test_column_widths_tolerate_bad_files(tmp_path: Path) -> None:
    assert load_column_widths(tmp_path / "absent.yaml") == {}
    p = tmp_path / "w.yaml"
    p.write_text("name: [\n", encoding="utf-8")
    assert load_column_widths(p) == {}
    p.write_text("name: wide\nqty: 70\n", encoding="utf-8")
    assert load_column_widths(p) == {"qty": 70}
