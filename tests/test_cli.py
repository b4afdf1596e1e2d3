from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from cellgrid import cli


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):  # type: ignore[no-untyped-def]
    monkeypatch.setattr(cli, "configure_logging", lambda **kw: None)


def test_missing_file(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    assert cli.main([str(tmp_path / "nope.csv")]) == 2
    assert "file not found" in capsys.readouterr().err


def test_bad_settings_lists_every_error(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    data = tmp_path / "d.csv"
    data.write_text("a\n1\n", encoding="utf-8")
    settings = tmp_path / "s.yaml"
    settings.write_text("overscan: -3\nnope: 1\n", encoding="utf-8")
    assert cli.main([str(data), "--settings", str(settings)]) == 2
    err = capsys.readouterr().err
    assert "overscan" in err
    assert "nope" in err


def test_unsupported_data_file(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    data = tmp_path / "d.json"
    data.write_text("[]", encoding="utf-8")
    assert cli.main([str(data)]) == 2
    assert "Unsupported" in capsys.readouterr().err


def test_runs_app(tmp_path: Path) -> None:
    pytest.importorskip("textual")
    data = tmp_path / "d.csv"
    data.write_text("a,b\n1,2\n", encoding="utf-8")
    with patch("cellgrid.app.CellGridApp.run") as run:
        assert cli.main([str(data), "--settings", str(_write_settings(tmp_path))]) == 0
    run.assert_called_once()


def _write_settings(tmp_path: Path) -> Path:
    p = tmp_path / "settings.yaml"
    p.write_text("overscan: 4\n", encoding="utf-8")
    return p
