import json
from pathlib import Path

import settings


def test_load_settings_creates_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config" / "settings.json"

    loaded = settings.load_settings(str(path), environ={})

    assert path.exists()
    assert loaded.worksheet_title == "Sheet1"
    assert loaded.request_timeout_seconds == settings.DEFAULT_REQUEST_TIMEOUT
    assert json.loads(path.read_text(encoding="utf-8")) == loaded.to_json()


def test_load_settings_merges_file_values_and_clamps_timeout(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "worksheet_title": "Roster",
                "request_timeout_seconds": 9000,
                "database_path": "   ",
                "unknown": "ignored",
            }
        ),
        encoding="utf-8",
    )

    loaded = settings.load_settings(str(path), environ={})

    assert loaded.worksheet_title == "Roster"
    assert loaded.request_timeout_seconds == settings.MAX_REQUEST_TIMEOUT
    assert loaded.database_path == settings.DEFAULT_DATABASE_PATH


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    settings.save_settings(settings.AppSettings(worksheet_title="Roster"), str(path))

    loaded = settings.load_settings(
        str(path),
        environ={"SHEETTABLES_WORKSHEET": "Export", "SHEETTABLES_DB_PATH": str(tmp_path / "x.db")},
    )

    assert loaded.worksheet_title == "Export"
    assert loaded.database_path == str(tmp_path / "x.db")


def test_invalid_json_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    loaded = settings.load_settings(str(path), environ={})

    assert loaded == settings.AppSettings()


def test_default_owner_prefers_explicit_variable() -> None:
    assert settings.default_owner({"SHEETTABLES_USER": "ops", "USER": "root"}) == "ops"
    assert settings.default_owner({"USER": "root"}) == "root"
