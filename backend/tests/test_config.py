"""Tests for settings loading and path resolution."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from chatmedia.config import (
    DEFAULT_MAX_FILE_SIZE_BYTES,
    AppSettings,
    StorageSettings,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("CHATMEDIA_SETTINGS", raising=False)
    yield
    reset_config()


def test_defaults():
    cfg = AppSettings()
    assert cfg.server.port == 3000
    assert cfg.storage.url_prefix == "/uploads"
    assert cfg.storage.max_file_size_bytes == DEFAULT_MAX_FILE_SIZE_BYTES == 5 * 1024 * 1024
    assert cfg.storage.allowed_extensions == ["jpeg", "jpg", "png", "gif"]


def test_missing_file_falls_back_to_defaults(tmp_path):
    cfg = load_config(settings_path=tmp_path / "absent.yaml")
    assert cfg.server.port == 3000
    assert Path(cfg.storage.upload_dir) == tmp_path.resolve() / "uploads"


def test_yaml_values_and_relative_paths(tmp_path):
    settings_file = tmp_path / "chatmedia.settings.yaml"
    settings_file.write_text(
        "server:\n"
        "  port: 8080\n"
        "storage:\n"
        "  upload_dir: data/uploads\n"
        "  url_prefix: media/\n"
        "  allowed_extensions: ['.PNG', 'gif']\n"
        "database:\n"
        "  path: data/chat.duckdb\n",
        encoding="utf-8",
    )

    cfg = load_config(settings_path=settings_file)

    assert cfg.server.port == 8080
    assert Path(cfg.storage.upload_dir) == tmp_path.resolve() / "data" / "uploads"
    assert Path(cfg.database.path) == tmp_path.resolve() / "data" / "chat.duckdb"
    assert cfg.storage.url_prefix == "/media"
    assert cfg.storage.allowed_extensions == ["png", "gif"]


def test_absolute_paths_are_kept(tmp_path):
    absolute = tmp_path / "elsewhere" / "uploads"
    settings_file = tmp_path / "chatmedia.settings.yaml"
    settings_file.write_text(f"storage:\n  upload_dir: {absolute}\n", encoding="utf-8")

    cfg = load_config(settings_path=settings_file)
    assert Path(cfg.storage.upload_dir) == absolute


def test_in_memory_database_is_not_resolved(tmp_path):
    settings_file = tmp_path / "chatmedia.settings.yaml"
    settings_file.write_text('database:\n  path: ":memory:"\n', encoding="utf-8")

    cfg = load_config(settings_path=settings_file)
    assert cfg.database.path == ":memory:"


def test_port_env_overrides_yaml(tmp_path, monkeypatch):
    settings_file = tmp_path / "chatmedia.settings.yaml"
    settings_file.write_text("server:\n  port: 8080\n", encoding="utf-8")
    monkeypatch.setenv("PORT", "9090")

    assert load_config(settings_path=settings_file).server.port == 9090


def test_settings_env_selects_file(tmp_path, monkeypatch):
    settings_file = tmp_path / "custom.yaml"
    settings_file.write_text("server:\n  log_level: debug\n", encoding="utf-8")
    monkeypatch.setenv("CHATMEDIA_SETTINGS", str(settings_file))

    assert load_config().server.log_level == "debug"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_file_size_bytes": 0},
        {"url_prefix": "/"},
        {"allowed_extensions": []},
    ],
)
def test_invalid_storage_settings(kwargs):
    with pytest.raises(ValidationError):
        StorageSettings(**kwargs)


def test_get_config_is_cached(tmp_path, monkeypatch):
    monkeypatch.setenv("CHATMEDIA_SETTINGS", str(tmp_path / "absent.yaml"))
    reset_config()
    assert get_config() is get_config()
