from __future__ import annotations

from pathlib import Path

import pytest

from iq_file_handler.config import (
    DEFAULT_DIRECTORY,
    DIRECTORY_ENV,
    KEEP_FILES_ENV,
    FileHandlerConfig,
    resolve_directory,
)


def test_resolve_directory_prefers_explicit_value(monkeypatch, tmp_path):
    monkeypatch.setenv(DIRECTORY_ENV, str(tmp_path / "env"))
    assert resolve_directory(tmp_path / "explicit") == tmp_path / "explicit"


def test_resolve_directory_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv(DIRECTORY_ENV, str(tmp_path / "env"))
    assert resolve_directory("") == tmp_path / "env"
    assert resolve_directory(None) == tmp_path / "env"


def test_resolve_directory_default():
    assert resolve_directory("") == DEFAULT_DIRECTORY == Path("Temp")


def test_resolve_directory_expands_user(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_directory("~/iq") == tmp_path / "iq"


def test_default_config_deletes_consumed_files():
    config = FileHandlerConfig()
    assert config.delete_consumed is True
    assert config.scan_glob == "*.txt"
    assert config.stop_timeout is None


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_keep_files_env_disables_deletion(monkeypatch, raw: str):
    monkeypatch.setenv(KEEP_FILES_ENV, raw)
    assert FileHandlerConfig().delete_consumed is False


@pytest.mark.parametrize("raw", ["", "0", "no", "off"])
def test_keep_files_env_falsey_values(monkeypatch, raw: str):
    monkeypatch.setenv(KEEP_FILES_ENV, raw)
    assert FileHandlerConfig().delete_consumed is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scan_glob": ""},
        {"poll_interval": -0.1},
        {"startup_timeout": 0.0},
        {"stop_timeout": 0.0},
    ],
)
def test_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        FileHandlerConfig(**kwargs)
