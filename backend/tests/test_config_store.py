"""Tests for config precedence: env < config file < overrides."""
from pydantic_settings import BaseSettings

from polygram.config_store import ConfigStore


class _Settings(BaseSettings):
    app_name: str = "default"
    otp_length: int = 6
    push_enabled: bool = False


def test_file_overrides_env(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_NAME", "from-env")
    monkeypatch.setenv("OTP_LENGTH", "8")
    config = tmp_path / "config.yaml"
    config.write_text("app_name: from-file\n")

    store = ConfigStore(_Settings, str(config))
    store.load_initial()

    assert store.get_settings().app_name == "from-file"
    assert store.get_settings().otp_length == 8


def test_overrides_win_and_clear(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("push_enabled: true\n")
    store = ConfigStore(_Settings, str(config))

    store.update({"push_enabled": False, "app_name": "override"})
    assert store.get_settings().push_enabled is False
    assert store.get_settings().app_name == "override"

    store.clear_overrides()
    assert store.get_settings().push_enabled is True
    assert store.get_settings().app_name == "default"


def test_invalid_update_keeps_previous(tmp_path):
    store = ConfigStore(_Settings, str(tmp_path / "missing.yaml"))

    store.update({"otp_length": "not-a-number"})

    assert store.get_settings().otp_length == 6


def test_unknown_file_keys_are_ignored(tmp_path):
    config = tmp_path / "config.json"
    config.write_text('{"app_name": "from-file", "no_such_setting": 1}')
    store = ConfigStore(_Settings, str(config))
    store.load_initial()

    assert store.get_settings().app_name == "from-file"
    assert not hasattr(store.get_settings(), "no_such_setting")


def test_invalid_yaml_is_ignored(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("app_name: [unclosed\n")
    store = ConfigStore(_Settings, str(config))
    store.load_initial()

    assert store.get_settings().app_name == "default"
