"""Tests for configuration loading and validation."""

import pytest

from prnotify_core.config import Settings, load_config, write_config
from prnotify_core.errors import ConfigurationIncompleteError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("PRNOTIFY_SLACK_WEBHOOK", raising=False)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["check_interval"] == 300
    assert config["refresh_interval"] == 1800
    assert config["history_limit"] == 1000
    assert config["bot_suffix"] == "[bot]"
    assert config["slack_username"] == "GitHub PR Notifier"
    assert config["slack_icon_emoji"] == ":bell:"
    assert config["dispatch_retries"] == 0
    assert config["github_token"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("github_username: octocat\ncheck_interval: 60\n")
    config = load_config(config_path=str(cfg))
    assert config["github_username"] == "octocat"
    assert config["check_interval"] == 60


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["check_interval"] == 300


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("check_interval: 60\n")
    config = load_config(config_path=str(cfg), cli_overrides={"check_interval": 120})
    assert config["check_interval"] == 120


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("check_interval: 60\n")
    config = load_config(config_path=str(cfg), cli_overrides={"check_interval": None})
    assert config["check_interval"] == 60


def test_env_vars_override_file(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yml"
    cfg.write_text("github_token: from-file\nslack_webhook: https://hooks.example/file\n")
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")
    monkeypatch.setenv("PRNOTIFY_SLACK_WEBHOOK", "https://hooks.example/env")
    config = load_config(config_path=str(cfg))
    assert config["github_token"] == "from-env"
    assert config["slack_webhook"] == "https://hooks.example/env"


def test_file_token_kept_without_env(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("github_token: from-file\n")
    assert load_config(config_path=str(cfg))["github_token"] == "from-file"


def test_write_config_preserves_existing_keys(tmp_path):
    cfg = tmp_path / "sub" / "config.yml"
    write_config(str(cfg), {"github_username": "octocat", "check_interval": 60})
    write_config(str(cfg), {"slack_webhook": "https://hooks.example/x"})

    config = load_config(config_path=str(cfg))
    assert config["github_username"] == "octocat"
    assert config["check_interval"] == 60
    assert config["slack_webhook"] == "https://hooks.example/x"


class TestSettings:
    def _config(self, tmp_path, **overrides):
        config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
        config.update({"github_token": "tok", "github_username": "octocat"})
        config.update(overrides)
        return config

    def test_valid_config(self, tmp_path):
        settings = Settings.from_config(self._config(tmp_path))
        assert settings.github_username == "octocat"
        assert settings.check_interval == 300
        assert settings.history_limit == 1000
        assert settings.dispatch_retries == 0

    def test_missing_token_is_incomplete(self, tmp_path):
        with pytest.raises(ConfigurationIncompleteError, match="github_token"):
            Settings.from_config(self._config(tmp_path, github_token=None))

    def test_missing_username_is_incomplete(self, tmp_path):
        with pytest.raises(ConfigurationIncompleteError, match="github_username"):
            Settings.from_config(self._config(tmp_path, github_username="  "))

    def test_non_positive_interval_rejected(self, tmp_path):
        with pytest.raises(ConfigurationIncompleteError, match="check_interval"):
            Settings.from_config(self._config(tmp_path, check_interval=0))

    def test_non_numeric_interval_rejected(self, tmp_path):
        with pytest.raises(ConfigurationIncompleteError, match="refresh_interval"):
            Settings.from_config(self._config(tmp_path, refresh_interval="often"))

    def test_negative_retries_clamped(self, tmp_path):
        settings = Settings.from_config(self._config(tmp_path, dispatch_retries=-2))
        assert settings.dispatch_retries == 0
