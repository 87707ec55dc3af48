import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from prnotify_core.errors import ConfigurationIncompleteError

CONFIG_DIR = Path("~/.prnotify")
DEFAULT_CONFIG_PATH = str(CONFIG_DIR / "config.yml")

DEFAULT_CONFIG: dict = {
    "github_username": "",
    "github_token": None,  # prefer GITHUB_TOKEN or `gh auth login` over storing it here
    "check_interval": 300,  # seconds between detection cycles
    "refresh_interval": 1800,  # seconds between tracked-PR list refreshes
    "request_timeout": 30,  # per-request network timeout, seconds
    "state_path": str(CONFIG_DIR / "state.json"),
    "history_limit": 1000,
    "bot_suffix": "[bot]",
    "dispatch_retries": 0,  # 0 = fire-and-forget
    "slack_webhook": "",
    "slack_channel": "",
    "slack_username": "GitHub PR Notifier",
    "slack_icon_emoji": ":bell:",
}

_NUMERIC_KEYS = ("check_interval", "refresh_interval", "request_timeout", "history_limit")


def load_config(config_path: str = DEFAULT_CONFIG_PATH, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. the YAML config file, if present
      3. CLI argument overrides
      4. credentials from environment variables
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path).expanduser()
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Environment variables win over values written to the config file.
    if os.environ.get("GITHUB_TOKEN"):
        config["github_token"] = os.environ["GITHUB_TOKEN"]
    if os.environ.get("PRNOTIFY_SLACK_WEBHOOK"):
        config["slack_webhook"] = os.environ["PRNOTIFY_SLACK_WEBHOOK"]

    return config


def write_config(config_path: str, values: dict) -> Path:
    """Write or update the YAML config file, preserving any existing keys."""
    path = Path(config_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(values)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
    return path


@dataclass(frozen=True)
class Settings:
    """Validated, immutable settings passed explicitly to every component."""

    github_token: str
    github_username: str
    check_interval: float
    refresh_interval: float
    request_timeout: float
    state_path: str
    history_limit: int
    bot_suffix: str
    dispatch_retries: int
    slack_webhook: str
    slack_channel: str
    slack_username: str
    slack_icon_emoji: str

    @classmethod
    def from_config(cls, config: dict) -> "Settings":
        token = str(config.get("github_token") or "").strip()
        username = str(config.get("github_username") or "").strip()
        missing = []
        if not token:
            missing.append("github_token (or GITHUB_TOKEN)")
        if not username:
            missing.append("github_username")
        if missing:
            raise ConfigurationIncompleteError(f"Missing required settings: {', '.join(missing)}")

        numbers = {}
        for key in _NUMERIC_KEYS:
            raw = config.get(key, DEFAULT_CONFIG[key])
            try:
                value = float(raw)
            except (TypeError, ValueError):
                raise ConfigurationIncompleteError(f"{key} must be a number, got {raw!r}")
            if value <= 0:
                raise ConfigurationIncompleteError(f"{key} must be positive, got {raw!r}")
            numbers[key] = value

        raw_retries = config.get("dispatch_retries") or 0
        try:
            retries = int(raw_retries)
        except (TypeError, ValueError):
            raise ConfigurationIncompleteError(f"dispatch_retries must be an integer, got {raw_retries!r}")

        return cls(
            github_token=token,
            github_username=username,
            check_interval=numbers["check_interval"],
            refresh_interval=numbers["refresh_interval"],
            request_timeout=numbers["request_timeout"],
            state_path=str(config.get("state_path") or DEFAULT_CONFIG["state_path"]),
            history_limit=int(numbers["history_limit"]),
            bot_suffix=config.get("bot_suffix") or DEFAULT_CONFIG["bot_suffix"],
            dispatch_retries=max(retries, 0),
            slack_webhook=config.get("slack_webhook") or "",
            slack_channel=config.get("slack_channel") or "",
            slack_username=config.get("slack_username") or DEFAULT_CONFIG["slack_username"],
            slack_icon_emoji=config.get("slack_icon_emoji") or DEFAULT_CONFIG["slack_icon_emoji"],
        )
