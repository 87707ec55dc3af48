"""Wiring shared by the commands: settings validation and component assembly."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import click
from rich.console import Console

from prnotify_core.config import Settings
from prnotify_core.detector import ChangeDetector
from prnotify_core.errors import ConfigurationIncompleteError
from prnotify_core.gh.pull_request import GitHubSource, get_client
from prnotify_core.notify.console import ConsoleDispatcher
from prnotify_core.notify.slack import SlackDispatcher
from prnotify_core.registry import TrackedPRRegistry
from prnotify_store.json_file import JsonFileStore
from prnotify_store.memory import MemoryStore
from prnotify_store.models import DedupState

logger = logging.getLogger(__name__)


def get_settings(ctx: click.Context) -> Settings:
    """Validate the loaded config into Settings, or refuse to continue.

    Missing credentials end the command with a usage error before any
    network call is made or any loop starts.
    """
    obj = ctx.obj or {}
    try:
        return Settings.from_config(obj.get("config") or {})
    except ConfigurationIncompleteError as e:
        raise click.UsageError(
            f"{e}\nEdit {obj.get('config_path', 'the config file')} or run `prnotify init`. "
            "For the token, set GITHUB_TOKEN or run `gh auth login`."
        )


def build_dispatcher(settings: Settings, console: Console, shadow: bool = False):
    if shadow:
        return ConsoleDispatcher(console)
    if not settings.slack_webhook:
        logger.warning(
            "No slack_webhook configured; notifications will be printed to the terminal. "
            "Create one at https://api.slack.com/messaging/webhooks"
        )
        return ConsoleDispatcher(console)
    return SlackDispatcher(
        settings.slack_webhook,
        channel=settings.slack_channel,
        username=settings.slack_username,
        icon_emoji=settings.slack_icon_emoji,
        timeout=settings.request_timeout,
        retries=settings.dispatch_retries,
    )


def build_runtime(settings: Settings, console: Console, shadow: bool = False) -> tuple[ChangeDetector, DedupState]:
    """Assemble source → registry → store → dispatcher → detector.

    Returns ``(detector, state)``. In shadow mode the detector commits to an
    in-memory copy of the state so the durable file is left untouched.
    """
    file_store = JsonFileStore(settings.state_path, history_limit=settings.history_limit)
    state = file_store.load_or_reset(datetime.now(timezone.utc))
    store = MemoryStore(state, history_limit=settings.history_limit) if shadow else file_store

    source = GitHubSource(get_client(settings.github_token, timeout=settings.request_timeout))
    registry = TrackedPRRegistry(source, prs=state.tracked_prs)
    detector = ChangeDetector(
        source,
        registry,
        store,
        build_dispatcher(settings, console, shadow=shadow),
        username=settings.github_username,
        bot_suffix=settings.bot_suffix,
    )
    return detector, state
