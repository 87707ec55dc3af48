"""init command — interactive setup wizard.

Writes the config file once so `prnotify run` works without flags. The
GitHub token is deliberately not asked for: GITHUB_TOKEN or an existing
`gh auth login` session is picked up at startup instead of being stored
in plain text.
"""

from __future__ import annotations

import subprocess

import click
from rich.console import Console

from prnotify_core.config import DEFAULT_CONFIG

console = Console()


@click.command("init")
@click.option("--username", default=None, help="GitHub username to watch. Auto-detected from the gh CLI.")
@click.pass_context
def init_cmd(ctx, username: str | None):
    """Set up prnotify for your GitHub account and Slack workspace."""
    from prnotify_core.config import write_config

    config_path = (ctx.obj or {}).get("config_path") or "~/.prnotify/config.yml"
    console.print("\n[bold cyan]prnotify init[/bold cyan] — setup wizard\n")

    # --- Detect username from the gh CLI session ---
    if username is None:
        username = _detect_username()
        if username:
            console.print(f"[dim]Detected GitHub user: {username}[/dim]")
        else:
            username = click.prompt("GitHub username")

    # --- Slack ---
    console.print("\nCreate an incoming webhook at [bold]https://api.slack.com/messaging/webhooks[/bold]")
    webhook = click.prompt("Slack webhook URL (leave empty to print notifications instead)", default="")
    channel = click.prompt("Slack channel override (optional)", default="")

    interval = click.prompt(
        "Check interval in seconds",
        type=click.IntRange(min=30),
        default=DEFAULT_CONFIG["check_interval"],
    )

    values: dict = {"github_username": username, "check_interval": interval}
    if webhook:
        values["slack_webhook"] = webhook
    if channel:
        values["slack_channel"] = channel

    path = write_config(config_path, values)
    console.print(f"[green]Wrote {path}[/green]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Try it with: [bold]prnotify check --shadow[/bold], then start [bold]prnotify run[/bold].")


def _detect_username() -> str | None:
    """Return the login of the active gh CLI session, if any."""
    try:
        result = subprocess.run(
            ["gh", "api", "user", "--jq", ".login"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            return None
        login = result.stdout.strip()
        return login or None
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
