"""CLI entry point for prnotify.

Commands:
  run     — watch tracked PRs and notify on new comments and reviews (daemon)
  check   — run a single detection cycle
  status  — show the watermark, notified history and tracked PRs
  init    — interactive setup wizard that writes the config file
"""

from __future__ import annotations

import importlib.metadata
import logging

import click

from prnotify_cli.commands.check import check_cmd
from prnotify_cli.commands.init import init_cmd
from prnotify_cli.commands.run import run_cmd
from prnotify_cli.commands.status import status_cmd
from prnotify_core.config import DEFAULT_CONFIG_PATH

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=_LOG_FORMAT)
    # PyGithub and urllib3 are chatty at DEBUG.
    for noisy in ("github", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prnotify"),
    prog_name="prnotify",
)
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRNOTIFY_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Slack notifications for new comments and reviews on your GitHub PRs."""
    from prnotify_cli.auth import resolve_github_token
    from prnotify_core.config import load_config

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token(config.get("github_token"))
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


main.add_command(run_cmd)
main.add_command(check_cmd)
main.add_command(status_cmd)
main.add_command(init_cmd)
