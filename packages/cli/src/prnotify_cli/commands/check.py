"""check command — run a single detection cycle."""

from __future__ import annotations

import click
from rich.console import Console

from prnotify_cli.runtime import build_runtime, get_settings

console = Console()


@click.command("check")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print notifications instead of posting them, and leave the state file untouched.",
)
@click.pass_context
def check_cmd(ctx, shadow: bool):
    """Check tracked PRs once for new comments and reviews.

    \b
    Useful from cron, or to verify a new config before starting `prnotify run`.
    """
    settings = get_settings(ctx)
    detector, state = build_runtime(settings, console, shadow=shadow)

    detector.registry.refresh_or_keep(settings.github_username)
    result = detector.run_cycle(state)

    if result.skipped:
        console.print("[red]Could not load the tracked PR list from GitHub. Nothing was checked.[/red]")
        ctx.exit(1)

    summary = f"{len(result.dispatched)} notification(s)"
    if shadow:
        summary += " would be sent"
    if result.absorbed:
        summary += f", {result.absorbed} bot event(s) skipped"
    console.print(f"\n[bold]{summary}.[/bold]")

    if result.failed_threads:
        console.print(f"[yellow]Could not check: {', '.join(result.failed_threads)}[/yellow]")
    if result.delivery_failures:
        console.print(f"[yellow]{result.delivery_failures} notification(s) could not be delivered.[/yellow]")
