"""run command — the notifier daemon."""

from __future__ import annotations

import signal

import click
from rich.console import Console

from prnotify_cli.runtime import build_runtime, get_settings
from prnotify_core.scheduler import Scheduler

console = Console()


@click.command("run")
@click.option("--once", is_flag=True, help="Run a single cycle (including the registry refresh) and exit.")
@click.pass_context
def run_cmd(ctx, once: bool):
    """Watch your open PRs and notify on every new comment and review.

    Checks every `check_interval` seconds and refreshes the list of PRs
    assigned to or authored by you every `refresh_interval` seconds.
    Ctrl-C stops after the cycle in progress.
    """
    settings = get_settings(ctx)
    detector, state = build_runtime(settings, console)

    scheduler = Scheduler(
        detector,
        state,
        check_interval=settings.check_interval,
        refresh_interval=settings.refresh_interval,
    )

    def _stop(signum, _frame):
        console.print(f"\n[yellow]Received {signal.Signals(signum).name}; stopping after the current cycle.[/yellow]")
        scheduler.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _stop)

    console.print(
        f"[bold cyan]prnotify[/bold cyan] watching PRs for [bold]@{settings.github_username}[/bold] "
        f"every {settings.check_interval:g}s (state: {settings.state_path})"
    )
    scheduler.run(max_cycles=1 if once else None)
    console.print(f"Tracked PRs: {len(scheduler.state.tracked_prs)}")
