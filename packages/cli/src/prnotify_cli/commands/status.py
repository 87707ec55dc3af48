"""status command — display the persisted notifier state."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("status")
@click.option("--limit", default=20, show_default=True, help="Maximum number of tracked PRs to show.")
@click.pass_context
def status_cmd(ctx, limit: int):
    """Show the watermark, notified history sizes and tracked PRs.

    Reads the state file only; no GitHub calls are made.
    """
    from prnotify_core.config import DEFAULT_CONFIG
    from prnotify_store.base import CorruptStateError
    from prnotify_store.json_file import JsonFileStore

    config = (ctx.obj or {}).get("config") or {}
    store = JsonFileStore(config.get("state_path") or DEFAULT_CONFIG["state_path"])
    if not store.path.exists():
        console.print(f"[yellow]No state file at {store.path}. Run `prnotify check` or `prnotify run` first.[/yellow]")
        return

    try:
        state = store.load()
    except CorruptStateError as e:
        raise click.ClickException(f"State file is unreadable: {e}")

    console.print(f"\n[bold]State:[/bold] {store.path}")
    console.print(f"  Last checked:      {state.watermark.isoformat(timespec='seconds')}")
    console.print(f"  First run:         {state.first_run_at.isoformat(timespec='seconds')}")
    console.print(f"  Notified comments: {len(state.notified_comment_ids)}")
    console.print(f"  Notified reviews:  {len(state.notified_review_ids)}")
    if state.thread_watermarks:
        console.print(f"  [yellow]Behind after errors: {', '.join(sorted(state.thread_watermarks))}[/yellow]")

    if not state.tracked_prs:
        console.print("[yellow]No tracked PRs.[/yellow]")
        return

    table = Table(title=f"Tracked PRs ({len(state.tracked_prs)})", show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="bold")
    table.add_column("PR", width=7)
    table.add_column("Title", max_width=50)
    table.add_column("URL")

    for pr in state.tracked_prs[:limit]:
        table.add_row(f"{pr.owner}/{pr.repo}", f"#{pr.number}", pr.title[:50] if pr.title else "", pr.url)

    console.print(table)
