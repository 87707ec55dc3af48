from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from prnotify_core.notify.base import BaseDispatcher, Message


class ConsoleDispatcher(BaseDispatcher):
    """Prints notifications to the terminal instead of posting them.

    Used for `prnotify check --shadow` and when no webhook is configured.
    """

    def __init__(self, console: Console | None = None):
        super().__init__(retries=0)
        self.console = console or Console()

    def _send(self, message: Message) -> None:
        self.console.print(f"\n[bold cyan]{escape(message.title)}[/bold cyan]")
        self.console.print(f"  [dim]{escape(message.pr_label)}[/dim] {escape(message.pr_title)}")
        self.console.print(f"  {message.body}", markup=False, highlight=False)
        if message.url:
            self.console.print(f"  URL: {message.url}", markup=False)
