"""Terminal view of a board session, rendered with Rich."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from taskboard.client.translation_cache import TranslationCache
from taskboard.models.board import Board

# Color constants
COLORS = {
    "done": "#666666",
    "star": "#FFB800",
    "ok": "#00D26A",
    "warning": "#FF4444",
    "primary": "#FF7000",
}


class BoardView:
    """Prints the mirror, connection status and transient notices."""

    def __init__(self, console: Console | None = None, overlay: TranslationCache | None = None) -> None:
        self.console = console or Console()
        self.overlay = overlay

    def render(self, board: Board) -> None:
        table = Table(title=board.title, title_style=f"bold {COLORS['primary']}", show_header=False, expand=True)
        table.add_column("task")
        if not board.sections:
            table.add_row(Text("No sections yet. Add one to start your build plan.", style=COLORS["done"]))

        for section in board.sections:
            title = self.overlay.section_title(section) if self.overlay else section.title
            table.add_row(Text(title, style="bold"))
            for task in section.tasks:
                text = self.overlay.task_text(section.id, task) if self.overlay else task.text
                line = Text("  ")
                line.append("[x] " if task.done else "[ ] ")
                line.append(text, style=f"strike {COLORS['done']}" if task.done else "")
                if task.starred:
                    line.append(" ★", style=COLORS["star"])
                table.add_row(line)

        self.console.print(table)
        if board.updated_at:
            self.console.print(Text(f"updated {board.updated_at}", style=COLORS["done"]))

    def status(self, connected: bool) -> None:
        if connected:
            self.console.print(Text("● Up to date", style=COLORS["ok"]))
        else:
            self.console.print(Text("● Reconnecting...", style=COLORS["warning"]))

    def notice(self, message: str) -> None:
        self.console.print(Text(message, style=f"italic {COLORS['warning']}"))
