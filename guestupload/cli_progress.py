"""Console rendering and progress helpers for guestupload CLI."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
import time

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from .models import TransferProgress, TransferStatus

console = Console()


def _echo(message: str) -> None:
    console.print(message)


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else escape(str(value))
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]guest-upload[/bold green]",
        subtitle="[dim]wedding photo uploader[/dim]",
        border_style="blue",
    )
    console.print(panel)


class BatchProgressDisplay:
    """Renders batch progress snapshots as one progress bar per file."""

    def __init__(self):
        self._tasks: Dict[str, TaskID] = {}
        self._reported: set[str] = set()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[label]}", justify="left"),
            BarColumn(bar_width=42),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            expand=False,
            console=console,
        )
        self._live: Optional[Live] = None

    def _start_live(self) -> None:
        if self._live is not None:
            return
        self._live = Live(
            self._progress,
            console=console,
            refresh_per_second=8,
            vertical_overflow="visible",
        )
        self._live.start()

    def _stop_live(self) -> None:
        if self._live is None:
            return
        self._live.stop()
        self._live = None

    def _emit_timeline(self, status: str, name: str, size_bytes: int = 0, error: Optional[str] = None) -> None:
        stamp = time.strftime("%H:%M:%S")
        size_label = f" {_human_size(size_bytes)}" if size_bytes > 0 else ""
        error_label = f" cause={escape(error)}" if error else ""
        color = {"DONE": "green", "FAIL": "red", "INFO": "blue"}.get(status, "white")
        _echo(f"[dim]{stamp}[/dim] [{color}]{status:<4}[/{color}] file: {escape(name)}{size_label}{error_label}")

    def on_folder_resolved(self, folder: Any) -> None:
        state = "created" if getattr(folder, "created", False) else "found"
        self._emit_timeline("INFO", f"folder {folder.name} ({state})")

    def on_snapshot(self, snapshot: Mapping[str, TransferProgress]) -> None:
        if snapshot:
            self._start_live()

        for name, record in snapshot.items():
            total = max(record.bytes_total, 1)
            task_id = self._tasks.get(name)
            if task_id is None:
                task_id = self._progress.add_task("upload", label=escape(name[:60]), total=total)
                self._tasks[name] = task_id

            completed = total * record.progress_percent / 100
            self._progress.update(task_id, completed=completed, total=total)

            if record.status.is_terminal and name not in self._reported:
                self._reported.add(name)
                if record.status is TransferStatus.COMPLETED:
                    self._emit_timeline("DONE", name, record.bytes_total)
                else:
                    self._emit_timeline("FAIL", name, record.bytes_total, record.error_detail)

    def on_error(self, error: Exception) -> None:
        self._stop_live()
        _echo(f"[red]Error:[/red] {escape(str(error))}")

    def on_finish(self, result: Any) -> None:
        self._stop_live()
        uploaded = len(getattr(result, "succeeded", []))
        failed = len(getattr(result, "failed", []))
        if getattr(result, "success", False):
            _echo(f"[bold green]All {uploaded} files uploaded.[/bold green]")
            return

        _echo(f"[bold red]Upload finished with errors:[/bold red] uploaded={uploaded} failed={failed}")
        for asset, error in getattr(result, "failed", []):
            _echo(f"  [red]-[/red] {escape(asset.display_name)}: {escape(error)}")
