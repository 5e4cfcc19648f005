from __future__ import annotations

import os
from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .base import (
    Reporter,
    TaskLedger,
    TaskStatus,
    format_completion,
    get_verbosity,
)

# Set to 1/true/yes to clear progress bars once the run finishes.
TRANSIENT_ENV = "PRDKIT_PROGRESS_TRANSIENT"


class RichReporter(Reporter):
    """Interactive reporter: one progress bar per directory file."""

    supports_progress = True

    def __init__(self, console: Console | None = None):
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = os.getenv(TRANSIENT_ENV, "0").lower() in (
            "1",
            "true",
            "yes",
        )
        self.progress: Progress | None = None
        self._ledger = TaskLedger()
        self._task_ids: Dict[str, Any] = {}
        self._completions: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.fields[name]}", justify="left"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
                TextColumn("{task.fields[item]}", style="dim"),
                TimeElapsedColumn(),
                transient=self._transient,
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def _stop_progress(self) -> None:
        if self.progress is None:
            return
        try:
            self.progress.stop()
        finally:
            self.progress = None
            self._task_ids.clear()
            if self._completions:
                self.console.print("\n".join(self._completions), markup=False)
                self._completions.clear()

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._ledger.open(task_id, name, total, meta)
        if total is None:
            # no known size: show as a heading instead of a spinner
            self.console.rule(name)
            return
        progress = self._ensure_progress()
        self._task_ids[task_id] = progress.add_task(
            "", total=total, name=name, item=""
        )

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._ledger.step(task_id, step, meta)
        if rec is None:
            return
        rid = self._task_ids.get(task_id)
        if rid is not None and self.progress is not None:
            self.progress.update(
                rid,
                completed=rec.completed,
                item=meta.get("current_item") or "",
            )

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._ledger.close(task_id, status, final_meta)
        if rec is None:
            return
        line = format_completion(rec)
        rid = self._task_ids.pop(task_id, None)
        if rid is not None and self.progress is not None:
            self.progress.update(rid, completed=rec.total, item="")
        if self.progress is not None and self._transient:
            self._completions.append(line)
        else:
            self.console.print(line, markup=False)
        if not self._task_ids:
            self._stop_progress()

    def _say(self, label: str, style: str, message: str) -> None:
        self.console.print(f"[{style}]{label}[/]: {escape(message)}")

    def status(self, message: str, **fields: Any) -> None:
        self._say("INFO", "green", message)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._say(f"VERB{level}", "cyan", message)

    def error(self, message: str, **fields: Any) -> None:
        self._say("ERROR", "bold red", message)

    def warning(self, message: str, **fields: Any) -> None:
        self._say("WARN", "yellow", message)

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        self._stop_progress()
