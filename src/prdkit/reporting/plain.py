from __future__ import annotations

import sys
from typing import Any

from .base import (
    Reporter,
    TaskLedger,
    TaskStatus,
    format_completion,
    get_verbosity,
)

# label, ANSI colour code
_LEVELS = {
    "info": ("INFO", "32"),
    "warning": ("WARN", "33"),
    "error": ("ERROR", "31"),
    "verbose": ("VERB", "36"),
}


class PlainReporter(Reporter):
    """Line-oriented reporter for logs and CI; colour only on a TTY."""

    def __init__(self, stream=None, use_color: bool | None = None):
        self.stream = stream or sys.stderr
        if use_color is None:
            isatty = getattr(self.stream, "isatty", None)
            use_color = bool(isatty and isatty())
        self.use_color = use_color
        self._ledger = TaskLedger()

    def _write(self, text: str) -> None:
        self.stream.write(text + "\n")

    def _label(self, level: str, suffix: str = "") -> str:
        label, code = _LEVELS[level]
        label += suffix
        return f"\x1b[{code}m{label}\x1b[0m" if self.use_color else label

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._ledger.open(task_id, name, total, meta)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._ledger.step(task_id, step, meta)
        if rec is None or get_verbosity() < 1:
            return
        item = meta.get("current_item") or f"record#{rec.completed}"
        of = "?" if rec.total is None else rec.total
        self._write(f"   · {rec.name}: {item} ({rec.completed}/{of})")

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._ledger.close(task_id, status, final_meta)
        if rec is not None:
            self._write(" " + format_completion(rec))

    def status(self, message: str, **fields: Any) -> None:
        self._write(f"{self._label('info')}: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._write(f"{self._label('verbose', str(level))}: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self._write(f"{self._label('error')}: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self._write(f"{self._label('warning')}: {message}")

    def section(self, title: str) -> None:
        self._write(f"\n[{title}]")

    def flush(self) -> None:
        self.stream.flush()
