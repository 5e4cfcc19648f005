"""Reporter protocol and the process-wide active reporter.

Extraction code never prints. It talks to whatever :class:`Reporter` is
active: tasks (one per directory file) with progress and a final status,
plus leveled messages. The CLI picks the backend and the verbosity once.
"""

from __future__ import annotations

import sys
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "TaskLedger",
    "Reporter",
    "STAT_KEYS",
    "format_completion",
    "set_reporter",
    "get_reporter",
    "use_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
]

# Task meta keys rendered in completion lines, in display order.
STAT_KEYS = ("records", "sounds", "sprites", "palettes", "skipped", "failed")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()
    SKIPPED = auto()

    @property
    def icon(self) -> str:
        return _ICONS.get(self, "?")


_ICONS = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
    TaskStatus.SKIPPED: "→",
}


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time) if self.end_time else 0.0

    @property
    def stats(self) -> str:
        return " ".join(f"{k}={self.meta[k]}" for k in STAT_KEYS if k in self.meta)


class TaskLedger:
    """Open-task bookkeeping shared by the concrete reporters."""

    def __init__(self) -> None:
        self._open: Dict[str, TaskRecord] = {}

    def open(
        self, task_id: str, name: str, total: int | None, meta: Dict[str, Any]
    ) -> TaskRecord:
        rec = TaskRecord(task_id, name, total, meta=dict(meta))
        self._open[task_id] = rec
        return rec

    def step(
        self, task_id: str, step: int, meta: Dict[str, Any]
    ) -> Optional[TaskRecord]:
        rec = self._open.get(task_id)
        if rec is not None:
            rec.completed += step
            rec.meta.update(meta)
        return rec

    def close(
        self, task_id: str, status: TaskStatus, meta: Dict[str, Any]
    ) -> Optional[TaskRecord]:
        rec = self._open.pop(task_id, None)
        if rec is not None:
            rec.status = status
            rec.end_time = time.time()
            rec.meta.update(meta)
        return rec

    def __len__(self) -> int:
        return len(self._open)


def format_completion(rec: TaskRecord) -> str:
    """``✔ name 3/4 (0.12s) [sounds=2 sprites=1]`` style line."""
    parts = [rec.status.icon, rec.name]
    if rec.total is not None:
        parts.append(f"{rec.completed}/{rec.total}")
    parts.append(f"({rec.duration:.2f}s)")
    if rec.stats:
        parts.append(f"[{rec.stats}]")
    return " ".join(parts)


class Reporter(ABC):
    supports_progress: bool = False

    @abstractmethod
    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None: ...

    @abstractmethod
    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None: ...

    @abstractmethod
    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None: ...

    @abstractmethod
    def status(self, message: str, **fields: Any) -> None: ...

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        """Low-importance detail; backends that show it gate on verbosity."""

    @abstractmethod
    def error(self, message: str, **fields: Any) -> None: ...

    def warning(self, message: str, **fields: Any) -> None:
        self.status(message, **fields)

    @abstractmethod
    def section(self, title: str) -> None: ...

    def flush(self) -> None:
        pass


class _State:
    reporter: Optional[Reporter] = None
    verbosity: int = 0  # set by the CLI (-v repeats)


def set_verbosity(level: int) -> None:
    _State.verbosity = max(0, level)


def get_verbosity() -> int:
    return _State.verbosity


def set_reporter(rep: Reporter) -> None:
    _State.reporter = rep


def get_reporter() -> Reporter:
    if _State.reporter is None:
        from .plain import PlainReporter  # plain imports this module

        _State.reporter = PlainReporter(stream=sys.stderr)
    return _State.reporter


@contextmanager
def use_reporter(rep: Reporter) -> Iterator[Reporter]:
    """Make ``rep`` active for the block, restoring the previous one after."""
    previous = _State.reporter
    _State.reporter = rep
    try:
        yield rep
    finally:
        _State.reporter = previous


@contextmanager
def task(
    task_id: str, name: str, total: int | None = None, **meta: Any
) -> Iterator[Reporter]:
    """Run a block as a reported task; an escaping exception ends it FAILED."""
    rep = get_reporter()
    rep.start_task(task_id, name, total, **meta)
    try:
        yield rep
    except Exception:
        rep.end_task(task_id, TaskStatus.FAILED)
        raise
    else:
        rep.end_task(task_id, TaskStatus.SUCCESS)
