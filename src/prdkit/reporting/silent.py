from __future__ import annotations

from typing import Any

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Discards everything (``-r silent``)."""

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        return None

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        return None

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        return None

    def status(self, message: str, **fields: Any) -> None:
        return None

    error = warning = status

    def section(self, title: str) -> None:
        return None
