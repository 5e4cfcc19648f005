"""JSON lines reporter (``-r json``).

Every call becomes one object on its own line with an ``event`` key:
``task_start``, ``task_progress``, ``task_end``, ``status``, ``section`` and,
for the directory/extract/manifest summary lines, an extra ``summary`` event
whose ``key=value`` tokens are lifted into fields.
"""

from __future__ import annotations

import json
import re
import sys
from typing import Any, Dict, Optional

from .base import Reporter, TaskLedger, TaskStatus, get_verbosity

SUMMARY_PREFIXES: Dict[str, str] = {
    "directory summary": "directory",
    "extract summary": "extract",
    "manifest summary": "manifest",
}

_SUMMARY_RE = re.compile(
    r"^(%s)\s*:" % "|".join(re.escape(p) for p in SUMMARY_PREFIXES),
    re.IGNORECASE,
)


def parse_summary_fields(message: str) -> Dict[str, str]:
    _, _, kv_text = message.partition(":")
    pairs = (token.partition("=") for token in kv_text.split())
    return {key: value for key, sep, value in pairs if sep}


def summary_type(message: str) -> Optional[str]:
    m = _SUMMARY_RE.match(message)
    return SUMMARY_PREFIXES[m.group(1).lower()] if m else None


class JsonLinesReporter(Reporter):
    supports_progress = False

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._ledger = TaskLedger()

    def _event(self, kind: str, **payload: Any) -> None:
        payload["event"] = kind
        self.stream.write(json.dumps(payload, sort_keys=True, default=str))
        self.stream.write("\n")

    def _message(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        self._event("status", message=message, level=level, **fields)

    # tasks -----------------------------------------------------------------

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._ledger.open(task_id, name, total, meta)
        self._event("task_start", id=task_id, name=name, total=total, **meta)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._ledger.step(task_id, step, meta)
        if rec is None:
            return
        self._event("task_progress", id=task_id, completed=rec.completed, **meta)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._ledger.close(task_id, status, final_meta)
        if rec is None:
            return
        # current_item only makes sense while the task is running
        rec.meta.pop("current_item", None)
        self._event(
            "task_end",
            id=task_id,
            status=status.name.lower(),
            completed=rec.completed,
            total=rec.total,
            duration_seconds=round(rec.duration, 6),
            **rec.meta,
        )

    # messages --------------------------------------------------------------

    def status(self, message: str, **fields: Any) -> None:
        kind = summary_type(message)
        if kind is not None:
            self._event(
                "summary",
                summary_type=kind,
                level="info",
                raw=message,
                **{**parse_summary_fields(message), **fields},
            )
        self._message("info", message, fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._message(f"verbose{level}", message, {"vlevel": level, **fields})

    def error(self, message: str, **fields: Any) -> None:
        self._message("error", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._message("warning", message, fields)

    def section(self, title: str) -> None:
        self._event("section", title=title)

    def flush(self) -> None:
        self.stream.flush()
