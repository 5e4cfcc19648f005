"""Progress and message reporting backends selectable with ``-r``."""

from typing import Callable, Dict

from .base import (
    Reporter,
    TaskStatus,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    task,
    use_reporter,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

REPORTERS: Dict[str, Callable[[], Reporter]] = {
    "plain": PlainReporter,
    "rich": RichReporter,
    "json": JsonLinesReporter,
    "silent": SilentReporter,
}


def make_reporter(kind: str) -> Reporter:
    factory = REPORTERS.get(kind)
    if factory is None:
        choices = ", ".join(sorted(REPORTERS))
        raise ValueError(f"Unknown reporter kind {kind!r} (expected {choices})")
    return factory()


__all__ = [
    "REPORTERS",
    "JsonLinesReporter",
    "PlainReporter",
    "Reporter",
    "RichReporter",
    "SilentReporter",
    "TaskStatus",
    "get_reporter",
    "get_verbosity",
    "make_reporter",
    "set_reporter",
    "set_verbosity",
    "task",
    "use_reporter",
]
