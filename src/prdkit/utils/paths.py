"""Output filename derivation."""

from __future__ import annotations

import re
from pathlib import PureWindowsPath
from typing import Dict, Set

__all__ = ["normalize_filename", "NameAllocator"]

_UNSAFE = re.compile(r"[^a-zA-Z0-9_.]+")


def normalize_filename(name: str, asset_id: int) -> str:
    """Drop the extension, then strip everything outside ``[A-Za-z0-9_.]``.

    ``HERO.PCX`` becomes ``HERO``. Leading dots are removed as well so a name
    can never address ``.`` or ``..`` or produce a hidden file. An empty
    result falls back to the decimal id.
    """
    stem = PureWindowsPath(name).stem
    cleaned = _UNSAFE.sub("", stem).lstrip(".")
    return cleaned or str(asset_id)


class NameAllocator:
    """Hand out collision-free output stems within one extraction run.

    The first claim of a stem gets it verbatim, a collision becomes
    ``<stem>_<id>`` and further collisions append ``_2``, ``_3`` and so on.
    Comparison is case-insensitive so outputs stay distinct on Windows.
    """

    def __init__(self) -> None:
        self._taken: Dict[str, Set[str]] = {}

    def claim(self, namespace: str, stem: str, asset_id: int) -> str:
        taken = self._taken.setdefault(namespace, set())
        candidates = [stem, f"{stem}_{asset_id}"]
        for candidate in candidates:
            if candidate.lower() not in taken:
                taken.add(candidate.lower())
                return candidate
        n = 2
        while f"{stem}_{asset_id}_{n}".lower() in taken:
            n += 1
        result = f"{stem}_{asset_id}_{n}"
        taken.add(result.lower())
        return result
