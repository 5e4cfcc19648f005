"""Extraction manifest.

The manifest is an optional JSON artifact summarising one extraction run.
It is only produced when explicitly requested (``--emit-manifest``).

Contents:
- One entry per directory file: its container, sentinel-record count and
  every routed record with status and output files
- Every failure with its scope and error code
- Run totals
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .api import ExtractResult

__all__ = ["manifest_dict", "write_manifest", "MANIFEST_VERSION"]

MANIFEST_VERSION = 1


def _rel(path: Path | None, base: Path | None) -> str | None:
    if path is None:
        return None
    if base is not None:
        try:
            return Path(os.path.relpath(path, base)).as_posix()
        except ValueError:  # different drive on Windows
            pass
    return Path(path).as_posix()


def manifest_dict(
    result: "ExtractResult", output_dir: Path | None = None
) -> dict[str, Any]:
    directories = []
    for d in result.directories:
        assets = []
        for outcome in d.assets:
            entry = outcome.to_dict()
            entry["outputs"] = [_rel(p, output_dir) for p in outcome.outputs]
            assets.append(entry)
        directories.append(
            {
                "name": d.path.name,
                "container": d.container_path.name if d.container_path else None,
                "dropped": d.dropped,
                "counts": d.counts(),
                "assets": assets,
            }
        )
    return {
        "version": MANIFEST_VERSION,
        "directories": directories,
        "failures": [f.to_dict() for f in result.failures],
        "totals": result.totals(),
    }


def write_manifest(
    result: "ExtractResult", output_path: Path, output_dir: Path | None = None
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = manifest_dict(result, output_dir)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True, default=str)
        f.write("\n")
    return output_path
