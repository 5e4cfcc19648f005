"""Scoped reads of asset payloads from packed-data containers."""

from __future__ import annotations

from pathlib import Path

from ..codec.errors import missing_container

__all__ = ["read_asset_bytes", "read_container"]

# Containers above this size are not loaded whole for palette scanning.
MAX_CONTAINER_SCAN = 256 * 1024 * 1024


def read_asset_bytes(path: Path, offset: int, length: int) -> bytes:
    """Read up to ``length`` bytes at ``offset``; the handle is closed on return.

    A short result means the container ends early; decoders report that as
    truncation against the record's declared length.
    """
    if offset < 0 or length < 0:
        raise ValueError(f"Invalid asset range {offset}+{length}")
    try:
        with Path(path).open("rb") as fh:
            fh.seek(offset)
            return fh.read(length)
    except FileNotFoundError as exc:
        raise missing_container(
            f"Packed-data file vanished: {path}", {"container": str(path)}
        ) from exc


def read_container(path: Path, max_size: int = MAX_CONTAINER_SCAN) -> bytes:
    path = Path(path)
    size = path.stat().st_size
    if size > max_size:
        raise ValueError(f"Container too large to scan: {size}>{max_size}")
    with path.open("rb") as fh:
        return fh.read()
