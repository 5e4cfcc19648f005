"""PRD resource directory parsing.

Public functions:
- parse_directory(path) -> DirectoryFile
- parse_directory_bytes(data, base_dir) -> DirectoryFile

A PRD file names one PRS packed-data container and lists the assets stored
in it. Layout (little-endian)::

    2      prefix (not validated)
    256    container name, one code point per byte, zero padded
    12     reserved
    i16    record count
    per record:
        10     reserved
        i32    offset into the container
        4      asset type tag
        i16    id
        18     name
        i32    length
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import List, Optional

from ..logging import get_logger
from .constants import (
    PRD_CONTAINER_NAME_SIZE,
    PRD_PREFIX_SIZE,
    PRD_RESERVED_SIZE,
    RECORD_NAME_SIZE,
    RECORD_PREFIX_SIZE,
    RECORD_TYPE_SIZE,
)
from .cursor import BinaryCursor
from .errors import missing_container

__all__ = [
    "AssetRecord",
    "DirectoryFile",
    "container_file_name",
    "parse_directory",
    "parse_directory_bytes",
    "resolve_container",
]

DEFAULT_DISPLAY_NAME = "Resource"


@dataclass(frozen=True, slots=True)
class AssetRecord:
    asset_type: str
    id: int
    name: str
    offset: int
    length: int
    container_path: Path

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_DISPLAY_NAME

    @property
    def is_sentinel(self) -> bool:
        return self.offset == 0 or self.length == 0

    def to_dict(self) -> dict:
        return {
            "type": self.asset_type,
            "id": self.id,
            "name": self.name,
            "offset": self.offset,
            "length": self.length,
        }


@dataclass(slots=True)
class DirectoryFile:
    path: Path
    container_path: Path
    records: List[AssetRecord] = field(default_factory=list)
    dropped: int = 0


def container_file_name(raw_name: str) -> str:
    """Filename component of a stored container path, uppercased."""
    return PureWindowsPath(raw_name.strip()).name.upper()


def resolve_container(base_dir: Path, file_name: str) -> Optional[Path]:
    """Locate ``file_name`` in ``base_dir``, ignoring case if needed."""
    candidate = base_dir / file_name
    if candidate.is_file():
        return candidate
    if not base_dir.is_dir():
        return None
    wanted = file_name.upper()
    for entry in sorted(base_dir.iterdir()):
        if entry.name.upper() == wanted and entry.is_file():
            return entry
    return None


def parse_directory_bytes(
    data: bytes, base_dir: Path, source: Path | None = None
) -> DirectoryFile:
    """Parse an in-memory PRD image whose container lives in ``base_dir``."""
    logger = get_logger()
    source = source or base_dir / "<memory>"
    cursor = BinaryCursor(data)
    cursor.skip(PRD_PREFIX_SIZE, "prd.prefix")
    raw_name = cursor.read_fixed_codepoint_string(
        PRD_CONTAINER_NAME_SIZE, "prd.container"
    )
    file_name = container_file_name(raw_name)
    if not file_name:
        raise missing_container(
            "Directory names no packed-data file", {"directory": str(source)}
        )
    container = resolve_container(base_dir, file_name)
    if container is None:
        raise missing_container(
            f"Packed-data file {file_name} not found",
            {"directory": str(source), "container": str(base_dir / file_name)},
        )
    logger.debug("%s -> container %s", source.name, container)

    cursor.skip(PRD_RESERVED_SIZE, "prd.reserved")
    count = cursor.read_i16_le("prd.count")
    result = DirectoryFile(path=source, container_path=container)
    for i in range(max(0, count)):
        cursor.skip(RECORD_PREFIX_SIZE, f"record[{i}].prefix")
        offset = cursor.read_i32_le(f"record[{i}].offset")
        asset_type = cursor.read_fixed_codepoint_string(
            RECORD_TYPE_SIZE, f"record[{i}].type"
        ).upper()
        asset_id = cursor.read_i16_le(f"record[{i}].id")
        name = cursor.read_fixed_codepoint_string(
            RECORD_NAME_SIZE, f"record[{i}].name"
        )
        length = cursor.read_i32_le(f"record[{i}].length")
        record = AssetRecord(asset_type, asset_id, name, offset, length, container)
        logger.debug(
            "  %-4s id=%-5d offset=%-8d length=%-8d %s",
            asset_type,
            asset_id,
            offset,
            length,
            record.display_name,
        )
        if record.is_sentinel:
            result.dropped += 1
            continue
        result.records.append(record)
    return result


def parse_directory(path: Path) -> DirectoryFile:
    """Parse the PRD file at ``path``.

    Raises MissingContainer when the directory file or its container is
    absent, TruncatedInput when the file ends inside the header or a record.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            data = fh.read()
    except FileNotFoundError as exc:
        raise missing_container(
            f"Directory file not found: {path}", {"directory": str(path)}
        ) from exc
    return parse_directory_bytes(data, path.parent, source=path)
