"""High-level API for prdkit.

Public functions:
- extract_all(options) -> ExtractResult
- extract_directory(path, options, palettes, names) -> DirectoryResult
- list_directory(path) -> DirectoryFile
- classify_directory(path) -> list[(AssetRecord, SpriteFormat | PrdError)]

Data errors never escape the batch functions: a broken directory file or
asset becomes a :class:`Failure` in the result and processing moves on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .codec.audio import PcmBuffer, decode_riff, decode_snd
from .codec.constants import ASSET_CLU, ASSET_PAK, ASSET_PCM, ASSET_SND
from .codec.cursor import BinaryCursor
from .codec.directory import AssetRecord, DirectoryFile, parse_directory
from .codec.errors import (
    ErrorScope,
    Failure,
    PrdError,
    invalid_format,
    truncated,
)
from .codec.palette import (
    Palette,
    default_palette,
    find_palette_block,
    load_palette,
)
from .codec.sprite import SpriteFormat, classify_sprite, decode_sprite
from .config import ExtractConfig
from .export.png import write_sprite
from .export.wav import write_wav
from .logging import get_logger
from .manifest import write_manifest
from .reporting import TaskStatus, get_reporter
from .utils.io import read_asset_bytes, read_container
from .utils.paths import NameAllocator, normalize_filename

__all__ = [
    "AssetStatus",
    "AssetOutcome",
    "DirectoryResult",
    "ExtractOptions",
    "ExtractResult",
    "extract_all",
    "extract_directory",
    "list_directory",
    "classify_directory",
]


@dataclass(slots=True)
class ExtractOptions:
    data_dir: Path
    output_dir: Path
    config: ExtractConfig = field(default_factory=ExtractConfig)
    # Optional path; when provided a manifest JSON is written after the run
    manifest_path: Path | None = None


class AssetStatus(str, Enum):
    EXTRACTED = "extracted"
    PALETTE = "palette"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class AssetOutcome:
    record: AssetRecord
    status: AssetStatus
    outputs: List[Path] = field(default_factory=list)
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.record.to_dict(),
            "status": self.status.value,
            "detail": self.detail,
            "outputs": [str(p) for p in self.outputs],
        }


@dataclass(slots=True)
class DirectoryResult:
    path: Path
    container_path: Path | None = None
    assets: List[AssetOutcome] = field(default_factory=list)
    dropped: int = 0
    failures: List[Failure] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        c = {
            "records": len(self.assets),
            "sounds": 0,
            "sprites": 0,
            "palettes": 0,
            "skipped": 0,
            "failed": 0,
        }
        for outcome in self.assets:
            if outcome.status is AssetStatus.EXTRACTED:
                if outcome.record.asset_type == ASSET_PAK:
                    c["sprites"] += 1
                else:
                    c["sounds"] += 1
            elif outcome.status is AssetStatus.PALETTE:
                c["palettes"] += 1
            elif outcome.status is AssetStatus.SKIPPED:
                c["skipped"] += 1
            else:
                c["failed"] += 1
        return c

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(slots=True)
class ExtractResult:
    directories: List[DirectoryResult] = field(default_factory=list)
    manifest_path: Path | None = None

    @property
    def failures(self) -> List[Failure]:
        return [f for d in self.directories for f in d.failures]

    @property
    def ok(self) -> bool:
        return all(d.ok for d in self.directories)

    def totals(self) -> Dict[str, int]:
        totals: Dict[str, int] = {"directories": len(self.directories)}
        for d in self.directories:
            for key, value in d.counts().items():
                totals[key] = totals.get(key, 0) + value
        totals["failed_directories"] = sum(
            1 for f in self.failures if f.scope is ErrorScope.DIRECTORY
        )
        return totals


def _format_fields(values: Dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in values.items())


# ---------------------------------------------------------------------------
# Per-asset handlers
# ---------------------------------------------------------------------------


class _DirectoryContext:
    """Shared state while one directory file is extracted."""

    def __init__(
        self,
        directory: DirectoryFile,
        options: ExtractOptions,
        palettes: Dict[Path, Palette],
        names: NameAllocator,
    ) -> None:
        self.directory = directory
        self.options = options
        self.config = options.config
        self.palettes = palettes
        self.names = names

    def stem(self, namespace: str, record: AssetRecord) -> str:
        return self.names.claim(
            namespace, normalize_filename(record.name, record.id), record.id
        )

    def write_sound(self, record: AssetRecord, pcm: PcmBuffer) -> AssetOutcome:
        target = (
            self.options.output_dir
            / self.config.audio_dir
            / f"{self.stem('audio', record)}.wav"
        )
        write_wav(target, pcm)
        get_logger().info(
            "Extracted %s %s -> %s (%d frames, %d Hz, %d ch)",
            record.asset_type,
            record.display_name,
            target.name,
            pcm.frame_count,
            pcm.sample_rate,
            pcm.channel_count,
        )
        return AssetOutcome(
            record, AssetStatus.EXTRACTED, [target], f"{pcm.sample_rate}Hz"
        )

    def _scan_palette(self, container: Path) -> Optional[Palette]:
        logger = get_logger()
        try:
            blob = read_container(container)
        except (OSError, ValueError) as exc:
            logger.warning("Palette scan of %s failed: %s", container.name, exc)
            return None
        index = find_palette_block(blob)
        if index is None:
            return None
        logger.debug("Found CLU signature at %d in %s", index, container.name)
        return load_palette(
            BinaryCursor(blob, index), layout=self.config.palette_layout
        )

    def palette_for(self, container: Path) -> Palette:
        palette = self.palettes.get(container)
        if palette is not None:
            return palette
        palette = default_palette()
        if self.config.scan_for_palette:
            palette = self._scan_palette(container) or palette
        self.palettes[container] = palette
        return palette


def _handle_snd(
    ctx: _DirectoryContext, record: AssetRecord, data: bytes
) -> AssetOutcome:
    pcm = decode_snd(BinaryCursor(data), ctx.config.snd_sample_rate)
    return ctx.write_sound(record, pcm)


def _handle_pcm(
    ctx: _DirectoryContext, record: AssetRecord, data: bytes
) -> AssetOutcome:
    return ctx.write_sound(record, decode_riff(BinaryCursor(data)))


def _handle_clu(
    ctx: _DirectoryContext, record: AssetRecord, data: bytes
) -> AssetOutcome:
    palette = load_palette(
        BinaryCursor(data), len(data), ctx.config.palette_layout
    )
    container = record.container_path
    if palette == default_palette() and container in ctx.palettes:
        # a failed load keeps whatever the container already had
        return AssetOutcome(record, AssetStatus.SKIPPED, detail="unreadable")
    ctx.palettes[container] = palette
    get_logger().info("Loaded palette %s from %s", record.display_name, palette.source)
    return AssetOutcome(record, AssetStatus.PALETTE, detail=palette.source)


def _handle_pak(
    ctx: _DirectoryContext, record: AssetRecord, data: bytes
) -> AssetOutcome:
    palette = ctx.palette_for(record.container_path)
    image = decode_sprite(
        BinaryCursor(data), len(data), palette, ctx.config.sprite_limits
    )
    outputs = write_sprite(
        ctx.options.output_dir / ctx.config.sprite_dir,
        ctx.stem("sprite", record),
        image,
        palette,
        write_frames=ctx.config.write_frames,
    )
    fmt = image.format.value if image.format else "?"
    get_logger().info(
        "Extracted sprite %s (%s %dx%d, %d frames)",
        record.display_name,
        fmt,
        image.width,
        image.height,
        len(image.frames),
    )
    return AssetOutcome(record, AssetStatus.EXTRACTED, outputs, fmt)


_HANDLERS = {
    ASSET_SND: _handle_snd,
    ASSET_PCM: _handle_pcm,
    ASSET_CLU: _handle_clu,
    ASSET_PAK: _handle_pak,
}


def _extract_record(
    ctx: _DirectoryContext, record: AssetRecord
) -> Tuple[AssetOutcome, Optional[Failure]]:
    logger = get_logger()
    handler = _HANDLERS.get(record.asset_type)
    if handler is None:
        logger.debug(
            "Skipping %s record %s (unsupported type)",
            record.asset_type or "?",
            record.display_name,
        )
        return AssetOutcome(record, AssetStatus.SKIPPED, detail="unsupported"), None
    source = f"{ctx.directory.path.name}#{record.id}"
    try:
        data = read_asset_bytes(record.container_path, record.offset, record.length)
        if len(data) < record.length:
            logger.debug(
                "%s: container ends %d bytes early",
                source,
                record.length - len(data),
            )
        outcome = handler(ctx, record, data)
    except PrdError as exc:
        error = exc
    except (OSError, ValueError) as exc:
        error = invalid_format(
            f"{type(exc).__name__}: {exc}", {"asset": source}
        )
    else:
        return outcome, None
    logger.warning(
        "Error processing %s %s: %s", record.asset_type, record.display_name, error
    )
    failure = Failure(ErrorScope.ASSET, source, error)
    return AssetOutcome(record, AssetStatus.FAILED, detail=error.code), failure


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def list_directory(path: str | Path) -> DirectoryFile:
    return parse_directory(Path(path))


def classify_directory(
    path: str | Path,
) -> List[Tuple[AssetRecord, SpriteFormat | PrdError]]:
    """Sprite format of every ``PAK`` record, without decoding pixels."""
    directory = parse_directory(Path(path))
    results: List[Tuple[AssetRecord, SpriteFormat | PrdError]] = []
    for record in directory.records:
        if record.asset_type != ASSET_PAK:
            continue
        try:
            head = read_asset_bytes(
                record.container_path, record.offset, min(4, record.length)
            )
        except (OSError, ValueError) as exc:
            results.append((record, invalid_format(str(exc))))
            continue
        if not head:
            results.append((record, truncated("Asset payload is empty")))
            continue
        results.append((record, classify_sprite(head)))
    return results


def extract_directory(
    path: str | Path,
    options: ExtractOptions,
    palettes: Dict[Path, Palette] | None = None,
    names: NameAllocator | None = None,
) -> DirectoryResult:
    """Extract every record of one PRD file.

    ``palettes`` maps container paths to their active palette and is updated
    as ``CLU`` records load; pass the same mapping across calls to share
    palettes between directory files that point at one container.
    """
    path = Path(path)
    logger = get_logger()
    rep = get_reporter()
    palettes = {} if palettes is None else palettes
    names = names or NameAllocator()
    result = DirectoryResult(path=path)

    try:
        directory = parse_directory(path)
    except PrdError as exc:
        logger.warning("Invalid resource %s: %s", path.name, exc)
        result.failures.append(Failure(ErrorScope.DIRECTORY, path.name, exc))
        return result
    except OSError as exc:
        error = invalid_format(f"Cannot read directory file: {exc}")
        logger.warning("Invalid resource %s: %s", path.name, error)
        result.failures.append(Failure(ErrorScope.DIRECTORY, path.name, error))
        return result

    result.container_path = directory.container_path
    result.dropped = directory.dropped
    logger.debug(
        "%s: %d records (%d sentinel) in %s",
        path.name,
        len(directory.records),
        directory.dropped,
        directory.container_path.name,
    )

    ctx = _DirectoryContext(directory, options, palettes, names)
    task_id = f"prd.{path.name}"
    rep.start_task(task_id, path.name, total=len(directory.records))
    for record in directory.records:
        outcome, failure = _extract_record(ctx, record)
        result.assets.append(outcome)
        if failure is not None:
            result.failures.append(failure)
        rep.advance(task_id, current_item=f"{record.asset_type} {record.display_name}")
    counts = result.counts()
    rep.end_task(
        task_id,
        TaskStatus.SUCCESS if result.ok else TaskStatus.FAILED,
        **counts,
    )
    logger.info(
        "Directory summary: name=%s %s", path.name, _format_fields(counts)
    )
    return result


def extract_all(options: ExtractOptions) -> ExtractResult:
    logger = get_logger()
    rep = get_reporter()
    data_dir = Path(options.data_dir)
    paths = sorted(p for p in data_dir.glob(options.config.pattern) if p.is_file())
    if not paths:
        logger.warning(
            "No directory files matching %s in %s", options.config.pattern, data_dir
        )
    rep.section(f"Extracting {len(paths)} directory files from {data_dir}")

    result = ExtractResult()
    palettes: Dict[Path, Palette] = {}
    names = NameAllocator()
    for path in paths:
        result.directories.append(
            extract_directory(path, options, palettes, names)
        )
    logger.info("Extract summary: %s", _format_fields(result.totals()))

    if options.manifest_path is not None:
        result.manifest_path = write_manifest(
            result, options.manifest_path, options.output_dir
        )
        logger.info(
            "Manifest summary: path=%s directories=%d failures=%d",
            options.manifest_path.name,
            len(result.directories),
            len(result.failures),
        )
    rep.flush()
    return result
