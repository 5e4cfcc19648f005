"""Indexed-colour palettes: the synthetic default and CLU palette blocks.

Palette loading is best-effort: :func:`load_palette` never raises, it falls
back to :func:`default_palette` and logs why.

CLU block layouts seen across asset-pipeline revisions disagree, so the
loader is variant-tagged (:class:`ClutLayout`):

- ``bgrx``: 4-byte entries, each a little-endian u32 ``0x00RRGGBB``.
- ``rgb``: 3-byte raw 8-bit entries.
- ``vga6``: 3-byte entries of 6-bit VGA components, scaled x4.
- ``auto``: ``bgrx`` when the block is large enough, else ``vga6`` when all
  components fit in 6 bits, else ``rgb``.

All layouts share the header rule: 4 bytes, or 8 when the first u32 is the
``CLU\\0`` magic.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from functools import lru_cache
from typing import Iterator, NamedTuple

from ..logging import get_logger
from .constants import CLU_MAGIC, CLU_SIGNATURE, PALETTE_SIZE
from .cursor import BinaryCursor
from .errors import PrdError, invalid_format

__all__ = [
    "PaletteEntry",
    "Palette",
    "ClutLayout",
    "default_palette",
    "load_palette",
    "find_palette_block",
]


class PaletteEntry(NamedTuple):
    r: int
    g: int
    b: int
    alpha: int = 255


TRANSPARENT = PaletteEntry(0, 0, 0, 0)
OPAQUE_BLACK = PaletteEntry(0, 0, 0, 255)


class Palette(Sequence[PaletteEntry]):
    """Immutable sequence of exactly 256 RGBA entries."""

    __slots__ = ("_entries", "source")

    def __init__(
        self, entries: Sequence[PaletteEntry], source: str = "default"
    ) -> None:
        if len(entries) != PALETTE_SIZE:
            raise invalid_format(
                f"Palette must have {PALETTE_SIZE} entries, got {len(entries)}"
            )
        self._entries = tuple(PaletteEntry(*e) for e in entries)
        self.source = source

    def __getitem__(self, index):  # type: ignore[override]
        return self._entries[index]

    def __len__(self) -> int:
        return PALETTE_SIZE

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"Palette(source={self.source!r})"

    def rgba_table(self) -> list[tuple[int, int, int, int]]:
        return [tuple(e) for e in self._entries]  # type: ignore[misc]


class ClutLayout(str, Enum):
    AUTO = "auto"
    BGRX = "bgrx"
    RGB = "rgb"
    VGA6 = "vga6"


@lru_cache(maxsize=1)
def default_palette() -> Palette:
    entries = []
    for i in range(PALETTE_SIZE):
        r = ((i >> 5) & 7) * 255 // 7
        g = ((i >> 2) & 7) * 255 // 7
        b = (i & 3) * 255 // 3
        entries.append(PaletteEntry(r, g, b, 255))
    entries[0] = TRANSPARENT
    entries[1] = OPAQUE_BLACK
    return Palette(entries, source="default")


def _header_size(cursor: BinaryCursor) -> int:
    magic = int.from_bytes(cursor.peek(4).ljust(4, b"\x00"), "little")
    return 8 if magic == CLU_MAGIC else 4


def _resolve_layout(layout: ClutLayout, body: bytes) -> ClutLayout:
    if layout is not ClutLayout.AUTO:
        return layout
    if len(body) >= PALETTE_SIZE * 4:
        return ClutLayout.BGRX
    if all(v < 64 for v in body[: PALETTE_SIZE * 3]):
        return ClutLayout.VGA6
    return ClutLayout.RGB


def _parse_entries(body: bytes, layout: ClutLayout) -> list[PaletteEntry]:
    entries: list[PaletteEntry] = []
    if layout is ClutLayout.BGRX:
        for i in range(PALETTE_SIZE):
            value = int.from_bytes(body[i * 4 : i * 4 + 4], "little")
            entries.append(
                PaletteEntry(
                    (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF
                )
            )
        return entries
    for i in range(PALETTE_SIZE):
        r, g, b = body[i * 3 : i * 3 + 3]
        if layout is ClutLayout.VGA6:
            r, g, b = (r & 0x3F) * 4, (g & 0x3F) * 4, (b & 0x3F) * 4
        entries.append(PaletteEntry(r, g, b))
    return entries


def _read_palette(
    cursor: BinaryCursor, length: int | None, layout: ClutLayout
) -> Palette:
    start = cursor.position()
    window = cursor.window(cursor.remaining() if length is None else length)
    header = _header_size(window)
    window.skip(header, "clu.header")
    body = window.read_available(PALETTE_SIZE * 4)
    layout = _resolve_layout(layout, body)
    entry_size = 4 if layout is ClutLayout.BGRX else 3
    needed = PALETTE_SIZE * entry_size
    if len(body) < needed:
        raise invalid_format(
            f"CLU block too short for {layout.value} layout",
            {"offset": start, "have": len(body), "need": needed},
        )
    entries = _parse_entries(body, layout)
    entries[0] = TRANSPARENT
    cursor.seek_absolute(window.position() - len(body) + needed)
    return Palette(entries, source=f"clu@{start}:{layout.value}")


def load_palette(
    cursor: BinaryCursor,
    length: int | None = None,
    layout: ClutLayout | str = ClutLayout.AUTO,
) -> Palette:
    """Parse a CLU block at the cursor, or return the default palette."""
    logger = get_logger()
    try:
        layout = ClutLayout(layout)
        palette = _read_palette(cursor, length, layout)
    except (PrdError, ValueError) as exc:
        logger.warning("Palette load failed, using default: %s", exc)
        return default_palette()
    logger.debug("Loaded palette %s", palette.source)
    return palette


def find_palette_block(data: bytes) -> int | None:
    """Offset of the first ``CLU\\0`` signature in ``data``, if any."""
    index = data.find(CLU_SIGNATURE)
    return None if index < 0 else index
