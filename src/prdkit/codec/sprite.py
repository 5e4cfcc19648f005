"""Sprite decoding for ``PAK`` payloads.

A payload is classified once by :func:`classify_sprite`, looking only at its
leading bytes, in this priority order:

1. ``PNG``        ``89 'P' 'N' 'G'``: embedded PNG, re-quantized to the palette.
2. ``WALLPAPER``  ``'WPR'`` magic: 640x480 triplet-RLE background.
3. ``VECTOR``     format byte ``0xC0..0xFF``: draw-command stream.
4. ``ATLAS``      format byte ``0x02``: several RLE sub-sprites stacked.
5. ``GENERIC_RLE`` format byte ``0x01``: u16 width, u16 height, RLE pixels.
6. ``RAW``        anything else: u32 size, u16 width, u16 height, raw pixels
   and an optional frame table. The size field is only logged; its length
   is configurable through :attr:`SpriteLimits.raw_header_size`.

Every branch validates dimensions before allocating and reports structural
problems as :class:`InvalidFormat`. A decoded pixel stream that is shorter or
longer than ``width * height`` is zero-padded or truncated.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..logging import get_logger
from .constants import (
    ATLAS_TERMINATOR,
    FORMAT_ATLAS,
    FORMAT_RLE,
    MAX_ATLAS_HEIGHT,
    MAX_FRAME_COUNT,
    MAX_PNG_DIMENSION,
    MAX_SPRITE_HEIGHT,
    MAX_SPRITE_WIDTH,
    PNG_ALPHA_THRESHOLD,
    PNG_SIGNATURE,
    RAW_HEADER_SIZE,
    VECTOR_PADDING,
    VECTOR_TAG_MASK,
    WALLPAPER_HEIGHT,
    WALLPAPER_MAGIC,
    WALLPAPER_WIDTH,
)
from .cursor import BinaryCursor
from .errors import invalid_format, truncated
from .palette import Palette
from .rle import RleScheme, decode_triplet, decoder_for, fit

__all__ = [
    "Frame",
    "IndexedImage",
    "SpriteFormat",
    "SpriteLimits",
    "classify_sprite",
    "decode_sprite",
    "quantize_rgba",
]


class Frame(NamedTuple):
    """Animation sub-rectangle in image coordinates."""

    x: int
    y: int
    width: int
    height: int

    def inside(self, width: int, height: int) -> bool:
        return (
            self.width > 0
            and self.height > 0
            and self.x + self.width <= width
            and self.y + self.height <= height
        )


@dataclass(slots=True)
class IndexedImage:
    width: int
    height: int
    pixels: bytes
    frames: List[Frame] = field(default_factory=list)
    format: "SpriteFormat | None" = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise invalid_format(
                "Image dimensions must be positive",
                {"width": self.width, "height": self.height},
            )
        if len(self.pixels) != self.width * self.height:
            raise invalid_format(
                "Pixel buffer does not match dimensions",
                {"pixels": len(self.pixels), "expected": self.width * self.height},
            )
        for frame in self.frames:
            if not frame.inside(self.width, self.height):
                raise invalid_format(
                    "Frame outside image bounds", {"frame": tuple(frame)}
                )


class SpriteFormat(str, Enum):
    PNG = "png"
    WALLPAPER = "wallpaper"
    VECTOR = "vector"
    ATLAS = "atlas"
    GENERIC_RLE = "rle"
    RAW = "raw"


@dataclass(frozen=True, slots=True)
class SpriteLimits:
    max_width: int = MAX_SPRITE_WIDTH
    max_height: int = MAX_SPRITE_HEIGHT
    vector_padding: int = VECTOR_PADDING
    rle_scheme: RleScheme = RleScheme.PACKBITS
    raw_header_size: int = RAW_HEADER_SIZE


DEFAULT_LIMITS = SpriteLimits()


def classify_sprite(head: bytes) -> SpriteFormat:
    """Map the leading bytes of a payload to its sprite format."""
    if head.startswith(PNG_SIGNATURE):
        return SpriteFormat.PNG
    if head.startswith(WALLPAPER_MAGIC):
        return SpriteFormat.WALLPAPER
    if not head:
        return SpriteFormat.RAW
    tag = head[0]
    if tag & VECTOR_TAG_MASK == VECTOR_TAG_MASK:
        return SpriteFormat.VECTOR
    if tag == FORMAT_ATLAS:
        return SpriteFormat.ATLAS
    if tag == FORMAT_RLE:
        return SpriteFormat.GENERIC_RLE
    return SpriteFormat.RAW


def _check_dims(
    width: int, height: int, max_width: int, max_height: int, what: str
) -> None:
    if not (0 < width <= max_width and 0 < height <= max_height):
        raise invalid_format(
            f"{what} dimensions out of range: {width}x{height}",
            {
                "width": width,
                "height": height,
                "max_width": max_width,
                "max_height": max_height,
            },
        )


# ---------------------------------------------------------------------------
# PNG pass-through
# ---------------------------------------------------------------------------


_QUANTIZE_CHUNK = 4096


def quantize_rgba(rgba: np.ndarray, palette: Palette) -> bytes:
    """Map an ``(h, w, 4)`` RGBA array onto palette indices.

    Pixels with alpha below the threshold become index 0. Opaque pixels take
    the index in 1..255 whose RGB is nearest in L1 distance; ties resolve to
    the lowest index.
    """
    table = np.array(palette.rgba_table(), dtype=np.int32)[1:, :3]
    flat = rgba.reshape(-1, 4).astype(np.int32)
    out = np.zeros(flat.shape[0], dtype=np.uint8)
    opaque = flat[:, 3] >= PNG_ALPHA_THRESHOLD
    if opaque.any():
        colors = flat[opaque, :3]
        # unique colours keep the distance matrix small for flat-shaded art
        uniq, inverse = np.unique(colors, axis=0, return_inverse=True)
        best = np.empty(len(uniq), dtype=np.uint8)
        for start in range(0, len(uniq), _QUANTIZE_CHUNK):
            block = uniq[start : start + _QUANTIZE_CHUNK]
            dist = np.abs(block[:, None, :] - table[None, :, :]).sum(axis=2)
            best[start : start + len(block)] = dist.argmin(axis=1) + 1
        out[opaque] = best[inverse.reshape(-1)]
    return out.tobytes()


def _decode_png(
    cursor: BinaryCursor, length: int, palette: Palette, limits: SpriteLimits
) -> IndexedImage:
    blob = cursor.read_available(length)
    try:
        with Image.open(io.BytesIO(blob)) as im:
            width, height = im.size
            _check_dims(width, height, MAX_PNG_DIMENSION, MAX_PNG_DIMENSION, "PNG")
            rgba = np.asarray(im.convert("RGBA"))
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        EOFError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise invalid_format(f"Embedded PNG unreadable: {exc}") from exc
    return IndexedImage(width, height, quantize_rgba(rgba, palette))


# ---------------------------------------------------------------------------
# Wallpaper
# ---------------------------------------------------------------------------


def _decode_wallpaper(
    cursor: BinaryCursor, length: int, palette: Palette, limits: SpriteLimits
) -> IndexedImage:
    cursor.skip(len(WALLPAPER_MAGIC), "wallpaper.magic")
    size = WALLPAPER_WIDTH * WALLPAPER_HEIGHT
    data = cursor.read_available(length - len(WALLPAPER_MAGIC))
    pixels = decode_triplet(data, size)
    if len(pixels) < size:
        get_logger().debug(
            "Wallpaper stream short by %d pixels, padding", size - len(pixels)
        )
    return IndexedImage(WALLPAPER_WIDTH, WALLPAPER_HEIGHT, fit(pixels, size))


# ---------------------------------------------------------------------------
# Vector draw commands
# ---------------------------------------------------------------------------


def _run_commands(
    stream: bytes, paint: Callable[[int, int, int, int], None]
) -> None:
    x = y = 0
    i = 0
    n = len(stream)
    while i < n:
        cmd = stream[i]
        i += 1
        if cmd == 0:
            return
        if cmd & 0x80:
            x = cmd & 0x7F
        elif cmd & 0x40:
            if i >= n:
                raise truncated(
                    "Vector run missing colour byte", {"offset": i - 1}
                )
            run = cmd & 0x3F
            paint(x, y, run, stream[i])
            i += 1
            x += run
        else:
            y = cmd
            x = 0


def _decode_vector(
    cursor: BinaryCursor, length: int, palette: Palette, limits: SpriteLimits
) -> IndexedImage:
    cursor.skip(1, "vector.tag")
    stream = cursor.read_available(length - 1)

    extent = [0, -1]  # max x end, max y

    def measure(x: int, y: int, run: int, color: int) -> None:
        if run:
            extent[0] = max(extent[0], x + run)
            extent[1] = max(extent[1], y)

    _run_commands(stream, measure)
    if extent[0] == 0 or extent[1] < 0:
        raise invalid_format("Vector stream paints no pixels")
    width = extent[0] + limits.vector_padding
    height = extent[1] + 1 + limits.vector_padding
    _check_dims(width, height, limits.max_width, limits.max_height, "Vector")

    canvas = bytearray(width * height)

    def paint(x: int, y: int, run: int, color: int) -> None:
        row = y * width
        canvas[row + x : row + x + run] = bytes((color,)) * run

    _run_commands(stream, paint)
    return IndexedImage(width, height, bytes(canvas))


# ---------------------------------------------------------------------------
# Multi-sprite atlas
# ---------------------------------------------------------------------------


def _decode_atlas(
    cursor: BinaryCursor, length: int, palette: Palette, limits: SpriteLimits
) -> IndexedImage:
    base = cursor.position()
    end = base + length
    cursor.skip(1, "atlas.tag")
    count = cursor.read_u16_le("atlas.count")
    offsets = [cursor.read_u32_le(f"atlas.offset[{i}]") for i in range(count)]
    table_end = cursor.position() - base

    entries: List[Tuple[int, int, int, int]] = []  # offset, next, w, h
    for i, rel in enumerate(offsets):
        if rel < table_end or rel + 4 > length:
            raise invalid_format(
                f"Atlas entry {i} offset out of range",
                {"offset": rel, "length": length},
            )
        nxt = offsets[i + 1] if i + 1 < count else length
        cursor.seek_absolute(base + rel)
        w = cursor.read_u16_le("atlas.width")
        h = cursor.read_u16_le("atlas.height")
        if w == ATLAS_TERMINATOR and h == ATLAS_TERMINATOR:
            continue
        _check_dims(w, h, limits.max_width, limits.max_height, "Atlas entry")
        entries.append((rel + 4, max(rel + 4, min(nxt, length)), w, h))

    if not entries:
        raise invalid_format("Atlas holds no sprites", {"declared": count})
    width = max(w for _, _, w, _ in entries)
    height = sum(h for _, _, _, h in entries)
    _check_dims(width, height, limits.max_width, MAX_ATLAS_HEIGHT, "Atlas")

    decode = decoder_for(limits.rle_scheme)
    canvas = bytearray(width * height)
    frames: List[Frame] = []
    top = 0
    for start, stop, w, h in entries:
        cursor.seek_absolute(base + start)
        data = cursor.read_bytes(min(stop, end - base) - start, "atlas.data")
        pixels = fit(decode(data, w * h), w * h)
        for row in range(h):
            dst = (top + row) * width
            canvas[dst : dst + w] = pixels[row * w : (row + 1) * w]
        frames.append(Frame(0, top, w, h))
        top += h
    get_logger().debug(
        "Atlas: %d sprites (%d declared) -> %dx%d",
        len(entries),
        count,
        width,
        height,
    )
    cursor.seek_absolute(end)
    return IndexedImage(width, height, bytes(canvas), frames)


# ---------------------------------------------------------------------------
# Generic RLE and raw
# ---------------------------------------------------------------------------


def _read_dims(cursor: BinaryCursor, limits: SpriteLimits, what: str):
    width = cursor.read_u16_le(f"{what}.width")
    height = cursor.read_u16_le(f"{what}.height")
    _check_dims(width, height, limits.max_width, limits.max_height, what)
    return width, height


def _decode_generic_rle(
    cursor: BinaryCursor, length: int, palette: Palette, limits: SpriteLimits
) -> IndexedImage:
    cursor.skip(1, "rle.tag")
    width, height = _read_dims(cursor, limits, "rle")
    size = width * height
    data = cursor.read_available(length - 5)
    pixels = decoder_for(limits.rle_scheme)(data, size)
    return IndexedImage(width, height, fit(pixels, size))


def _read_frames(cursor: BinaryCursor, width: int, height: int) -> List[Frame]:
    if cursor.remaining() < 2:
        return []
    count = cursor.read_u16_le("frames.count")
    if not 0 < count < MAX_FRAME_COUNT:
        return []
    frames: List[Frame] = []
    logger = get_logger()
    for i in range(min(count, cursor.remaining() // 8)):
        frame = Frame(
            cursor.read_u16_le("frame.x"),
            cursor.read_u16_le("frame.y"),
            cursor.read_u16_le("frame.width"),
            cursor.read_u16_le("frame.height"),
        )
        if frame.inside(width, height):
            frames.append(frame)
        else:
            logger.debug("Dropping frame %d %s outside %dx%d", i, frame, width, height)
    return frames


def _decode_raw(
    cursor: BinaryCursor, length: int, palette: Palette, limits: SpriteLimits
) -> IndexedImage:
    end = cursor.position() + length
    header = cursor.read_bytes(limits.raw_header_size, "raw.header")
    if len(header) == 4:
        declared = int.from_bytes(header, "little")
        if declared != length:
            get_logger().debug(
                "Raw sprite declares %d bytes, record holds %d", declared, length
            )
    width, height = _read_dims(cursor, limits, "raw")
    size = width * height
    pixels = cursor.read_available(min(size, end - cursor.position()))
    frames = _read_frames(cursor.window(end - cursor.position()), width, height)
    return IndexedImage(width, height, fit(pixels, size), frames)


_DECODERS: Dict[
    SpriteFormat,
    Callable[[BinaryCursor, int, Palette, SpriteLimits], IndexedImage],
] = {
    SpriteFormat.PNG: _decode_png,
    SpriteFormat.WALLPAPER: _decode_wallpaper,
    SpriteFormat.VECTOR: _decode_vector,
    SpriteFormat.ATLAS: _decode_atlas,
    SpriteFormat.GENERIC_RLE: _decode_generic_rle,
    SpriteFormat.RAW: _decode_raw,
}


def decode_sprite(
    cursor: BinaryCursor,
    byte_length: int,
    palette: Palette,
    limits: SpriteLimits = DEFAULT_LIMITS,
) -> IndexedImage:
    """Decode the ``byte_length`` payload starting at the cursor position."""
    window = cursor.window(byte_length)
    length = window.remaining()
    fmt = classify_sprite(window.peek(4))
    image = _DECODERS[fmt](window, length, palette, limits)
    image.format = fmt
    cursor.seek_absolute(cursor.position() + length)
    return image
