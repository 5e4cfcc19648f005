"""PNG output for decoded sprites.

An image is written as ``<stem>_sheet.png`` (the whole RGBA raster). When it
carries frames, each one is also cropped to ``<stem>/frame_<i>.png``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np
from PIL import Image

from ..codec.palette import Palette
from ..codec.sprite import IndexedImage

__all__ = ["to_rgba_array", "to_pil", "write_sprite"]


def to_rgba_array(image: IndexedImage, palette: Palette) -> np.ndarray:
    lut = np.array(palette.rgba_table(), dtype=np.uint8)
    indices = np.frombuffer(image.pixels, dtype=np.uint8).reshape(
        image.height, image.width
    )
    return lut[indices]


def to_pil(image: IndexedImage, palette: Palette) -> Image.Image:
    return Image.fromarray(to_rgba_array(image, palette))


def write_sprite(
    directory: Path,
    stem: str,
    image: IndexedImage,
    palette: Palette,
    write_frames: bool = True,
) -> List[Path]:
    """Write the sheet and frame crops; returns the paths written."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    sheet = to_pil(image, palette)
    written = [directory / f"{stem}_sheet.png"]
    sheet.save(written[0])
    if write_frames and image.frames:
        frame_dir = directory / stem
        frame_dir.mkdir(exist_ok=True)
        for i, frame in enumerate(image.frames):
            box = (frame.x, frame.y, frame.x + frame.width, frame.y + frame.height)
            target = frame_dir / f"frame_{i}.png"
            sheet.crop(box).save(target)
            written.append(target)
    return written
