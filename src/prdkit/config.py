"""Extraction settings, loadable from YAML or JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path, PurePath
from typing import Any

import yaml

from .codec.constants import (
    MAX_SPRITE_HEIGHT,
    MAX_SPRITE_WIDTH,
    RAW_HEADER_SIZE,
    SND_DEFAULT_SAMPLE_RATE,
    VECTOR_PADDING,
)
from .codec.palette import ClutLayout
from .codec.rle import RleScheme
from .codec.sprite import SpriteLimits

__all__ = ["ExtractConfig", "load_config", "config_from_dict"]


@dataclass(frozen=True, slots=True)
class ExtractConfig:
    pattern: str = "*.PRD"
    audio_dir: str = "audio"
    sprite_dir: str = "sprites"
    snd_sample_rate: int = SND_DEFAULT_SAMPLE_RATE
    palette_layout: ClutLayout = ClutLayout.AUTO
    # Load the first CLU block found in a container that has not loaded one
    # before its first sprite.
    scan_for_palette: bool = True
    rle_scheme: RleScheme = RleScheme.PACKBITS
    max_width: int = MAX_SPRITE_WIDTH
    max_height: int = MAX_SPRITE_HEIGHT
    vector_padding: int = VECTOR_PADDING
    # bytes ahead of width and height in a raw sprite (u32 size by default)
    raw_header_size: int = RAW_HEADER_SIZE
    write_frames: bool = True

    def __post_init__(self) -> None:
        # accept plain strings from YAML/JSON and CLI flags
        object.__setattr__(self, "palette_layout", ClutLayout(self.palette_layout))
        object.__setattr__(self, "rle_scheme", RleScheme(self.rle_scheme))
        for name in ("snd_sample_rate", "max_width", "max_height"):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("vector_padding", "raw_header_size"):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must not be negative")
        for name in ("audio_dir", "sprite_dir"):
            folder = PurePath(getattr(self, name))
            if folder.is_absolute() or ".." in folder.parts:
                raise ValueError(f"{name} must stay inside the output folder")

    @property
    def sprite_limits(self) -> SpriteLimits:
        return SpriteLimits(
            max_width=self.max_width,
            max_height=self.max_height,
            vector_padding=self.vector_padding,
            rle_scheme=self.rle_scheme,
            raw_header_size=self.raw_header_size,
        )

    def with_overrides(self, **overrides: Any) -> "ExtractConfig":
        """Copy with the non-None ``overrides`` applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def config_from_dict(data: dict[str, Any]) -> ExtractConfig:
    known = {f.name for f in fields(ExtractConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    return ExtractConfig(**data)


def load_config(path: str | Path) -> ExtractConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Root of config file must be a mapping")
    return config_from_dict(data)
