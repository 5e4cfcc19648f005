from .audio import (
    PcmBuffer,
    decode_ms_adpcm,
    decode_riff,
    decode_snd,
    ms_adpcm_output_size,
    pcm8_to_pcm16,
)
from .cursor import BinaryCursor, codepoint_string
from .directory import AssetRecord, DirectoryFile, parse_directory
from .errors import (
    ErrorScope,
    Failure,
    InvalidFormat,
    InvalidParameters,
    MissingContainer,
    PrdError,
    TruncatedInput,
)
from .palette import (
    ClutLayout,
    Palette,
    PaletteEntry,
    default_palette,
    find_palette_block,
    load_palette,
)
from .rle import RleScheme
from .sprite import (
    Frame,
    IndexedImage,
    SpriteFormat,
    SpriteLimits,
    classify_sprite,
    decode_sprite,
)

__all__ = [
    "AssetRecord",
    "BinaryCursor",
    "ClutLayout",
    "DirectoryFile",
    "ErrorScope",
    "Failure",
    "Frame",
    "IndexedImage",
    "InvalidFormat",
    "InvalidParameters",
    "MissingContainer",
    "Palette",
    "PaletteEntry",
    "PcmBuffer",
    "PrdError",
    "RleScheme",
    "SpriteFormat",
    "SpriteLimits",
    "TruncatedInput",
    "classify_sprite",
    "codepoint_string",
    "decode_ms_adpcm",
    "decode_riff",
    "decode_snd",
    "decode_sprite",
    "default_palette",
    "find_palette_block",
    "load_palette",
    "ms_adpcm_output_size",
    "parse_directory",
    "pcm8_to_pcm16",
]
