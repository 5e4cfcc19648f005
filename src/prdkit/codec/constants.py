"""Binary layout constants for PRD directory files and PRS payloads."""

from __future__ import annotations

# Directory (.PRD) layout
PRD_PREFIX_SIZE = 2
PRD_CONTAINER_NAME_SIZE = 256
PRD_RESERVED_SIZE = 12
RECORD_PREFIX_SIZE = 10
RECORD_TYPE_SIZE = 4
RECORD_NAME_SIZE = 18

# Asset type tags
ASSET_SND = "SND"
ASSET_PCM = "PCM"
ASSET_CLU = "CLU"
ASSET_PAK = "PAK"

# Sound payloads
SND_HEADER_TAG = 4
SND_DEFAULT_SAMPLE_RATE = 22050
WAVE_FORMAT_PCM = 1
WAVE_FORMAT_MS_ADPCM = 2
MAX_PCM_BYTES = 2**31 - 1

# Palettes
PALETTE_SIZE = 256
CLU_MAGIC = 0x00554C43  # 'CLU\0'
CLU_SIGNATURE = b"CLU\x00"

# Sprites
PNG_SIGNATURE = b"\x89PNG"
WALLPAPER_MAGIC = b"WPR"
WALLPAPER_WIDTH = 640
WALLPAPER_HEIGHT = 480
FORMAT_RLE = 0x01
FORMAT_ATLAS = 0x02
VECTOR_TAG_MASK = 0xC0
ATLAS_TERMINATOR = 0xFFFF
MAX_SPRITE_WIDTH = 800
MAX_SPRITE_HEIGHT = 600
MAX_PNG_DIMENSION = 1024
MAX_ATLAS_HEIGHT = 8192
MAX_FRAME_COUNT = 1000
# raw sprites open with a u32 size field ahead of width and height
RAW_HEADER_SIZE = 4
PNG_ALPHA_THRESHOLD = 128
VECTOR_PADDING = 2
RLE_MAX_RUN = 0x7F
RLE_MAX_LOOP_DEPTH = 8
