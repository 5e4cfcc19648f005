from .io import read_asset_bytes, read_container
from .paths import NameAllocator, normalize_filename

__all__ = [
    "NameAllocator",
    "normalize_filename",
    "read_asset_bytes",
    "read_container",
]
