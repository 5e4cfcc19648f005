from .png import to_pil, to_rgba_array, write_sprite
from .wav import write_wav

__all__ = ["to_pil", "to_rgba_array", "write_sprite", "write_wav"]
