"""Seekable little-endian reader over an in-memory buffer.

Every codec in prdkit parses through :class:`BinaryCursor`. Reads never run
past ``limit``; a short read raises :class:`TruncatedInput` carrying the
label of the field being read, so diagnostics point at the offending field.
"""

from __future__ import annotations

import struct

from .errors import truncated

__all__ = ["BinaryCursor", "codepoint_string"]

_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")

_REPLACEMENT = "\ufffd"


def _scalar(value: int) -> str:
    if 0xD800 <= value <= 0xDFFF or value > 0x10FFFF:
        return _REPLACEMENT
    return chr(value)


def codepoint_string(raw: bytes) -> str:
    """Decode ``raw`` treating every nonzero byte as one code point.

    Zero bytes are dropped wherever they appear (they are padding, not
    terminators).
    """
    return "".join(_scalar(b) for b in raw if b != 0)


class BinaryCursor:
    def __init__(
        self, data: bytes, position: int = 0, limit: int | None = None
    ) -> None:
        self._data = (
            data if isinstance(data, memoryview) else memoryview(bytes(data))
        )
        self._limit = len(self._data) if limit is None else min(
            limit, len(self._data)
        )
        if position < 0 or position > self._limit:
            raise truncated(
                f"Cursor start {position} outside 0..{self._limit}",
                {"position": position, "limit": self._limit},
            )
        self._pos = position

    # Position -----------------------------------------------------------
    def position(self) -> int:
        return self._pos

    @property
    def limit(self) -> int:
        return self._limit

    def remaining(self) -> int:
        return self._limit - self._pos

    def seek_absolute(self, pos: int) -> None:
        if pos < 0 or pos > self._limit:
            raise truncated(
                f"Seek to {pos} outside 0..{self._limit}",
                {"position": pos, "limit": self._limit},
            )
        self._pos = pos

    def skip(self, n: int, label: str = "skip") -> None:
        self._take(n, label)

    def window(self, length: int) -> "BinaryCursor":
        """Cursor over the next ``length`` bytes (clamped to the limit)."""
        end = min(self._pos + max(0, length), self._limit)
        return BinaryCursor(self._data, self._pos, end)

    # Reads --------------------------------------------------------------
    def _take(self, n: int, label: str) -> memoryview:
        if n < 0:
            raise truncated(f"Negative read for {label}: {n}")
        end = self._pos + n
        if end > self._limit:
            raise truncated(
                f"Out of range read for {label}: {self._pos}+{n}>{self._limit}",
                {"label": label, "position": self._pos, "size": n},
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def peek(self, n: int) -> bytes:
        end = min(self._pos + n, self._limit)
        return bytes(self._data[self._pos : end])

    def read_bytes(self, n: int, label: str = "bytes") -> bytes:
        return bytes(self._take(n, label))

    def read_available(self, n: int) -> bytes:
        """Read up to ``n`` bytes without failing on a short buffer."""
        n = max(0, min(n, self.remaining()))
        return bytes(self._take(n, "available"))

    def read_u8(self, label: str = "u8") -> int:
        return self._take(1, label)[0]

    def read_u16_le(self, label: str = "u16") -> int:
        return _U16.unpack(self._take(2, label))[0]

    def read_i16_le(self, label: str = "i16") -> int:
        return _I16.unpack(self._take(2, label))[0]

    def read_u32_le(self, label: str = "u32") -> int:
        return _U32.unpack(self._take(4, label))[0]

    def read_i32_le(self, label: str = "i32") -> int:
        return _I32.unpack(self._take(4, label))[0]

    def read_fixed_codepoint_string(self, n: int, label: str = "string") -> str:
        return codepoint_string(bytes(self._take(n, label)))
