"""Run-length schemes used by sprite payloads.

``triplet``
    Wallpaper scheme. ``0x00 count value`` expands to ``count`` copies of
    ``value``; any other byte is a literal pixel.
``packbits``
    Generic sprite scheme. Control byte ``c``: ``c & 0x80`` is a run of
    ``c & 0x7F`` copies of the next byte, otherwise ``c`` literal bytes
    follow.
``loop``
    Command-byte scheme with nested repetition. ``0x00`` ends the stream,
    ``0x01..0x7F`` is a literal block, ``0x80|n`` a run of ``n`` copies of the
    next byte, ``0xC0|n`` opens a loop repeating the enclosed commands ``n``
    times and a bare ``0xC0`` closes the innermost loop.

Every decoder takes ``limit`` and stops once that many bytes are produced, so
a hostile stream cannot grow the output past the caller's image size.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict

from .constants import RLE_MAX_LOOP_DEPTH, RLE_MAX_RUN
from .errors import invalid_format

__all__ = [
    "RleScheme",
    "decode_triplet",
    "decode_packbits",
    "encode_packbits",
    "decode_loop",
    "decoder_for",
    "fit",
]


class RleScheme(str, Enum):
    PACKBITS = "packbits"
    LOOP = "loop"


def fit(data: bytes | bytearray, size: int) -> bytes:
    """Truncate or zero-pad ``data`` to exactly ``size`` bytes."""
    if len(data) >= size:
        return bytes(data[:size])
    return bytes(data) + b"\x00" * (size - len(data))


def decode_triplet(src: bytes, limit: int) -> bytes:
    dst = bytearray()
    si = 0
    n = len(src)
    while si < n and len(dst) < limit:
        b = src[si]
        si += 1
        if b != 0:
            dst.append(b)
            continue
        if si + 2 > n:
            break
        count, value = src[si], src[si + 1]
        si += 2
        dst.extend(bytes((value,)) * min(count, limit - len(dst)))
    return bytes(dst)


def decode_packbits(src: bytes, limit: int) -> bytes:
    dst = bytearray()
    si = 0
    n = len(src)
    while si < n and len(dst) < limit:
        c = src[si]
        si += 1
        if c & 0x80:
            if si >= n:
                break
            count = min(c & 0x7F, limit - len(dst))
            dst.extend(bytes((src[si],)) * count)
            si += 1
        else:
            dst.extend(src[si : si + min(c, limit - len(dst))])
            si += c
    return bytes(dst)


def encode_packbits(data: bytes) -> bytes:
    """Canonical encoding: runs of two or more become run packets."""
    out = bytearray()
    literal = bytearray()

    def flush_literal() -> None:
        for start in range(0, len(literal), RLE_MAX_RUN):
            block = literal[start : start + RLE_MAX_RUN]
            out.append(len(block))
            out.extend(block)
        literal.clear()

    i = 0
    n = len(data)
    while i < n:
        j = i + 1
        while j < n and data[j] == data[i] and j - i < RLE_MAX_RUN:
            j += 1
        run = j - i
        if run >= 2:
            flush_literal()
            out.append(0x80 | run)
            out.append(data[i])
        else:
            literal.append(data[i])
        i = j
    flush_literal()
    return bytes(out)


def decode_loop(src: bytes, limit: int) -> bytes:
    dst = bytearray()
    stack: list[list[int]] = []  # [body_start, remaining]
    si = 0
    n = len(src)
    budget = 64 * (limit + n) + 64
    while si < n and len(dst) < limit:
        budget -= 1
        if budget < 0:
            raise invalid_format("RLE loop stream does not progress")
        c = src[si]
        si += 1
        if c == 0:
            break
        if c < 0x80:
            dst.extend(src[si : si + min(c, limit - len(dst))])
            si += c
        elif c < 0xC0:
            if si >= n:
                break
            count = min(c & 0x3F, limit - len(dst))
            dst.extend(bytes((src[si],)) * count)
            si += 1
        elif c & 0x3F:
            if len(stack) >= RLE_MAX_LOOP_DEPTH:
                raise invalid_format(
                    "RLE loop nesting too deep", {"offset": si - 1}
                )
            stack.append([si, c & 0x3F])
        else:
            if not stack:
                raise invalid_format(
                    "RLE loop end without start", {"offset": si - 1}
                )
            stack[-1][1] -= 1
            if stack[-1][1] > 0:
                si = stack[-1][0]
            else:
                stack.pop()
    if stack and len(dst) < limit:
        raise invalid_format("RLE loop not closed", {"depth": len(stack)})
    return bytes(dst)


_DECODERS: Dict[RleScheme, Callable[[bytes, int], bytes]] = {
    RleScheme.PACKBITS: decode_packbits,
    RleScheme.LOOP: decode_loop,
}


def decoder_for(scheme: RleScheme | str) -> Callable[[bytes, int], bytes]:
    return _DECODERS[RleScheme(scheme)]
