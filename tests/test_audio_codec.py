import struct

import pytest

from prdkit.codec.audio import (
    PcmBuffer,
    decode_ms_adpcm,
    decode_riff,
    decode_snd,
    ms_adpcm_output_size,
    pcm8_to_pcm16,
)
from prdkit.codec.cursor import BinaryCursor
from prdkit.codec.errors import InvalidFormat, InvalidParameters, TruncatedInput

from prd_builders import adpcm_block, riff_payload, snd_payload


def _samples(pcm: bytes):
    return list(struct.unpack(f"<{len(pcm) // 2}h", pcm))


@pytest.mark.parametrize("data", [b"", b"\x80", bytes(range(256))])
def test_pcm8_widening(data):
    out = pcm8_to_pcm16(data)
    assert len(out) == 2 * len(data)
    assert _samples(out) == [(b - 128) << 8 for b in data]


def test_adpcm_reference_block():
    block = adpcm_block(0, 16, 0, 0, b"\x12\x7f")
    pcm = decode_ms_adpcm(block, 0, len(block), 1, len(block))
    assert _samples(pcm) == [0, 0, 16, 48, 160, 122]


def test_adpcm_prediction_truncates_toward_zero():
    # (-5 * 192) / 256 = -3.75 and (-3 * 192 - 5 * 64) / 256 = -3.5
    block = adpcm_block(3, 16, -5, 0, b"\x00")
    pcm = decode_ms_adpcm(block, 0, len(block), 1, 8)
    assert _samples(pcm) == [0, -5, -3, -3]


def test_adpcm_zero_nibbles_decay():
    block = adpcm_block(4, 16, 1000, 0, b"\x00" * 8)
    samples = _samples(decode_ms_adpcm(block, 0, len(block), 1, len(block)))
    tail = [abs(s) for s in samples[1:]]
    assert tail == sorted(tail, reverse=True)
    assert tail[-1] < tail[0]


def test_adpcm_silent_block_stays_silent():
    block = adpcm_block(0, 16, 0, 0, b"\x00" * 4)
    samples = _samples(decode_ms_adpcm(block, 0, len(block), 1, len(block)))
    assert samples == [0] * 10


def test_adpcm_predictor_index_clamped():
    clamped = adpcm_block(9, 16, 100, 50, b"\x00")
    explicit = adpcm_block(6, 16, 100, 50, b"\x00")
    assert decode_ms_adpcm(clamped, 0, 8, 1, 8) == decode_ms_adpcm(
        explicit, 0, 8, 1, 8
    )


def test_adpcm_stereo_interleaves_channels():
    header = struct.pack("<BBhhhhhh", 0, 0, 16, 16, 1, 2, 3, 4)
    block = header + b"\x10\x00"
    pcm = decode_ms_adpcm(block, 0, len(block), 2, 16)
    samples = _samples(pcm)
    assert len(pcm) == ms_adpcm_output_size(16, 2, 16) == 16
    # sample2 pair, sample1 pair, then left/right from each nibble byte
    assert samples[:4] == [3, 4, 1, 2]
    assert samples[4] == 1 + 16  # left: sample1 + nibble 1 * delta
    assert samples[5] == 2  # right: zero nibble


def test_adpcm_respects_offset_and_partial_blocks():
    block = adpcm_block(0, 16, 0, 0, b"\x12\x7f")
    buffer = b"\xaa" * 5 + block + block[:8]
    pcm = decode_ms_adpcm(buffer, 5, len(block) + 8, 1, len(block))
    samples = _samples(pcm)
    assert samples[:6] == [0, 0, 16, 48, 160, 122]
    assert len(samples) == 6 + 4
    assert len(pcm) == ms_adpcm_output_size(len(block) + 8, 1, len(block))


def test_adpcm_tiny_trailing_block_contributes_nothing():
    block = adpcm_block(0, 16, 0, 0, b"\x12\x7f")
    pcm = decode_ms_adpcm(block + b"\x00\x00\x00", 0, 12, 1, 9)
    assert len(pcm) == 12


@pytest.mark.parametrize("channels", [0, 3])
def test_adpcm_rejects_channel_count(channels):
    with pytest.raises(InvalidParameters):
        decode_ms_adpcm(b"\x00" * 32, 0, 32, channels, 16)


def test_adpcm_rejects_block_smaller_than_header():
    with pytest.raises(InvalidParameters):
        ms_adpcm_output_size(100, 2, 10)


def test_adpcm_output_size_overflow():
    with pytest.raises(InvalidParameters):
        ms_adpcm_output_size(2**31, 1, 2048)


def test_adpcm_range_outside_buffer():
    with pytest.raises(InvalidParameters):
        decode_ms_adpcm(b"\x00" * 8, 4, 8, 1, 8)


def test_decode_snd():
    pcm = decode_snd(BinaryCursor(snd_payload(b"\x00\x80\xff")), 11025)
    assert pcm.channel_count == 1
    assert pcm.sample_rate == 11025
    assert _samples(pcm.samples) == [-32768, 0, 32512]


def test_decode_snd_rejects_bad_tag():
    data = struct.pack("<HI", 3, 0) + b"\x80"
    with pytest.raises(InvalidFormat):
        decode_snd(BinaryCursor(data))


def test_decode_snd_truncated_header():
    with pytest.raises(TruncatedInput):
        decode_snd(BinaryCursor(b"\x04\x00\x01"))


def test_decode_riff_adpcm():
    block = adpcm_block(0, 16, 0, 0, b"\x12\x7f")
    data = riff_payload(2, 1, 22050, 9, 4, block, [(b"LIST", b"abc")])
    pcm = decode_riff(BinaryCursor(data))
    assert pcm.sample_rate == 22050
    assert _samples(pcm.samples) == [0, 0, 16, 48, 160, 122]


def test_decode_riff_pcm16_passthrough():
    raw = struct.pack("<4h", 1, -1, 300, -300)
    pcm = decode_riff(BinaryCursor(riff_payload(1, 2, 8000, 4, 16, raw)))
    assert pcm.channel_count == 2
    assert pcm.frame_count == 2
    assert pcm.samples == raw


@pytest.mark.parametrize("fmt,bits", [(2, 8), (1, 8), (85, 0)])
def test_decode_riff_rejects_other_encodings(fmt, bits):
    data = riff_payload(fmt, 1, 22050, 9, bits, b"\x00" * 9)
    with pytest.raises(InvalidFormat):
        decode_riff(BinaryCursor(data))


def test_decode_riff_requires_data_chunk():
    data = riff_payload(2, 1, 22050, 9, 4, b"")
    data = data[: data.index(b"data")]
    with pytest.raises(InvalidFormat):
        decode_riff(BinaryCursor(data))


def test_decode_riff_requires_riff_magic():
    with pytest.raises(InvalidFormat):
        decode_riff(BinaryCursor(b"RIFX" + b"\x00" * 20))


def test_pcm_buffer_validates_frames():
    with pytest.raises(InvalidParameters):
        PcmBuffer(2, 22050, b"\x00\x00")
    with pytest.raises(InvalidParameters):
        PcmBuffer(4, 22050, b"")
