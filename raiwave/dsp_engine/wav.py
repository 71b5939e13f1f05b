"""16-bit PCM RIFF/WAVE encoder.

Header layout (44 bytes, little-endian):

    0  "RIFF"            4  file size - 8      8  "WAVE"
    12 "fmt "            16 16 (fmt size)      20 1 (PCM)
    22 channels          24 sample rate        28 byte rate
    32 block align       34 bits per sample    36 "data"
    40 data length       44 interleaved int16 samples
"""
from __future__ import annotations

import struct

import numpy as np

from .buffer import PcmBuffer

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
HEADER_SIZE = _HEADER.size  # 44
BITS_PER_SAMPLE = 16
WAV_CONTENT_TYPE = "audio/wav"


def quantize_int16(samples: np.ndarray) -> np.ndarray:
    """Clip to [-1, 1] and scale asymmetrically to the int16 range.

    Negative values scale by 32768, the rest by 32767, truncating toward
    zero, so no upstream gain staging can overflow.
    """

    x = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(x < 0.0, x * 32768.0, x * 32767.0)
    return np.trunc(scaled).astype("<i2")


def encode_wav(buffer: PcmBuffer) -> bytes:
    channels = buffer.channels
    block_align = channels * BITS_PER_SAMPLE // 8
    data_len = buffer.frames * block_align

    header = _HEADER.pack(
        b"RIFF",
        HEADER_SIZE + data_len - 8,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        buffer.sample_rate,
        buffer.sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_len,
    )
    # [channels, frames] -> frame-major interleave
    interleaved = quantize_int16(buffer.samples).T.reshape(-1)
    return header + interleaved.tobytes()


def decode_wav(data: bytes) -> PcmBuffer:
    """Parse bytes produced by :func:`encode_wav` back into float samples."""

    if len(data) < HEADER_SIZE:
        raise ValueError("WAV data shorter than header")

    (riff, _size, wave, fmt, fmt_len, audio_format, channels, sample_rate,
     _byte_rate, block_align, bits, data_tag, data_len) = _HEADER.unpack_from(data, 0)

    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data":
        raise ValueError("Not a canonical RIFF/WAVE file")
    if fmt_len != 16 or audio_format != 1 or bits != BITS_PER_SAMPLE:
        raise ValueError("Only 16-bit PCM WAV is supported")
    if channels <= 0 or block_align != channels * 2:
        raise ValueError("Invalid channel layout in WAV header")

    payload = data[HEADER_SIZE : HEADER_SIZE + data_len]
    ints = np.frombuffer(payload, dtype="<i2").astype(np.float64)
    frames = ints.shape[0] // channels
    ints = ints[: frames * channels].reshape(frames, channels).T
    samples = np.where(ints < 0.0, ints / 32768.0, ints / 32767.0)
    return PcmBuffer(samples, sample_rate)
