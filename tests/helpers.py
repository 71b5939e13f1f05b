import io

import numpy as np
import soundfile as sf

from raiwave.dsp_engine.buffer import PcmBuffer


def make_sine(
    duration_sec: float,
    sr: int = 44100,
    freq: float = 440.0,
    amplitude: float = 0.5,
    channels: int = 1,
) -> PcmBuffer:
    t = np.arange(int(round(duration_sec * sr))) / sr
    tone = amplitude * np.sin(2.0 * np.pi * freq * t)
    return PcmBuffer(np.tile(tone, (channels, 1)), sr)


def wav_bytes(buffer: PcmBuffer) -> bytes:
    """Encode with libsndfile, the way a client upload would arrive."""
    out = io.BytesIO()
    sf.write(out, buffer.samples.T, buffer.sample_rate, format="WAV", subtype="PCM_16")
    return out.getvalue()


def float_wav_bytes(buffer: PcmBuffer) -> bytes:
    out = io.BytesIO()
    sf.write(out, buffer.samples.T, buffer.sample_rate, format="WAV", subtype="FLOAT")
    return out.getvalue()
