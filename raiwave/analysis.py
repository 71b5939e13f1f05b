"""Auto-enhance: suggest parameters from a quick look at the source.

The heuristic only needs RMS energy and zero-crossing rate, measured on a
decimated view of the first channel. Analysis is advisory; any failure
yields an empty suggestion set instead of an error.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict

import numpy as np

from .dsp_engine.analysis import measure_loudness, spectral_centroid_hz
from .dsp_engine.buffer import PcmBuffer
from .params import ParameterSet

logger = logging.getLogger(__name__)

ANALYSIS_WINDOW_SEC = 30.0
ANALYSIS_STRIDE = 10
TARGET_RMS = 0.15
MAX_AUTO_GAIN_DB = 9.0

LOW_ZCR = 0.02
HIGH_ZCR = 0.15


def measure_energy(source: PcmBuffer) -> tuple[float, float]:
    """Return ``(rms, zcr)`` over the first 30 s of channel 0, stride 10."""

    data = source.channel(0).astype(np.float64)
    limit = min(data.shape[0], int(source.sample_rate * ANALYSIS_WINDOW_SEC))
    if limit <= 0:
        raise ValueError("Cannot analyse an empty buffer")

    picked = data[:limit:ANALYSIS_STRIDE]
    count = limit / ANALYSIS_STRIDE
    sum_squares = float(np.sum(picked * picked))
    crossings = int(np.count_nonzero(picked[1:] * picked[:-1] < 0.0))

    rms = float(np.sqrt(sum_squares / count))
    zcr = crossings / count
    if not (np.isfinite(rms) and np.isfinite(zcr)):
        raise ValueError("Source contains non-finite samples")
    return rms, zcr


def suggested_master_gain_db(rms: float) -> float:
    """Gain toward the target RMS, never negative, at most 9 dB."""

    gain_db = 20.0 * np.log10(TARGET_RMS / max(rms, 0.001))
    return float(np.clip(gain_db, 0.0, MAX_AUTO_GAIN_DB))


def analyze_buffer(source: PcmBuffer) -> Dict[str, float]:
    """Suggest ``ParameterSet`` field values for ``source``.

    Creative effects are reset to neutral; tone, gain and width are derived
    from the measurements.
    """

    try:
        rms, zcr = measure_energy(source)
    except Exception:
        logger.exception("[analysis] auto-enhance analysis failed")
        return {}

    suggestions: Dict[str, float] = {
        "pitch_semitones": 0.0,
        "time_stretch": 1.0,
        "drive": 0.0,
        "vibrato_depth": 0.0,
        "vibrato_rate_hz": 6.0,
        "ring_mod_amount": 0.0,
        "backing_vocals_amount": 0.0,
        "delay_time_sec": 0.3,
        "delay_feedback": 0.3,
        "reverb_decay_sec": 1.5,
    }

    if zcr < LOW_ZCR:
        # dull / bassy: open up the top, trim the lows
        suggestions.update(eq_air=5.0, eq_mid=2.0, eq_bass=-2.0, denoise=0.1, drive=0.3)
    elif zcr > HIGH_ZCR:
        # hissy / sibilant
        suggestions.update(eq_air=-2.0, denoise=0.4, de_ess=0.5)
    else:
        suggestions.update(eq_air=2.5, denoise=0.2, drive=0.1)

    suggestions["master_gain_db"] = suggested_master_gain_db(rms)
    suggestions["stereo_width"] = 0.5 if source.channels == 1 else 0.25
    suggestions["reverb_mix"] = 0.2
    suggestions["reverb_output_gain"] = 1.0
    return suggestions


def auto_enhance(source: PcmBuffer, params: ParameterSet) -> ParameterSet:
    """Overlay the analyzer's suggestions on ``params``."""

    return replace(params, **analyze_buffer(source))


def describe_source(source: PcmBuffer) -> Dict[str, Any]:
    """Level, loudness and brightness stats for the /analyze endpoint."""

    samples = source.samples
    loudness = measure_loudness(samples, source.sample_rate)
    rms = float(np.sqrt(np.mean(np.square(samples, dtype=np.float64)))) if source.frames else 0.0
    lufs = loudness.integrated_lufs
    return {
        "sample_rate": source.sample_rate,
        "channels": source.channels,
        "duration": source.duration,
        "rms": rms,
        "peak": source.peak(),
        "lufs": lufs if np.isfinite(lufs) else None,
        "brightness_hz": spectral_centroid_hz(samples, source.sample_rate),
    }
