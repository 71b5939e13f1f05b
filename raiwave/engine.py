"""Request-level orchestration on top of :mod:`raiwave.dsp_engine`.

Decodes uploaded audio, applies presets, renders full enhancements or
short previews, packages exports and runs remixes. Everything here is
synchronous; the HTTP layer calls it from worker threads.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

import numpy as np
import soundfile as sf

from .config import EngineConfig, load_config
from .dsp_engine.buffer import PcmBuffer
from .dsp_engine.mixer import MIX_FAILED_MESSAGE, mix
from .dsp_engine.render import ProgressCallback, RenderReport, render_with_report
from .dsp_engine.wav import WAV_CONTENT_TYPE, encode_wav
from .errors import DecodeFailure, MixFailure
from .params import ParameterSet, RemixAlignment
from .presets import apply_preset

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "RaiWave_"
# Bitrate or lossy-codec labels; anything else (HQ, Remix, ...) is lossless.
COMPRESSED_LABEL = re.compile(r"^(\d+k(bps)?|mp3|aac|ogg|opus)$", re.IGNORECASE)


@dataclass(frozen=True)
class ExportResult:
    """Encoded export ready for storage or download.

    Compressed labels (e.g. ``"320k"``) are still delivered as 16-bit WAV;
    ``lossless_fallback`` flags that the requested format was not produced.
    """

    filename: str
    content_type: str
    data: bytes
    label: str
    lossless_fallback: bool


def decode_audio(fileobj: BinaryIO) -> PcmBuffer:
    """Decode an uploaded file (any format libsndfile reads) into a PcmBuffer."""

    try:
        audio, sr = sf.read(fileobj, dtype="float32", always_2d=True)
        buffer = PcmBuffer.from_frames(audio, int(sr))
    except Exception as exc:
        logger.exception("[engine] failed to decode audio: %s", exc)
        raise DecodeFailure(f"Failed to read audio: {exc}") from exc

    if buffer.frames == 0:
        raise DecodeFailure("Failed to read audio: file contains no samples")
    if not np.all(np.isfinite(buffer.samples)):
        raise DecodeFailure("Failed to read audio: file contains NaN or infinite samples")
    return buffer


def make_rng(config: EngineConfig) -> np.random.Generator:
    return np.random.default_rng(config.impulse_seed)


def resolve_params(params: Optional[ParameterSet], preset: Optional[str]) -> ParameterSet:
    """Start from ``params`` (or defaults) and overlay ``preset`` if given."""

    resolved = params if params is not None else ParameterSet()
    if preset:
        resolved = apply_preset(resolved, preset)
    return resolved


def render_enhancement(
    source: PcmBuffer,
    params: ParameterSet,
    progress: Optional[ProgressCallback] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> Tuple[PcmBuffer, RenderReport]:
    cfg = config or load_config()
    return render_with_report(source, params, progress, rng=make_rng(cfg))


def render_preview(
    source: PcmBuffer,
    params: ParameterSet,
    progress: Optional[ProgressCallback] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> Tuple[PcmBuffer, RenderReport]:
    """Render only the head of ``source`` for quick auditioning."""

    cfg = config or load_config()
    clip = source.head(cfg.preview_seconds)
    logger.info("[engine] preview of %.2f s (source %.2f s)", clip.duration, source.duration)
    return render_with_report(clip, params, progress, rng=make_rng(cfg))


def _safe_label(label: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_.-]+", "_", (label or "").strip())
    return cleaned or "HQ"


def export_render(buffer: PcmBuffer, label: str = "HQ") -> ExportResult:
    name = _safe_label(label)
    fallback = COMPRESSED_LABEL.match(name) is not None
    if fallback:
        logger.warning("[engine] export label %r is not lossless; delivering 16-bit WAV instead", label)

    return ExportResult(
        filename=f"{EXPORT_PREFIX}{name}.wav",
        content_type=WAV_CONTENT_TYPE,
        data=encode_wav(buffer),
        label=name,
        lossless_fallback=fallback,
    )


def mix_uploads(
    file_a: BinaryIO,
    file_b: BinaryIO,
    alignment: RemixAlignment,
    progress: Optional[ProgressCallback] = None,
) -> PcmBuffer:
    """Decode both remix sources and mix them.

    A decode failure on either side surfaces as ``MixFailure`` without
    saying which source was bad.
    """

    try:
        source_a = decode_audio(file_a)
        source_b = decode_audio(file_b)
    except DecodeFailure as exc:
        raise MixFailure(MIX_FAILED_MESSAGE) from exc
    return mix(source_a, source_b, alignment, progress)
