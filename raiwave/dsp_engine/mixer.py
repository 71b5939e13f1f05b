"""Two-source remix: tempo/key-aligned playback summed into one limiter.

Source A plays at ``tempo_ratio``; source B at ``tempo_ratio`` times the
key + fine shift, so B is re-pitched relative to A while both follow the
shared tempo control. The mix is as long as the longer scaled source.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..errors import MixFailure
from ..params import RemixAlignment
from .buffer import PcmBuffer
from .dynamics import create_mix_limiter
from .playback import output_length, play_at_rate, stretched_duration
from .render import ProgressCallback

logger = logging.getLogger(__name__)

MIX_SAMPLE_RATE = 44100
SOURCE_GAIN = 0.8

MIX_FAILED_MESSAGE = "Mixing failed. Please check audio files."


def _notify(progress: Optional[ProgressCallback], percent: int) -> None:
    if progress is not None:
        progress(percent)


def mix(
    source_a: PcmBuffer,
    source_b: PcmBuffer,
    alignment: RemixAlignment,
    progress: Optional[ProgressCallback] = None,
) -> PcmBuffer:
    """Blend two sources after independent rate scaling.

    Raises:
        MixFailure: for any failure; the individual cause is only logged.
    """

    _notify(progress, 10)
    try:
        alignment.validate()
        rate_a = alignment.rate_a
        rate_b = alignment.rate_b

        duration = max(
            stretched_duration(source_a.duration, rate_a),
            stretched_duration(source_b.duration, rate_b),
        )
        length = output_length(duration, 1.0, MIX_SAMPLE_RATE)
        _notify(progress, 40)

        bus = play_at_rate(source_a, rate_a, MIX_SAMPLE_RATE, length) * SOURCE_GAIN
        bus = bus + play_at_rate(source_b, rate_b, MIX_SAMPLE_RATE, length) * SOURCE_GAIN
        _notify(progress, 60)

        mixed = create_mix_limiter(MIX_SAMPLE_RATE).process(bus)
        result = PcmBuffer(mixed, MIX_SAMPLE_RATE)
    except Exception as exc:
        logger.exception("[mix] mixing error: %s", exc)
        raise MixFailure(MIX_FAILED_MESSAGE) from exc

    _notify(progress, 90)
    return result
