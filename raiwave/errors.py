"""Error taxonomy for the RaiWave DSP engine.

Every failure is local to one render or mix call; the engine keeps no state
between calls, so callers can simply retry with the same or adjusted
parameters.
"""
from __future__ import annotations


class DspError(Exception):
    """Base class for all engine failures surfaced to callers."""

    code = "DSP_ERROR"


class DecodeFailure(DspError):
    """The source could not be decoded into PCM."""

    code = "DSP_DECODE_FAILED"


class GraphConstructionFailure(DspError, ValueError):
    """The parameter set cannot produce a stable signal graph."""

    code = "DSP_INVALID_PARAMETERS"


class RenderFailure(DspError):
    """Graph execution failed; no output was produced."""

    code = "DSP_PROCESSING_FAILED"


class MixFailure(DspError):
    """Either remix source failed to decode or the combined render failed.

    Sources are deliberately not reported individually.
    """

    code = "DSP_MIX_FAILED"
