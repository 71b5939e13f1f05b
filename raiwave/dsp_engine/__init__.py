"""Offline rendering engine for RaiWave.

Building blocks (biquads, waveshaper, delay lines, convolution reverb,
dynamics), the signal-graph builder, the offline renderer, the WAV encoder
and the two-source remix mixer.
"""
from .buffer import PcmBuffer
from .graph import EFFECT_TAIL_SECONDS, OUTPUT_SAMPLE_RATE, SignalGraph, build_graph
from .mixer import MIX_SAMPLE_RATE, mix
from .render import RenderReport, render, render_with_report
from .reverb import generate_impulse
from .saturation import generate_drive_curve
from .wav import decode_wav, encode_wav

__all__ = [
  "PcmBuffer",
  "SignalGraph",
  "build_graph",
  "render",
  "render_with_report",
  "RenderReport",
  "mix",
  "generate_impulse",
  "generate_drive_curve",
  "encode_wav",
  "decode_wav",
  "OUTPUT_SAMPLE_RATE",
  "EFFECT_TAIL_SECONDS",
  "MIX_SAMPLE_RATE",
]
