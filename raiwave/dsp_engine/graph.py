"""Signal-graph construction for the enhancement chain.

A graph is built fresh for every render from a ``ParameterSet``:

    source -> serial chain -> (dry + parallel sends) -> master section

Every stage is a small object exposing ``name`` and ``process(x)``. Optional
stages (ring mod, drive, vibrato, sends) are left out of the graph entirely
when their control is at zero, so "off" never leaves numerical residue.

Stage order is fixed: filters, ring mod, drive, EQ, vibrato, then the
backing-vocal/delay/reverb sends, then compressor, panner, master gain and
limiter.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

import numpy as np

from ..errors import GraphConstructionFailure
from ..params import ParameterSet
from .biquad_eq import BUTTERWORTH_Q, BiquadFilter, FilterType, design_biquad
from .buffer import PcmBuffer
from .delay import FeedbackDelay, create_doubler_delay, create_vibrato
from .dynamics import create_bus_compressor, create_master_limiter
from .modulation import RingModulator
from .playback import output_length, play_at_rate
from .reverb import create_reverb
from .saturation import create_drive_shaper
from .stereo import Gain, StereoPanner

OUTPUT_SAMPLE_RATE = 48000
EFFECT_TAIL_SECONDS = 2.0


class Stage(Protocol):
    name: str

    def process(self, x: np.ndarray) -> np.ndarray:
        ...


@dataclass
class VarispeedSource:
    """Graph input: the decoded buffer played at one combined rate."""

    buffer: PcmBuffer
    rate: float
    sample_rate: int
    length: int
    name: str = "source"

    def render(self) -> np.ndarray:
        return play_at_rate(self.buffer, self.rate, self.sample_rate, self.length)


@dataclass
class Send:
    """Parallel branch tapped from the chain output and summed before dynamics."""

    name: str
    stages: List[Stage]
    level: float

    def process(self, x: np.ndarray) -> np.ndarray:
        y = x
        for stage in self.stages:
            y = stage.process(y)
        return y * self.level


@dataclass
class SignalGraph:
    source: VarispeedSource
    chain: List[Stage] = field(default_factory=list)
    sends: List[Send] = field(default_factory=list)
    master: List[Stage] = field(default_factory=list)

    @property
    def sample_rate(self) -> int:
        return self.source.sample_rate

    @property
    def length(self) -> int:
        return self.source.length

    def stage_names(self) -> List[str]:
        names = [self.source.name]
        names.extend(stage.name for stage in self.chain)
        names.extend(send.name for send in self.sends)
        names.extend(stage.name for stage in self.master)
        return names

    def has_stage(self, name: str) -> bool:
        return name in self.stage_names()

    def run(self) -> np.ndarray:
        """Execute the graph and return ``[2, length]`` float64 samples."""

        x = self.source.render()
        for stage in self.chain:
            x = stage.process(x)

        bus = x
        for send in self.sends:
            bus = bus + send.process(x)

        for stage in self.master:
            bus = stage.process(bus)
        return bus


def _filter(
    name: str,
    ftype: FilterType,
    freq: float,
    sr: int,
    gain_db: float = 0.0,
    q: float = BUTTERWORTH_Q,
) -> BiquadFilter:
    filt = design_biquad(ftype, freq, sr, gain_db=gain_db, q=q)
    filt.name = name
    return filt


def build_graph(
    params: ParameterSet,
    source: PcmBuffer,
    *,
    output_sample_rate: int = OUTPUT_SAMPLE_RATE,
    tail_sec: float = EFFECT_TAIL_SECONDS,
    rng: Optional[np.random.Generator] = None,
) -> SignalGraph:
    """Assemble the enhancement graph for one render.

    Raises:
        GraphConstructionFailure: when the parameters cannot give a stable,
            finite graph (e.g. delay feedback >= 1 or a negative decay).
    """

    params.validate()
    sr = int(output_sample_rate)
    if sr <= 0:
        raise GraphConstructionFailure(f"Output sample rate must be positive, got {output_sample_rate}")

    rate = params.playback_rate
    length = output_length(source.duration, rate, sr, tail_sec=tail_sec)
    graph = SignalGraph(source=VarispeedSource(buffer=source, rate=rate, sample_rate=sr, length=length))

    # Noise shaping and de-essing
    graph.chain.append(_filter("highpass", "highpass", 70.0 + 200.0 * params.denoise, sr))
    graph.chain.append(_filter("lowpass", "lowpass", 19000.0 - 5000.0 * params.denoise, sr))
    graph.chain.append(_filter("deesser", "peaking", 7000.0, sr, gain_db=-12.0 * params.de_ess, q=1.0 + params.de_ess))

    if params.ring_mod_amount > 0.0:
        graph.chain.append(RingModulator(sr=sr, amount=params.ring_mod_amount))

    if params.drive > 0.0:
        graph.chain.append(create_drive_shaper(params.drive))

    graph.chain.append(_filter("eq_bass", "lowshelf", 200.0, sr, gain_db=params.eq_bass))
    graph.chain.append(_filter("eq_mid", "peaking", 1500.0, sr, gain_db=params.eq_mid, q=1.0))
    graph.chain.append(_filter("eq_air", "highshelf", 8000.0, sr, gain_db=params.eq_air))

    if params.vibrato_depth > 0.0:
        graph.chain.append(create_vibrato(sr, params.vibrato_depth, params.effective_vibrato_rate_hz))

    if params.backing_vocals_amount > 0.0:
        graph.sends.append(
            Send(
                name="backing_vocals",
                stages=[create_doubler_delay(sr), _filter("backing_vocals_highpass", "highpass", 300.0, sr)],
                level=params.backing_vocals_amount,
            )
        )

    if params.delay_mix > 0.0:
        delay = FeedbackDelay(sr=sr, time_sec=params.effective_delay_time_sec, feedback=params.effective_delay_feedback)
        graph.sends.append(Send(name="delay", stages=[delay], level=params.delay_mix))

    reverb_level = params.reverb_send_gain
    if reverb_level > 0.0:
        reverb = create_reverb(sr, params.effective_reverb_decay_sec, rng=rng)
        graph.sends.append(Send(name="reverb", stages=[reverb], level=reverb_level))

    graph.master.append(create_bus_compressor(sr))
    graph.master.append(StereoPanner(pan=0.0))
    graph.master.append(Gain(gain_db=params.master_gain_db, name="master_gain"))
    graph.master.append(create_master_limiter(sr))
    return graph
