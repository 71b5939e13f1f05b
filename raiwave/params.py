"""Parameter records consumed by the renderer and the remix mixer.

All records are frozen dataclasses: a render receives its parameters by
value and never mutates them. Interactive editing (undo/redo, persisted
presets) belongs to the caller.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping

from .errors import GraphConstructionFailure


# Keys written by the original web client and the camelCase names used in
# the engine documentation, both mapped onto dataclass field names.
_FIELD_ALIASES: Dict[str, str] = {
    "pitch": "pitch_semitones",
    "pitchSemitones": "pitch_semitones",
    "stretch": "time_stretch",
    "timeStretch": "time_stretch",
    "deess": "de_ess",
    "deEss": "de_ess",
    "eqBass": "eq_bass",
    "eqMid": "eq_mid",
    "eqAir": "eq_air",
    "vibratoDepth": "vibrato_depth",
    "vibratoSpeed": "vibrato_rate_hz",
    "vibratoRateHz": "vibrato_rate_hz",
    "ringMod": "ring_mod_amount",
    "ringModAmount": "ring_mod_amount",
    "backingVocals": "backing_vocals_amount",
    "backingVocalsAmount": "backing_vocals_amount",
    "delay": "delay_mix",
    "delayMix": "delay_mix",
    "delayTime": "delay_time_sec",
    "delayTimeSec": "delay_time_sec",
    "delayFeedback": "delay_feedback",
    "reverb": "reverb_mix",
    "reverbMix": "reverb_mix",
    "reverbDecay": "reverb_decay_sec",
    "reverbDecaySec": "reverb_decay_sec",
    "masterReverb": "reverb_output_gain",
    "reverbOutputGain": "reverb_output_gain",
    "stereo": "stereo_width",
    "stereoWidth": "stereo_width",
    "master": "master_gain_db",
    "masterGainDb": "master_gain_db",
    "key": "key_semitones",
    "keySemitones": "key_semitones",
    "tempo": "tempo_ratio",
    "tempoRatio": "tempo_ratio",
    "shift": "fine_shift_semitones",
    "fineShiftSemitones": "fine_shift_semitones",
}

# Fields that are mix levels or amounts; the UI keeps them in [0, 1].
UNIT_FIELDS = (
    "denoise",
    "de_ess",
    "drive",
    "ring_mod_amount",
    "backing_vocals_amount",
    "delay_mix",
    "delay_feedback",
    "reverb_mix",
)

DEFAULT_DELAY_TIME_SEC = 0.3
DEFAULT_DELAY_FEEDBACK = 0.3
DEFAULT_REVERB_DECAY_SEC = 1.5
DEFAULT_VIBRATO_RATE_HZ = 6.0


def _clip(value: float, lo: float, hi: float) -> float:
    return float(min(max(value, lo), hi))


def _normalise_keys(data: Mapping[str, Any], allowed: set) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(key, key)
        if name not in allowed or value is None:
            continue
        out[name] = float(value)
    return out


@dataclass(frozen=True)
class ParameterSet:
    """Per-enhancement controls. Defaults are the engine's initial state."""

    pitch_semitones: float = 0.0
    time_stretch: float = 1.0

    denoise: float = 0.1
    de_ess: float = 0.2
    eq_bass: float = 0.0
    eq_mid: float = 0.0
    eq_air: float = 0.0

    drive: float = 0.0

    vibrato_depth: float = 0.0
    vibrato_rate_hz: float = 0.0
    ring_mod_amount: float = 0.0
    backing_vocals_amount: float = 0.0

    delay_mix: float = 0.0
    delay_time_sec: float = DEFAULT_DELAY_TIME_SEC
    delay_feedback: float = DEFAULT_DELAY_FEEDBACK
    reverb_mix: float = 0.1
    reverb_decay_sec: float = DEFAULT_REVERB_DECAY_SEC
    reverb_output_gain: float = 1.0

    stereo_width: float = 0.1
    master_gain_db: float = 0.0

    @property
    def playback_rate(self) -> float:
        """Single rate that changes speed and pitch together."""
        return (2.0 ** (self.pitch_semitones / 12.0)) / self.time_stretch

    @property
    def effective_delay_time_sec(self) -> float:
        return self.delay_time_sec if self.delay_time_sec > 0.0 else DEFAULT_DELAY_TIME_SEC

    @property
    def effective_delay_feedback(self) -> float:
        return self.delay_feedback if self.delay_feedback > 0.0 else DEFAULT_DELAY_FEEDBACK

    @property
    def effective_reverb_decay_sec(self) -> float:
        return self.reverb_decay_sec if self.reverb_decay_sec > 0.0 else DEFAULT_REVERB_DECAY_SEC

    @property
    def effective_vibrato_rate_hz(self) -> float:
        return self.vibrato_rate_hz if self.vibrato_rate_hz > 0.0 else DEFAULT_VIBRATO_RATE_HZ

    @property
    def reverb_send_gain(self) -> float:
        return self.reverb_mix * self.reverb_output_gain

    def clamped(self) -> "ParameterSet":
        """Return a copy with every control inside its UI range."""

        values = asdict(self)
        for name in UNIT_FIELDS:
            values[name] = _clip(values[name], 0.0, 1.0)
        # feedback of exactly 1.0 never decays
        values["delay_feedback"] = _clip(values["delay_feedback"], 0.0, 0.95)
        values["pitch_semitones"] = _clip(self.pitch_semitones, -12.0, 12.0)
        values["time_stretch"] = _clip(self.time_stretch, 0.5, 1.5)
        values["vibrato_depth"] = _clip(self.vibrato_depth, 0.0, 10.0)
        values["vibrato_rate_hz"] = _clip(self.vibrato_rate_hz, 0.0, 20.0)
        values["delay_time_sec"] = _clip(self.delay_time_sec, 0.0, 1.0)
        values["reverb_decay_sec"] = _clip(self.reverb_decay_sec, 0.0, 10.0)
        values["reverb_output_gain"] = _clip(self.reverb_output_gain, 0.0, 2.0)
        values["stereo_width"] = _clip(self.stereo_width, 0.0, 1.0)
        values["eq_bass"] = _clip(self.eq_bass, -12.0, 12.0)
        values["eq_mid"] = _clip(self.eq_mid, -12.0, 12.0)
        values["eq_air"] = _clip(self.eq_air, -12.0, 12.0)
        values["master_gain_db"] = _clip(self.master_gain_db, -24.0, 12.0)
        return ParameterSet(**values)

    def validate(self) -> None:
        """Raise :class:`GraphConstructionFailure` for unstable combinations.

        Only values that would break the graph are rejected; range limits are
        the caller's business (see :meth:`clamped`).
        """

        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise GraphConstructionFailure(f"{f.name} must be finite, got {value!r}")

        if self.time_stretch <= 0.0:
            raise GraphConstructionFailure(f"time_stretch must be positive, got {self.time_stretch}")
        if not 0.0 <= self.delay_feedback < 1.0:
            raise GraphConstructionFailure(
                f"delay_feedback must be in [0, 1) for a stable feedback loop, got {self.delay_feedback}"
            )
        if self.delay_time_sec < 0.0:
            raise GraphConstructionFailure(f"delay_time_sec must not be negative, got {self.delay_time_sec}")
        if self.reverb_decay_sec < 0.0:
            raise GraphConstructionFailure(f"reverb_decay_sec must not be negative, got {self.reverb_decay_sec}")
        if self.vibrato_rate_hz < 0.0:
            raise GraphConstructionFailure(f"vibrato_rate_hz must not be negative, got {self.vibrato_rate_hz}")

    def updated(self, **changes: float) -> "ParameterSet":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ParameterSet":
        """Build from a flat record, starting from the engine defaults.

        Accepts field names, camelCase names and legacy client keys; unknown
        keys are ignored.
        """

        if not data:
            return cls()
        allowed = {f.name for f in fields(cls)}
        return cls(**_normalise_keys(data, allowed))


@dataclass(frozen=True)
class RemixAlignment:
    """Relative alignment of two remix sources.

    ``balance`` is carried for the UI but not used by the mixer.
    """

    key_semitones: float = 0.0
    tempo_ratio: float = 1.0
    fine_shift_semitones: float = 0.0
    balance: float = 0.5

    @property
    def rate_a(self) -> float:
        return self.tempo_ratio

    @property
    def rate_b(self) -> float:
        shift = self.key_semitones + self.fine_shift_semitones
        return self.tempo_ratio * (2.0 ** (shift / 12.0))

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise GraphConstructionFailure(f"{f.name} must be finite, got {value!r}")
        if self.tempo_ratio <= 0.0:
            raise GraphConstructionFailure(f"tempo_ratio must be positive, got {self.tempo_ratio}")

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RemixAlignment":
        if not data:
            return cls()
        allowed = {f.name for f in fields(cls)}
        return cls(**_normalise_keys(data, allowed))


@dataclass(frozen=True)
class Preset:
    """A named parameter set. Pure data; persistence is external."""

    name: str
    params: ParameterSet

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "params": self.params.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Preset":
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("Preset requires a non-empty name")
        return cls(name=name, params=ParameterSet.from_dict(data.get("params") or {}))
