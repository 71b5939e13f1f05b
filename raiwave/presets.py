"""Built-in one-click presets.

Voice presets change the character of the voice (child, giant, robot,
alien, choir); style presets reproduce popular edits (nightcore, slowed +
reverb, a subtle re-pitch). Each preset is a set of overrides applied on
top of the caller's current parameters after the modulation effects have
been switched off, so presets never stack with each other's FX.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Literal, Optional

from .params import ParameterSet

PresetKind = Literal["voice", "style"]


@dataclass(frozen=True)
class PresetMeta:
    """Describes a built-in preset.

    key:         Internal id used by the API.
    name:        Human-readable label.
    kind:        voice | style.
    description: Short UX description.
    overrides:   ParameterSet fields the preset sets.
    """

    key: str
    name: str
    kind: PresetKind
    description: str
    overrides: Dict[str, float]


# Effects cleared before any preset is applied.
_FX_RESET: Dict[str, float] = {
    "ring_mod_amount": 0.0,
    "vibrato_depth": 0.0,
    "backing_vocals_amount": 0.0,
}

BUILTIN_PRESETS: List[PresetMeta] = [
    PresetMeta(
        key="child",
        name="Child",
        kind="voice",
        description="Higher, brighter voice with the low end thinned out.",
        overrides={"pitch_semitones": 6.0, "time_stretch": 1.0, "eq_bass": -5.0, "eq_air": 5.0},
    ),
    PresetMeta(
        key="giant",
        name="Giant",
        kind="voice",
        description="Deep, heavy voice with extra weight and a touch of grit.",
        overrides={"pitch_semitones": -4.0, "time_stretch": 1.0, "eq_bass": 8.0, "eq_air": -5.0, "drive": 0.2},
    ),
    PresetMeta(
        key="robot",
        name="Robot",
        kind="voice",
        description="Metallic ring-modulated voice.",
        overrides={"pitch_semitones": 0.0, "ring_mod_amount": 0.6, "drive": 0.4},
    ),
    PresetMeta(
        key="alien",
        name="Alien",
        kind="voice",
        description="Deep fast vibrato with a slap of echo.",
        overrides={"pitch_semitones": 0.0, "vibrato_depth": 8.0, "vibrato_rate_hz": 10.0, "delay_mix": 0.2},
    ),
    PresetMeta(
        key="chorus",
        name="Chorus",
        kind="voice",
        description="Doubled backing layer with a wider, roomier image.",
        overrides={"backing_vocals_amount": 0.6, "reverb_mix": 0.3, "stereo_width": 0.8},
    ),
    PresetMeta(
        key="nightcore",
        name="Nightcore",
        kind="style",
        description="Faster and higher with extra air.",
        overrides={"pitch_semitones": 3.0, "time_stretch": 0.88, "eq_air": 3.0, "denoise": 0.0},
    ),
    PresetMeta(
        key="slowed",
        name="Slowed + Reverb",
        kind="style",
        description="Slower, lower and washed in a long reverb.",
        overrides={
            "pitch_semitones": -3.0,
            "time_stretch": 1.15,
            "reverb_mix": 0.5,
            "reverb_decay_sec": 2.5,
            "eq_bass": 4.0,
        },
    ),
    PresetMeta(
        key="copyright_bypass",
        name="Subtle Re-pitch",
        kind="style",
        description="Slight pitch and tempo offset with light colouring.",
        overrides={
            "pitch_semitones": 0.7,
            "time_stretch": 0.97,
            "drive": 0.15,
            "eq_mid": 1.5,
            "stereo_width": 0.6,
        },
    ),
]

_BY_KEY: Dict[str, PresetMeta] = {p.key: p for p in BUILTIN_PRESETS}


def list_presets(kind: Optional[PresetKind] = None) -> List[PresetMeta]:
    if kind is None:
        return list(BUILTIN_PRESETS)
    return [p for p in BUILTIN_PRESETS if p.kind == kind]


def get_preset(key: str) -> PresetMeta:
    normalized = (key or "").lower().strip().replace("-", "_").replace(" ", "_")
    try:
        return _BY_KEY[normalized]
    except KeyError:
        raise KeyError(f"Unknown preset: {key}") from None


def apply_preset(params: ParameterSet, key: str) -> ParameterSet:
    """Return ``params`` with FX reset and the preset's overrides applied."""

    preset = get_preset(key)
    return replace(params, **{**_FX_RESET, **preset.overrides})
