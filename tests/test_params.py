from dataclasses import FrozenInstanceError

import pytest

from raiwave.errors import GraphConstructionFailure
from raiwave.params import ParameterSet, Preset, RemixAlignment


def test_defaults_match_initial_state():
    params = ParameterSet()
    assert params.pitch_semitones == 0.0
    assert params.time_stretch == 1.0
    assert params.denoise == 0.1
    assert params.de_ess == 0.2
    assert params.reverb_mix == 0.1
    assert params.reverb_decay_sec == 1.5
    assert params.delay_time_sec == 0.3
    assert params.delay_feedback == 0.3
    assert params.playback_rate == 1.0


def test_playback_rate_combines_pitch_and_stretch():
    params = ParameterSet(pitch_semitones=12.0, time_stretch=2.0)
    assert params.playback_rate == pytest.approx(1.0)
    assert ParameterSet(pitch_semitones=-12.0).playback_rate == pytest.approx(0.5)


def test_from_dict_accepts_client_keys_and_ignores_unknown():
    params = ParameterSet.from_dict(
        {
            "pitch": 3,
            "stretch": 0.88,
            "deess": 0.5,
            "vibratoSpeed": 7.5,
            "masterReverb": 0.9,
            "master": 4,
            "eq_air": 2.0,
            "brandNewKnob": 1.0,
        }
    )
    assert params.pitch_semitones == 3.0
    assert params.time_stretch == 0.88
    assert params.de_ess == 0.5
    assert params.vibrato_rate_hz == 7.5
    assert params.reverb_output_gain == 0.9
    assert params.master_gain_db == 4.0
    assert params.eq_air == 2.0
    # untouched fields keep the defaults
    assert params.denoise == 0.1


def test_dict_round_trip():
    params = ParameterSet(drive=0.4, ring_mod_amount=0.6, eq_mid=-3.0)
    assert ParameterSet.from_dict(params.to_dict()) == params


def test_from_dict_rejects_non_numeric_values():
    with pytest.raises(ValueError):
        ParameterSet.from_dict({"drive": "loud"})


def test_clamped_keeps_controls_in_range():
    wild = ParameterSet(drive=3.0, delay_feedback=1.0, pitch_semitones=40.0, time_stretch=0.1, master_gain_db=99.0)
    tame = wild.clamped()
    assert tame.drive == 1.0
    assert tame.delay_feedback == 0.95
    assert tame.pitch_semitones == 12.0
    assert tame.time_stretch == 0.5
    assert tame.master_gain_db == 12.0
    tame.validate()


def test_validate_is_the_only_gate():
    ParameterSet(drive=5.0).validate()
    with pytest.raises(GraphConstructionFailure):
        ParameterSet(time_stretch=-1.0).validate()


def test_parameter_sets_are_immutable():
    params = ParameterSet()
    with pytest.raises(FrozenInstanceError):
        params.drive = 1.0  # type: ignore[misc]
    assert params.updated(drive=0.5).drive == 0.5
    assert params.drive == 0.0


def test_remix_alignment_from_client_keys():
    alignment = RemixAlignment.from_dict({"key": 2, "tempo": 1.1, "shift": -0.5, "balance": 0.3})
    assert alignment == RemixAlignment(key_semitones=2.0, tempo_ratio=1.1, fine_shift_semitones=-0.5, balance=0.3)
    with pytest.raises(GraphConstructionFailure):
        RemixAlignment(tempo_ratio=-1.0).validate()


def test_preset_round_trip():
    preset = Preset(name="My Voice", params=ParameterSet(eq_air=4.0))
    restored = Preset.from_dict(preset.to_dict())
    assert restored == preset
    with pytest.raises(ValueError):
        Preset.from_dict({"params": {}})
