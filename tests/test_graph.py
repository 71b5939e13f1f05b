from dataclasses import replace

import numpy as np
import pytest

from raiwave.dsp_engine.graph import OUTPUT_SAMPLE_RATE, build_graph
from raiwave.dsp_engine.playback import output_length, play_at_rate
from raiwave.errors import GraphConstructionFailure
from raiwave.params import ParameterSet


ALWAYS_PRESENT = [
    "source",
    "highpass",
    "lowpass",
    "deesser",
    "eq_bass",
    "eq_mid",
    "eq_air",
    "compressor",
    "panner",
    "master_gain",
    "limiter",
]


def test_dry_graph_omits_every_optional_stage(sine, dry_params):
    graph = build_graph(dry_params, sine(0.1))
    assert graph.stage_names() == ALWAYS_PRESENT
    assert graph.sample_rate == OUTPUT_SAMPLE_RATE


def test_full_graph_stage_order(sine, rng):
    params = ParameterSet(
        ring_mod_amount=0.5,
        drive=0.3,
        vibrato_depth=2.0,
        backing_vocals_amount=0.4,
        delay_mix=0.3,
        reverb_mix=0.2,
    )
    graph = build_graph(params, sine(0.1), rng=rng)
    assert graph.stage_names() == [
        "source",
        "highpass",
        "lowpass",
        "deesser",
        "ring_mod",
        "drive",
        "eq_bass",
        "eq_mid",
        "eq_air",
        "vibrato",
        "backing_vocals",
        "delay",
        "reverb",
        "compressor",
        "panner",
        "master_gain",
        "limiter",
    ]


def test_reverb_send_follows_mix_times_output_gain(sine, rng):
    source = sine(0.1)
    assert not build_graph(ParameterSet(reverb_mix=0.5, reverb_output_gain=0.0), source, rng=rng).has_stage("reverb")
    graph = build_graph(ParameterSet(reverb_mix=0.5, reverb_output_gain=0.8), source, rng=rng)
    send = next(s for s in graph.sends if s.name == "reverb")
    assert send.level == pytest.approx(0.4)


def test_filter_settings_follow_controls(sine):
    graph = build_graph(ParameterSet(denoise=0.5, de_ess=1.0), sine(0.1))
    stages = {stage.name: stage for stage in graph.chain}
    hp = stages["highpass"]
    response = np.abs(hp.frequency_response(np.array([170.0]), OUTPUT_SAMPLE_RATE))[0]
    assert 20.0 * np.log10(response) == pytest.approx(-3.01, abs=0.05)

    deesser = stages["deesser"]
    response = np.abs(deesser.frequency_response(np.array([7000.0]), OUTPUT_SAMPLE_RATE))[0]
    assert 20.0 * np.log10(response) == pytest.approx(-12.0, abs=0.01)


def test_graph_length_accounts_for_rate_and_tail(sine, dry_params):
    source = sine(1.0)
    graph = build_graph(replace(dry_params, time_stretch=2.0), source)
    assert graph.length == 2 * 48000 + 96000
    graph = build_graph(replace(dry_params, pitch_semitones=12.0), source)
    assert graph.source.rate == pytest.approx(2.0)
    assert graph.length == 24000 + 96000


def test_bypass_equivalence_for_drive(sine, dry_params):
    source = sine(0.2)
    driven = build_graph(replace(dry_params, drive=0.5), source)
    stripped = replace(driven, chain=[stage for stage in driven.chain if stage.name != "drive"])
    baseline = build_graph(dry_params, source)
    np.testing.assert_array_equal(stripped.run(), baseline.run())


def test_drive_bypass_vs_light_drive(sine, dry_params):
    source = sine(0.2)
    dry = build_graph(dry_params, source)
    light = build_graph(replace(dry_params, drive=0.01), source)
    assert not dry.has_stage("drive")
    assert light.has_stage("drive")
    assert np.max(np.abs(light.run() - dry.run())) > 1e-3


@pytest.mark.parametrize(
    "changes",
    [
        {"delay_feedback": 1.0},
        {"delay_feedback": -0.2},
        {"time_stretch": 0.0},
        {"reverb_decay_sec": -1.0},
        {"delay_time_sec": -0.1},
        {"vibrato_rate_hz": -3.0},
        {"eq_bass": float("nan")},
        {"master_gain_db": float("inf")},
    ],
)
def test_invalid_parameters_are_rejected(sine, changes):
    with pytest.raises(GraphConstructionFailure):
        build_graph(ParameterSet(**changes), sine(0.1))


def test_zero_delay_time_feedback_and_decay_fall_back_to_defaults(sine, rng):
    params = ParameterSet(
        delay_mix=0.5, delay_time_sec=0.0, delay_feedback=0.0, reverb_mix=0.5, reverb_decay_sec=0.0
    )
    graph = build_graph(params, sine(0.1), rng=rng)
    delay = next(s for s in graph.sends if s.name == "delay").stages[0]
    reverb = next(s for s in graph.sends if s.name == "reverb").stages[0]
    assert delay.delay_samples == round(0.3 * 48000)
    assert delay.feedback == pytest.approx(0.3)
    assert reverb.impulse.frames == int(1.5 * 48000)

    graph = build_graph(ParameterSet(delay_mix=0.5, delay_feedback=0.6), sine(0.1), rng=rng)
    assert next(s for s in graph.sends if s.name == "delay").stages[0].feedback == pytest.approx(0.6)


def test_output_length_rounding():
    assert output_length(5.0, 1.0, 48000, tail_sec=2.0) == 336000
    assert output_length(0.0, 1.0, 48000, tail_sec=2.0) == 96000
    assert output_length(1.0, 3.0, 3) == 1


def test_play_at_rate_upsamples_mono_to_stereo(sine):
    source = sine(0.01, sr=24000)
    out = play_at_rate(source, 1.0, 48000, 480)
    assert out.shape == (2, 480)
    np.testing.assert_allclose(out[0, ::2][:240], source.samples[0, :240], atol=1e-6)
    np.testing.assert_array_equal(out[0], out[1])
