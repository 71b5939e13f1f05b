import numpy as np
import pytest

from raiwave.dsp_engine.dynamics import (
    Compressor,
    Limiter,
    create_bus_compressor,
    create_master_limiter,
    create_mix_limiter,
    smooth_gain_db,
    static_gain_reduction_db,
)
from raiwave.dsp_engine.stereo import Gain, StereoPanner, ensure_stereo


def test_static_curve_regions():
    levels = np.array([-60.0, -24.0, 0.0])
    hard = static_gain_reduction_db(levels, threshold_db=-24.0, ratio=3.0, knee_db=0.0)
    np.testing.assert_allclose(hard, [0.0, 0.0, 16.0])

    soft = static_gain_reduction_db(levels, threshold_db=-24.0, ratio=3.0, knee_db=30.0)
    assert soft[0] == 0.0
    # centre of the knee gets a quarter of the full slope
    assert soft[1] == pytest.approx((2.0 / 3.0) * 15.0 ** 2 / 60.0)
    assert soft[2] == pytest.approx(16.0)


def test_static_curve_is_continuous_at_knee_edges():
    edges = np.array([-39.0 - 1e-9, -39.0 + 1e-9, -9.0 - 1e-9, -9.0 + 1e-9])
    gr = static_gain_reduction_db(edges, threshold_db=-24.0, ratio=3.0, knee_db=30.0)
    assert gr[0] == pytest.approx(gr[1], abs=1e-6)
    assert gr[2] == pytest.approx(gr[3], abs=1e-6)


def test_gain_follower_attacks_fast_and_releases_slowly():
    sr = 1000
    step = np.concatenate([np.full(200, -10.0), np.zeros(200)])
    env = smooth_gain_db(step, sr, attack_ms=5.0, release_ms=100.0)
    assert env[50] < -9.9
    assert -8.0 < env[250] < -2.0


def test_gain_follower_starts_from_initial_gain():
    env = smooth_gain_db(np.zeros(10), 1000, attack_ms=5.0, release_ms=100.0, initial_db=-6.0)
    assert -6.0 < env[0] < -5.8
    assert np.all(np.diff(env) > 0.0)


def test_bus_compressor_makeup_gain():
    comp = create_bus_compressor(48000)
    assert comp.makeup_db == pytest.approx(9.6)
    assert Compressor(sr=48000).makeup_db == 0.0


def test_bus_compressor_makeup_does_not_boost_onsets():
    sr = 48000
    t = np.arange(sr) / sr
    x = 0.5 * np.sin(2.0 * np.pi * 440.0 * t)
    y = create_bus_compressor(sr).process(np.stack([x, x]))
    # first cycle passes at roughly unity gain
    assert np.max(np.abs(y[:, :110])) <= 0.5 * 1.01
    assert np.max(np.abs(y)) <= 0.5 * 1.01


def test_bus_compressor_makeup_builds_up_on_quiet_material():
    sr = 48000
    t = np.arange(sr) / sr
    x = 0.05 * np.sin(2.0 * np.pi * 440.0 * t)
    y = create_bus_compressor(sr).process(x)
    assert np.max(np.abs(y[:110])) <= 0.05 * 1.02
    assert np.max(np.abs(y[-1000:])) > 0.05 * 10.0 ** (5.0 / 20.0)


def test_compressor_leaves_quiet_signal_alone():
    comp = Compressor(sr=48000)
    x = 0.001 * np.ones((2, 1000))
    np.testing.assert_allclose(comp.process(x), x, rtol=1e-9)


def test_compressor_links_channels():
    comp = Compressor(sr=48000, threshold_db=-20.0, ratio=4.0, knee_db=0.0, attack_ms=0.1)
    x = np.zeros((2, 4800))
    x[0] = 0.9
    x[1] = 0.1
    y = comp.process(x)
    np.testing.assert_allclose(y[0, -1] / 0.9, y[1, -1] / 0.1)
    assert y[0, -1] < 0.9


def test_compressor_rejects_expanding_ratio():
    with pytest.raises(ValueError):
        Compressor(sr=48000, ratio=0.5)


def test_limiter_never_exceeds_ceiling():
    limiter = create_master_limiter(48000)
    x = np.random.default_rng(5).uniform(-8.0, 8.0, size=(2, 4800))
    y = limiter.process(x)
    assert np.max(np.abs(y)) <= limiter.ceiling + 1e-12
    assert limiter.ceiling == pytest.approx(10.0 ** (-1.0 / 20.0))


def test_mix_limiter_settings():
    limiter = create_mix_limiter(44100)
    assert isinstance(limiter, Limiter)
    assert limiter.threshold_db == -2.0
    assert limiter.ratio == 10.0
    assert limiter.name == "mix_limiter"


def test_panner_centre_is_identity():
    x = np.random.default_rng(1).standard_normal((2, 100))
    np.testing.assert_array_equal(StereoPanner(pan=0.0).process(x), x)


def test_panner_hard_left_folds_right_channel():
    x = np.stack([np.ones(4), 2.0 * np.ones(4)])
    y = StereoPanner(pan=-1.0).process(x)
    np.testing.assert_allclose(y[0], 3.0)
    np.testing.assert_allclose(y[1], 0.0, atol=1e-12)


def test_gain_and_ensure_stereo():
    assert Gain(gain_db=6.0).linear == pytest.approx(1.9953, rel=1e-4)
    assert ensure_stereo(np.zeros(5)).shape == (2, 5)
    assert ensure_stereo(np.zeros((1, 5))).shape == (2, 5)
    with pytest.raises(ValueError):
        ensure_stereo(np.zeros((3, 5)))
