from __future__ import annotations

import numpy as np

from vitalscan.preprocess import apply_window, bandpass, detrend, moving_average, round_half_up


def test_detrend_output_has_zero_mean() -> None:
    rng = np.random.RandomState(0)
    for n in (1, 2, 17, 450):
        x = 128.0 + 40.0 * rng.randn(n)
        y = detrend(x)
        assert y.shape == (n,)
        assert abs(float(np.mean(y))) < 1e-9


def test_detrend_single_sample_is_zero() -> None:
    assert np.allclose(detrend(np.array([42.0])), [0.0])


def test_apply_window_matches_hamming_formula() -> None:
    x = np.ones(5)
    y = apply_window(x)
    assert np.allclose(y, [0.08, 0.54, 1.0, 0.54, 0.08])
    n = 64
    i = np.arange(n)
    expected = 0.54 - 0.46 * np.cos(2 * np.pi * i / (n - 1))
    assert np.allclose(apply_window(np.ones(n)), expected)


def test_apply_window_single_sample_is_identity() -> None:
    assert np.allclose(apply_window(np.array([3.0])), [3.0])


def test_moving_average_uses_available_prefix() -> None:
    y = moving_average(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), 2)
    assert np.allclose(y, [1.0, 1.5, 2.5, 3.5, 4.5])
    y3 = moving_average(np.array([3.0, 6.0, 9.0, 12.0]), 3)
    assert np.allclose(y3, [3.0, 4.5, 6.0, 9.0])


def test_moving_average_keeps_length() -> None:
    x = np.random.RandomState(1).randn(37)
    assert moving_average(x, 4).shape == x.shape
    assert np.allclose(moving_average(x, 1), x)


def test_round_half_up() -> None:
    assert round_half_up(18.5) == 19
    assert round_half_up(18.49) == 18
    assert round_half_up(17.5) == 18
    assert round_half_up(0.0) == 0


def test_bandpass_keeps_inband_and_removes_drift() -> None:
    fs = 30.0
    t = np.arange(0, 10.0, 1 / fs)
    inband = np.sin(2 * np.pi * 1.2 * t)
    y = bandpass(128.0 + inband + 2.0 * np.sin(2 * np.pi * 0.1 * t), fs, 0.7, 4.0)
    assert np.corrcoef(y, inband)[0, 1] > 0.9
    assert abs(float(np.mean(y))) < 0.1


def test_bandpass_passes_through_short_or_invalid_input() -> None:
    x = np.arange(10, dtype=np.float64)
    assert np.array_equal(bandpass(x, 30.0, 0.7, 4.0), x)
    assert np.array_equal(bandpass(np.arange(100.0), 30.0, 4.0, 0.7), np.arange(100.0))
