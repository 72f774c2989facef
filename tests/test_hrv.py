from __future__ import annotations

import numpy as np

from vitalscan.hrv import estimate_hrv, rmssd_proxy


def test_constant_signal_scores_zero() -> None:
    assert estimate_hrv(np.full(150, 128.0)) == 0


def test_short_signal_scores_zero() -> None:
    assert estimate_hrv(np.array([1.0, 5.0, 2.0])) == 0


def test_alternating_signal_scales_rmssd() -> None:
    x = 0.1 * (-1.0) ** np.arange(20)
    assert abs(rmssd_proxy(x) - 0.2) < 1e-9
    assert estimate_hrv(x, scale=50.0) == 10


def test_output_is_clamped_to_scale() -> None:
    rng = np.random.RandomState(3)
    for amp in (0.01, 0.5, 2.0, 50.0):
        v = estimate_hrv(128.0 + amp * rng.randn(150))
        assert 0 <= v <= 100
    assert estimate_hrv(128.0 + 50.0 * rng.randn(150)) == 100
