from __future__ import annotations

import numpy as np

from vitalscan.quality import count_artifacts, estimate_quality


def _smooth(n: int = 60) -> np.ndarray:
    t = np.arange(n) / 30.0
    return 128.0 + 3.0 * np.sin(2 * np.pi * 1.2 * t)


def test_constant_signal_is_full_quality() -> None:
    for n in (10, 60, 450):
        assert estimate_quality(np.full(n, 90.0)) == 100.0


def test_short_signal_is_optimistic() -> None:
    assert estimate_quality(np.array([0.0, 100.0, 0.0])) == 100.0


def test_single_step_costs_one_penalty() -> None:
    x = _smooth()
    x[30:] += 40.0
    assert count_artifacts(x) == 1
    assert estimate_quality(x) == 80.0


def test_injected_jumps_reduce_quality() -> None:
    x = _smooth()
    # 10% of samples carry an isolated spike
    for i in (5, 15, 25, 35, 45, 55):
        x[i] += 30.0
    n_art = count_artifacts(x, threshold=15.0)
    assert n_art >= 6
    q = estimate_quality(x)
    assert q <= max(0.0, 100.0 - n_art * 20.0)
    assert q == 0.0


def test_threshold_is_exclusive() -> None:
    x = np.zeros(20)
    x[10:] = 15.0
    assert estimate_quality(x, threshold=15.0) == 100.0
    assert estimate_quality(x, threshold=14.9) == 80.0
