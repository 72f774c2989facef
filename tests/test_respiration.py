from __future__ import annotations

import numpy as np
import pytest

from vitalscan.respiration import (
    estimate_respiratory_rate,
    estimate_rr_envelope,
    estimate_rr_ratio,
)


def am_pulse(dur: float = 20.0, fs: float = 30.0, f_hr: float = 1.4, f_rr: float = 0.25) -> np.ndarray:
    # s(t) = (1 + a*sin(2π f_rr t)) * sin(2π f_hr t) on a brightness offset
    t = np.arange(0, dur, 1 / fs)
    env = 1.0 + 0.5 * np.sin(2 * np.pi * f_rr * t)
    return 128.0 + env * np.sin(2 * np.pi * f_hr * t)


def test_ratio_proxy_rounds_half_up() -> None:
    assert estimate_rr_ratio(72) == 18
    assert estimate_rr_ratio(74) == 19
    assert estimate_rr_ratio(75) == 19
    assert estimate_rr_ratio(60, divisor=5.0) == 12


def test_respiration_from_amplitude_modulated_signal() -> None:
    s = am_pulse()  # 84 BPM carrier, 15 BrPM modulation
    brpm = estimate_rr_envelope(s, fs=30.0, hr_bpm=84)
    assert brpm is not None
    assert 13.0 <= brpm <= 17.0
    assert 13 <= estimate_respiratory_rate(s, 30.0, bpm=84, method="envelope") <= 17


def test_envelope_ignores_slow_baseline_drift() -> None:
    t = np.arange(0, 20.0, 1 / 30.0)
    s = am_pulse() + 3.0 * np.sin(2 * np.pi * 0.4 * t)
    brpm = estimate_rr_envelope(s, fs=30.0, hr_bpm=84)
    assert brpm is not None
    assert 13.0 <= brpm <= 17.0


def test_envelope_needs_heart_rate_and_enough_samples() -> None:
    s = am_pulse()
    assert estimate_rr_envelope(s, fs=30.0, hr_bpm=0) is None
    assert estimate_rr_envelope(s[:50], fs=30.0, hr_bpm=84) is None


def test_envelope_falls_back_to_ratio() -> None:
    flat = np.full(300, 128.0)
    assert estimate_rr_envelope(flat, fs=30.0, hr_bpm=80) is None
    assert estimate_respiratory_rate(flat, 30.0, bpm=80, method="envelope") == 20


def test_unknown_method_raises() -> None:
    with pytest.raises(ValueError):
        estimate_respiratory_rate(np.zeros(10), 30.0, bpm=70, method="peaks")
