"""Heart-rate estimation by a quadrature scan over integer BPM candidates."""

from __future__ import annotations

import numpy as np

from .preprocess import apply_window, detrend


def band_power(
    signal: np.ndarray,
    fs: float,
    bpm_min: int = 45,
    bpm_max: int = 180,
) -> tuple[np.ndarray, np.ndarray]:
    """Correlation power at each integer BPM in ``[bpm_min, bpm_max]``.

    For every candidate rate the detrended, windowed signal is projected on a
    cosine and a sine at ``bpm / 60`` Hz; power is the sum of both squared
    projections. Returns ``(bpms, power)``.
    """
    x = apply_window(detrend(signal))
    bpms = np.arange(int(bpm_min), int(bpm_max) + 1)
    t = np.arange(x.size, dtype=np.float64) / float(fs)
    angle = 2.0 * np.pi * np.outer(bpms / 60.0, t)
    c = np.cos(angle) @ x
    s = np.sin(angle) @ x
    return bpms, c * c + s * s


def estimate_bpm(
    signal: np.ndarray,
    fs: float,
    bpm_min: int = 45,
    bpm_max: int = 180,
) -> int:
    """Estimate heart rate as the candidate BPM with maximal power.

    Needs at least two seconds of samples; returns 0 ("no estimate") for
    shorter input or when the band carries no power. Ties resolve to the
    lowest BPM.
    """
    x = np.asarray(signal, dtype=np.float64)
    if fs <= 0 or x.size < 2 * fs:
        return 0
    bpms, power = band_power(x, fs, bpm_min, bpm_max)
    if power.size == 0:
        return 0
    idx = int(np.argmax(power))
    if not power[idx] > 0.0:
        return 0
    return int(bpms[idx])
