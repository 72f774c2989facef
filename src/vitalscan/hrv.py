"""Stress proxy from successive differences of the brightness waveform.

This is not beat-to-beat HRV: no R-R intervals are extracted. The RMS of
first differences of the detrended waveform is used as a correlate and
mapped linearly onto a 0..100 scale.
"""

from __future__ import annotations

import numpy as np

from .preprocess import detrend, round_half_up


def rmssd_proxy(signal: np.ndarray) -> float:
    """Root mean square of successive differences of the detrended signal."""
    x = detrend(signal)
    if x.size < 2:
        return 0.0
    d = np.diff(x)
    return float(np.sqrt(np.mean(d * d)))


def estimate_hrv(signal: np.ndarray, scale: float = 50.0, min_len: int = 10) -> int:
    """Return the stress proxy in [0, 100]; 0 for fewer than ``min_len`` samples."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size < min_len:
        return 0
    return int(min(100, max(0, round_half_up(rmssd_proxy(x) * scale))))
