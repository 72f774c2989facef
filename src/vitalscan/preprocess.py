"""Signal preprocessing for brightness traces."""

from __future__ import annotations

import math

import numpy as np
from scipy.signal import butter, sosfiltfilt
from scipy.signal.windows import hamming


def detrend(x: np.ndarray) -> np.ndarray:
    """Remove the DC offset (mean brightness) from a 1D signal."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    return x - float(np.mean(x))


def apply_window(x: np.ndarray) -> np.ndarray:
    """Multiply by a symmetric Hamming window to limit spectral leakage.

    A single-sample signal is returned unchanged.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.size < 2:
        return x.copy()
    return x * hamming(x.size, sym=True)


def moving_average(x: np.ndarray, win: int) -> np.ndarray:
    """Trailing moving average over up to ``win`` samples ending at each index.

    The first ``win - 1`` outputs average the available prefix only, so the
    output has the same length as the input.

    Args:
        x: 1D array.
        win: window length in samples (>=1).
    """
    x = np.asarray(x, dtype=np.float64)
    win = max(int(win), 1)
    if x.size == 0:
        return x.copy()
    csum = np.concatenate(([0.0], np.cumsum(x)))
    idx = np.arange(x.size)
    start = np.maximum(0, idx - win + 1)
    return (csum[idx + 1] - csum[start]) / (idx + 1 - start)


def bandpass(
    x: np.ndarray,
    fs: float,
    fmin: float,
    fmax: float,
    order: int = 3,
) -> np.ndarray:
    """Zero-phase Butterworth band-pass filter (sosfiltfilt).

    Used on a completed window, so no causality is required. Returns a copy
    unchanged when the band is empty or the signal is too short to pad.

    Args:
        x: 1D array.
        fs: sampling rate [Hz].
        fmin: low cut [Hz].
        fmax: high cut [Hz].
        order: IIR order.
    """
    x = np.asarray(x, dtype=np.float64)
    nyq = 0.5 * fs
    low = max(1e-6, fmin / nyq)
    high = min(0.999, fmax / nyq)
    if not (0 < low < high < 1):
        return x.copy()
    sos = butter(order, [low, high], btype="band", output="sos")
    padlen = 3 * (2 * len(sos) + 1)
    if x.size <= padlen:
        return x.copy()
    return sosfiltfilt(sos, x, padlen=padlen)


def round_half_up(v: float) -> int:
    """Round to the nearest integer with .5 going up (18.5 -> 19)."""
    return int(math.floor(float(v) + 0.5))
