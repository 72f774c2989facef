"""Respiratory-rate (RR) proxies.

Two screening-grade estimators are provided:
- ratio: a fixed heart-rate / respiration ratio (HR / 4 by default).
- envelope: respiration modulates pulse amplitude, so the trace is
  band-limited around the measured heart rate and the dominant slow
  component of its amplitude envelope is taken as the breathing rate.
Neither is calibrated against a reference respiration signal.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.signal import hilbert

from .preprocess import bandpass, round_half_up


def estimate_rr_ratio(bpm: float, divisor: float = 4.0) -> int:
    """Respiratory rate as ``round(bpm / divisor)``."""
    if divisor <= 0:
        raise ValueError("divisor must be positive")
    return round_half_up(bpm / divisor)


def estimate_rr_envelope(
    s: np.ndarray,
    fs: float,
    hr_bpm: float,
    rr_min_hz: float = 0.1,
    rr_max_hz: float = 0.5,
) -> Optional[float]:
    """Breaths per minute from the pulse amplitude envelope, or None.

    The pass band spans ``hr ± (rr_max_hz + 0.1)`` so both respiratory
    sidebands of the cardiac component survive filtering.

    Args:
        s: raw brightness trace (1D float array)
        fs: sampling rate (Hz)
        hr_bpm: heart rate the trace was measured at (BPM)
        rr_min_hz/rr_max_hz: respiration band (Hz)
    """
    x = np.asarray(s, dtype=np.float64)
    if fs <= 0 or hr_bpm <= 0 or x.size < max(8, 2 * fs):
        return None
    f_hr = hr_bpm / 60.0
    half = rr_max_hz + 0.1
    pulse = bandpass(x - float(np.mean(x)), fs, max(0.05, f_hr - half), f_hr + half)
    env = np.abs(hilbert(pulse))
    std = float(np.std(env))
    if std <= 0:
        return None
    env_n = (env - float(np.mean(env))) / std
    mag = np.abs(np.fft.rfft(env_n * np.hanning(env_n.size)))
    freqs = np.fft.rfftfreq(env_n.size, d=1.0 / fs)
    band = (freqs >= rr_min_hz) & (freqs <= rr_max_hz)
    if not np.any(band):
        return None
    f_rr = float(freqs[int(np.argmax(mag * band))])
    return 60.0 * f_rr if f_rr > 0 else None


def estimate_respiratory_rate(
    signal: np.ndarray,
    fs: float,
    bpm: float,
    method: str = "ratio",
    divisor: float = 4.0,
) -> int:
    """Respiratory rate in breaths/min by the selected method.

    The envelope method falls back to the ratio proxy when the envelope
    carries no usable respiration component.
    """
    if method == "ratio":
        return estimate_rr_ratio(bpm, divisor)
    if method == "envelope":
        brpm = estimate_rr_envelope(signal, fs, bpm)
        if brpm is None:
            return estimate_rr_ratio(bpm, divisor)
        return round_half_up(brpm)
    raise ValueError(f"Unknown respiratory method: {method}")
