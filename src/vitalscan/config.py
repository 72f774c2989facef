"""Tunable constants for a vitals scan session."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScanConfig:
    duration_sec: float = 25.0
    fps: int = 30  # nominal sampling rate [samples/s]
    buffer_sec: float = 15.0  # rolling retention window
    stride: int = 5  # run a processing pass every N samples
    tick_interval: float = 0.1  # session clock cadence [s]

    # Estimator constants
    artifact_threshold: float = 15.0  # intensity units between frames
    artifact_penalty: float = 20.0
    bpm_min: int = 45
    bpm_max: int = 180
    bpm_fallback: int = 75
    hrv_scale: float = 50.0
    rr_divisor: float = 4.0
    rr_method: str = "ratio"  # ratio | envelope

    # Trailing windows [s]
    min_process_sec: float = 2.0
    quality_window_sec: float = 2.0
    waveform_window_sec: float = 3.0
    waveform_smooth: int = 4
    analysis_window_sec: float = 8.0
    analysis_min_sec: float = 4.0
    final_window_sec: float = 15.0
    final_min_sec: float = 10.0
    hrv_window_sec: float = 5.0

    # Exponential smoothing weights for the newest value
    quality_alpha: float = 0.2
    bpm_alpha: float = 0.3

    def __post_init__(self) -> None:
        if self.fps <= 0:
            raise ValueError("fps must be positive")
        if self.duration_sec <= 0:
            raise ValueError("duration_sec must be positive")
        if self.stride < 1:
            raise ValueError("stride must be >= 1")
        if self.bpm_min > self.bpm_max:
            raise ValueError("bpm_min must not exceed bpm_max")
        if not self.bpm_min <= self.bpm_fallback <= self.bpm_max:
            raise ValueError("bpm_fallback must lie within [bpm_min, bpm_max]")
        if self.rr_method not in ("ratio", "envelope"):
            raise ValueError(f"Unknown respiratory method: {self.rr_method}")

    def samples(self, sec: float) -> int:
        """Convert a duration in seconds to a sample count at nominal fps."""
        return int(round(sec * self.fps))

    @property
    def capacity(self) -> int:
        return self.samples(self.buffer_sec)
