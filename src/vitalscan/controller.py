"""Scan session state machine.

One external producer calls :meth:`ScanController.ingest` with a brightness
sample per frame (``None`` when no usable region was found), and a timer
calls :meth:`ScanController.tick` every ``tick_interval`` seconds. Both
handlers run on the caller's thread and must not be invoked concurrently.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from time import perf_counter
from typing import Callable, Optional

import numpy as np

from .bpm import estimate_bpm
from .buffer import SampleBuffer
from .config import ScanConfig
from .hrv import estimate_hrv
from .preprocess import detrend, moving_average, round_half_up
from .quality import estimate_quality
from .respiration import estimate_respiratory_rate

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    INIT = "init"
    ACQUIRING = "acquiring"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class VitalsResult:
    heart_rate: int  # BPM, always within the configured valid range
    respiratory_rate: Optional[int]  # breaths/min (proxy)
    hrv: Optional[int]  # 0..100 stress proxy, not SDNN
    confidence: int  # 0..100
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "heartRate": self.heart_rate,
            "respiratoryRate": self.respiratory_rate,
            "hrv": self.hrv,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ScanProgress:
    elapsed: float  # s
    remaining: float  # s
    seconds_left: int
    fraction: float  # 0..1


@dataclass
class ScanSession:
    buffer: SampleBuffer
    started_at: float
    duration: float
    quality: float = 100.0
    bpm: int = 0  # 0 = no estimate yet
    accepted: int = 0  # usable samples ingested; keeps counting once the buffer is full
    waveform: list[float] = field(default_factory=list)


class ScanController:
    """Drive one scan from first usable sample to a :class:`VitalsResult`."""

    def __init__(
        self,
        cfg: ScanConfig | None = None,
        on_complete: Callable[[VitalsResult], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        clock: Callable[[], float] = perf_counter,
    ) -> None:
        self.cfg = cfg or ScanConfig()
        self._on_complete = on_complete
        self._on_error = on_error
        self._clock = clock
        self._state = ScanState.INIT
        self._session: ScanSession | None = None
        self._result: VitalsResult | None = None
        self._progress: ScanProgress | None = None
        self._error: str | None = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def session(self) -> ScanSession | None:
        return self._session

    @property
    def result(self) -> VitalsResult | None:
        return self._result

    @property
    def progress(self) -> ScanProgress | None:
        return self._progress

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def heart_rate(self) -> int:
        return self._session.bpm if self._session is not None else 0

    @property
    def quality(self) -> float:
        return self._session.quality if self._session is not None else 0.0

    @property
    def waveform(self) -> list[float]:
        return list(self._session.waveform) if self._session is not None else []

    def is_active(self) -> bool:
        return self._state in (ScanState.INIT, ScanState.ACQUIRING)

    def ingest(self, sample: float | None) -> None:
        """Accept one per-frame brightness sample.

        ``None`` or a non-finite value means the frame had no usable region:
        the frame is skipped and the running quality drops to 0.
        """
        if not self.is_active():
            logger.debug("Sample ignored in state %s", self._state.value)
            return
        if sample is None or not math.isfinite(sample):
            if self._session is not None:
                self._session.quality = 0.0
            return
        if self._state is ScanState.INIT:
            self._start()
        assert self._session is not None
        self._session.buffer.append(sample)
        self._session.accepted += 1
        if self._session.accepted % self.cfg.stride == 0:
            self._process()

    def tick(self, now: float | None = None) -> ScanProgress | None:
        """Advance the session clock; finalize once the duration has elapsed."""
        if self._state is not ScanState.ACQUIRING or self._session is None:
            return None
        t = self._clock() if now is None else now
        dur = self._session.duration
        elapsed = max(0.0, t - self._session.started_at)
        remaining = max(0.0, dur - elapsed)
        self._progress = ScanProgress(
            elapsed=elapsed,
            remaining=remaining,
            seconds_left=int(math.ceil(remaining)),
            fraction=(dur - remaining) / dur,
        )
        if remaining <= 0:
            self._finalize()
        return self._progress

    def cancel(self) -> None:
        """Abort the scan before completion; no result is produced."""
        if not self.is_active():
            logger.debug("Cancel ignored in state %s", self._state.value)
            return
        self._release()
        self._state = ScanState.CANCELLED
        logger.info("Scan cancelled")

    def fail(self, reason: str) -> None:
        """Abort because the video/tracking source is unavailable."""
        if not self.is_active():
            logger.debug("Failure ignored in state %s: %s", self._state.value, reason)
            return
        self._release()
        self._state = ScanState.FAILED
        self._error = reason
        logger.warning("Scan failed: %s", reason)
        if self._on_error is not None:
            self._on_error(reason)

    def _start(self) -> None:
        cfg = self.cfg
        self._session = ScanSession(
            buffer=SampleBuffer(cfg.capacity),
            started_at=self._clock(),
            duration=cfg.duration_sec,
        )
        self._state = ScanState.ACQUIRING
        logger.info(
            "Scan acquiring: duration=%.1fs fps=%d capacity=%d",
            cfg.duration_sec,
            cfg.fps,
            cfg.capacity,
        )

    def _release(self) -> None:
        if self._session is not None:
            self._session.buffer.clear()
        self._session = None

    def _process(self) -> None:
        cfg = self.cfg
        sess = self._session
        assert sess is not None
        buf = sess.buffer
        if len(buf) < cfg.samples(cfg.min_process_sec):
            return

        q_new = estimate_quality(
            buf.snapshot(cfg.samples(cfg.quality_window_sec)),
            threshold=cfg.artifact_threshold,
            penalty=cfg.artifact_penalty,
        )
        a = cfg.quality_alpha
        sess.quality = (1.0 - a) * sess.quality + a * q_new

        sess.waveform = self._display_waveform(buf.snapshot(cfg.samples(cfg.waveform_window_sec)))

        win = buf.snapshot(cfg.samples(cfg.analysis_window_sec))
        if win.size > cfg.samples(cfg.analysis_min_sec):
            bpm_new = estimate_bpm(win, cfg.fps, cfg.bpm_min, cfg.bpm_max)
            if bpm_new > 0:
                if sess.bpm == 0:
                    sess.bpm = bpm_new
                else:
                    b = cfg.bpm_alpha
                    sess.bpm = round_half_up((1.0 - b) * sess.bpm + b * bpm_new)

    def _display_waveform(self, raw: np.ndarray) -> list[float]:
        # Centered on 50 with the peak-to-peak span mapped to 50 units
        smoothed = moving_average(detrend(raw), self.cfg.waveform_smooth)
        if smoothed.size == 0:
            return []
        span = float(np.max(smoothed) - np.min(smoothed)) or 1.0
        return [float(v) for v in smoothed / span * 50.0 + 50.0]

    def _finalize(self) -> None:
        if self._state is not ScanState.ACQUIRING or self._session is None:
            return
        cfg = self.cfg
        sess = self._session
        buf = sess.buffer

        bpm = sess.bpm
        if len(buf) > cfg.samples(cfg.final_min_sec):
            bpm = estimate_bpm(
                buf.snapshot(cfg.samples(cfg.final_window_sec)), cfg.fps, cfg.bpm_min, cfg.bpm_max
            )
        if bpm < cfg.bpm_min or bpm > cfg.bpm_max:
            logger.info("Final BPM %d out of range, using fallback %d", bpm, cfg.bpm_fallback)
            bpm = cfg.bpm_fallback

        hrv = estimate_hrv(buf.snapshot(cfg.samples(cfg.hrv_window_sec)), scale=cfg.hrv_scale)
        rr = estimate_respiratory_rate(
            buf.snapshot(cfg.samples(cfg.final_window_sec)),
            cfg.fps,
            bpm,
            method=cfg.rr_method,
            divisor=cfg.rr_divisor,
        )
        confidence = int(min(100, max(0, round_half_up(sess.quality))))

        self._result = VitalsResult(
            heart_rate=int(bpm),
            respiratory_rate=rr,
            hrv=hrv,
            confidence=confidence,
            timestamp=datetime.now(timezone.utc),
        )
        self._state = ScanState.COMPLETE
        self._release()
        logger.info(
            "Scan complete: hr=%d rr=%s hrv=%s confidence=%d",
            self._result.heart_rate,
            rr,
            hrv,
            confidence,
        )
        if self._on_complete is not None:
            self._on_complete(self._result)
