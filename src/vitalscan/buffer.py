"""Rolling store of per-frame brightness samples."""

from __future__ import annotations

from collections import deque
from typing import Deque

import numpy as np


class SampleBuffer:
    """Bounded FIFO of samples; the oldest one is evicted at capacity."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._data: Deque[float] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return int(self._data.maxlen)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._data)

    def append(self, value: float) -> None:
        self._data.append(float(value))

    def snapshot(self, last_n: int | None = None) -> np.ndarray:
        """Return a read-only copy of the most recent ``last_n`` samples.

        Samples stay in arrival order. ``None`` returns the whole buffer.
        """
        n = len(self._data) if last_n is None else max(0, min(int(last_n), len(self._data)))
        if n == 0:
            out = np.zeros(0, dtype=np.float64)
        else:
            out = np.array(list(self._data)[-n:], dtype=np.float64)
        out.flags.writeable = False
        return out

    def clear(self) -> None:
        self._data.clear()
