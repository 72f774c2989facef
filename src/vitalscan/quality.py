"""Signal confidence from frame-to-frame artifact density.

A cardiac trace varies smoothly, well below ten intensity units between
frames. Larger jumps are counted as motion or lighting artifacts.
"""

from __future__ import annotations

import numpy as np


def count_artifacts(signal: np.ndarray, threshold: float = 15.0) -> int:
    """Number of adjacent-sample jumps whose magnitude exceeds ``threshold``."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 2:
        return 0
    return int(np.count_nonzero(np.abs(np.diff(x)) > threshold))


def estimate_quality(
    signal: np.ndarray,
    threshold: float = 15.0,
    penalty: float = 20.0,
    min_len: int = 10,
) -> float:
    """Return quality in [0, 100]; each artifact costs ``penalty`` points.

    Fewer than ``min_len`` samples give 100 (no evidence of noise yet).
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < min_len:
        return 100.0
    return float(max(0.0, 100.0 - count_artifacts(x, threshold) * penalty))
