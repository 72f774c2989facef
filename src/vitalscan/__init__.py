"""Camera-based vitals screening from a per-frame brightness trace.

Estimates heart rate, a respiratory-rate proxy, a stress (HRV) proxy and a
signal confidence. Results are screening estimates, not diagnostic values.
"""

__all__ = [
    "buffer",
    "config",
    "controller",
    "preprocess",
    "bpm",
    "quality",
    "hrv",
    "respiration",
    "service",
]

__version__ = "0.1.0"
