# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import math
from typing import Optional

import numpy as np


def loudness_envelope(samples: np.ndarray, sample_rate: int, window_seconds: float = 0.05,
                      smoothing_windows: int = 5) -> Optional[np.ndarray]:
    """
    Computes a normalized RMS loudness envelope, one value per window.

    Args:
        samples: Decoded audio, shape (frames,) or (frames, channels).
        sample_rate: Samples per second.
        window_seconds: Length of one RMS window.
        smoothing_windows: Moving-average width applied to the RMS curve.

    Returns:
        Array of values in [0, 1], or None for silent or empty audio.
    """
    if samples is None or len(samples) == 0 or sample_rate <= 0:
        return None

    mono = np.asarray(samples, dtype=np.float32)
    if mono.ndim > 1:
        mono = mono.mean(axis=1)

    window = max(1, int(sample_rate * window_seconds))
    n_windows = len(mono) // window
    if n_windows == 0:
        return None

    frames = mono[:n_windows * window].reshape(n_windows, window)
    rms = np.sqrt(np.mean(frames ** 2, axis=1))

    if smoothing_windows > 1 and n_windows >= smoothing_windows:
        kernel = np.ones(smoothing_windows) / smoothing_windows
        rms = np.convolve(rms, kernel, mode="same")

    peak = float(rms.max())
    if peak <= 0:
        return None
    return np.clip(rms / peak, 0.0, 1.0)


def sample_envelope(envelope: np.ndarray, position: float, duration: float) -> float:
    """Linearly interpolates the envelope at `position` seconds into a track of `duration` seconds."""
    if duration <= 0 or len(envelope) == 0:
        return 0.0
    index = (position % duration) / duration * len(envelope)
    return float(np.interp(index, np.arange(len(envelope)), envelope, period=len(envelope)))


def synthetic_power(t: float, rate: float = 2.0) -> float:
    """Slow oscillation in [0, 1] used when no real signal is available."""
    return math.sin(t * rate) * 0.5 + 0.5


class PowerSmoother:
    """Limits how fast a power signal may move so it never jumps between ticks."""

    def __init__(self, max_rate: float = 4.0):
        self.max_rate = max_rate  # units per second
        self._value: Optional[float] = None
        self._last_t: Optional[float] = None

    def update(self, target: float, t: float) -> float:
        target = max(0.0, min(1.0, target))
        if self._value is None or self._last_t is None:
            self._value = target
        else:
            max_step = self.max_rate * max(0.0, t - self._last_t)
            delta = target - self._value
            self._value += max(-max_step, min(max_step, delta))
        self._last_t = t
        return self._value
