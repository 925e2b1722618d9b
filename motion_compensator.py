"""Adaptive cancellation of accelerometer-correlated noise on a PPG channel.

Normalized LMS over a short tapped history of the dynamic acceleration
(magnitude minus 1 g). While every tap stays within the sensor noise floor the
wearer is still: the sample passes through unchanged and only the optical DC
tracker moves. During motion the DC level is frozen and kept out of the
adaptation error, so the weights fit the artifact riding on top of it. The
returned sample keeps its DC.
"""

import numpy as np

from config import (
    GRAVITY_G,
    MOTION_FILTER_STEP,
    MOTION_FILTER_TAPS,
    MOTION_NOISE_FLOOR_G,
    MOTION_VARIANCE_THRESHOLD,
)

BASELINE_ALPHA = 0.005


class MotionCompensator:
    """NLMS noise canceller driven by an accelerometer reference."""

    def __init__(
        self,
        taps: int = MOTION_FILTER_TAPS,
        step_size: float = MOTION_FILTER_STEP,
        variance_threshold: float = MOTION_VARIANCE_THRESHOLD,
        noise_floor: float = MOTION_NOISE_FLOOR_G,
    ):
        if taps < 1:
            raise ValueError("taps must be >= 1")
        if not 0.0 < step_size < 2.0:
            raise ValueError("step_size must be in (0, 2) for NLMS stability")
        if noise_floor < 0.0:
            raise ValueError("noise_floor must be non-negative")
        self.taps = int(taps)
        self.step_size = float(step_size)
        self.variance_threshold = float(variance_threshold)
        self.noise_floor = float(noise_floor)
        # Regularisation on the scale of a still reference
        self._regularization = self.taps * self.noise_floor ** 2 + 1e-12
        self._weights = np.zeros(self.taps, dtype=float)
        self._history = np.zeros(self.taps, dtype=float)
        self._filled = 0
        self._baseline = None

    def filter(self, signal: float, noise_reference: float) -> float:
        """
        Remove the reference-correlated component from one sample.

        Args:
            signal: Raw optical sample (signal plus motion artifact).
            noise_reference: Accelerometer magnitude in g for the same instant.

        Returns:
            The cleaned sample.
        """
        signal = float(signal)
        if self._baseline is None:
            self._baseline = signal

        # Newest dynamic acceleration at index 0
        self._history = np.roll(self._history, 1)
        self._history[0] = float(noise_reference) - GRAVITY_G
        self._filled = min(self._filled + 1, self.taps)

        window = self._history[:self._filled]
        if float(np.max(np.abs(window))) <= self.noise_floor:
            self._baseline += BASELINE_ALPHA * (signal - self._baseline)
            return signal

        x = self._history
        noise_estimate = float(self._weights @ x)
        cleaned = signal - noise_estimate

        # Excessive motion: hold the weights rather than adapt to a saturated reference.
        if float(window.var()) > self.variance_threshold:
            return cleaned

        error = (signal - self._baseline) - noise_estimate
        self._weights += (self.step_size * error / (self._regularization + float(x @ x))) * x
        return cleaned

    def reset(self) -> None:
        """Zero adaptive weights, reference history and the DC tracker."""
        self._weights.fill(0.0)
        self._history.fill(0.0)
        self._filled = 0
        self._baseline = None
