"""Butterworth band-pass filter for the heart-rate band."""

from typing import Optional, Sequence

import numpy as np
from scipy.signal import butter, sosfilt, sosfilt_zi, sosfiltfilt

from config import HR_BANDPASS_HIGH_HZ, HR_BANDPASS_LOW_HZ, HR_BANDPASS_ORDER, PPG_SAMPLE_RATE_HZ


def _design_bandpass(low_hz: float, high_hz: float, sample_rate_hz: float, order: int) -> np.ndarray:
    """Design a band-pass filter as second-order sections."""

    if sample_rate_hz <= 0.0:
        raise ValueError("sample_rate_hz must be positive")
    if order < 1:
        raise ValueError("order must be >= 1")

    nyquist = sample_rate_hz / 2.0
    if not 0.0 < low_hz < high_hz < nyquist:
        raise ValueError(
            f"band {low_hz}-{high_hz} Hz must satisfy 0 < low < high < nyquist ({nyquist} Hz)"
        )
    return butter(order, [low_hz / nyquist, high_hz / nyquist], btype="band", output="sos")


class BandpassFilter:
    """
    Band-pass filter with a streaming path and a zero-phase batch path.

    The coefficients are fixed at construction. Streaming state is owned by the
    instance and cleared by reset().
    """

    def __init__(
        self,
        low_cutoff: float = HR_BANDPASS_LOW_HZ,
        high_cutoff: float = HR_BANDPASS_HIGH_HZ,
        sample_rate: float = PPG_SAMPLE_RATE_HZ,
        order: int = HR_BANDPASS_ORDER,
    ):
        self.low_cutoff = float(low_cutoff)
        self.high_cutoff = float(high_cutoff)
        self.sample_rate = float(sample_rate)
        self.order = int(order)
        self.sos = _design_bandpass(self.low_cutoff, self.high_cutoff, self.sample_rate, self.order)
        self._zi: Optional[np.ndarray] = None

    @property
    def min_filtfilt_length(self) -> int:
        """Shortest input sosfiltfilt accepts with its default padding."""
        return 3 * (2 * len(self.sos) + 1) + 1

    def filtfilt(self, values: Sequence[float]) -> np.ndarray:
        """
        Forward-backward filter a finite buffer (zero phase).

        Args:
            values: Samples, oldest first.

        Returns:
            Filtered samples, same length as the input. Inputs too short to
            pad are returned mean-removed but otherwise unfiltered.
        """
        data = np.asarray(values, dtype=float)
        if data.size == 0:
            return data.copy()
        if data.size < self.min_filtfilt_length:
            return data - data.mean()
        return sosfiltfilt(self.sos, data)

    def process_sample(self, value: float) -> float:
        """Causal single-sample filtering using the instance state."""
        if self._zi is None:
            self._zi = sosfilt_zi(self.sos) * value
        out, self._zi = sosfilt(self.sos, [value], zi=self._zi)
        return float(out[0])

    def reset(self) -> None:
        """Clear streaming history; coefficients are kept."""
        self._zi = None
