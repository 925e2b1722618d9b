"""Heart rate extraction from a rolling, motion-compensated green PPG buffer."""

import logging
import math
from typing import NamedTuple, Optional

import numpy as np

from bandpass_filter import BandpassFilter
from config import FLAT_SIGNAL_STD, VitalsConfig
from peak_detector import find_peaks
from signal_buffer import SignalBuffer

logger = logging.getLogger(__name__)

# Interval count at which the peak-consistency part of confidence saturates
CONFIDENCE_FULL_INTERVALS = 10


class HeartRateResult(NamedTuple):
    """Heart rate estimate for one frame. bpm is None when no estimate exists."""

    bpm: Optional[int]
    confidence: float
    is_worn: bool


NO_HEART_RATE = HeartRateResult(bpm=None, confidence=0.0, is_worn=False)


class HeartRateEstimator:
    """Owns the green-channel buffer and turns it into BPM, confidence and worn state."""

    def __init__(self, config: Optional[VitalsConfig] = None):
        self.config = (config if config else VitalsConfig()).validate()
        self.sample_rate = float(self.config.ppg_sample_rate)
        self.min_samples = self.config.hr_min_samples

        self._buffer = SignalBuffer(self.config.hr_buffer_capacity)
        self._bandpass = BandpassFilter(
            low_cutoff=self.config.hr_bandpass_low,
            high_cutoff=self.config.hr_bandpass_high,
            sample_rate=self.sample_rate,
            order=self.config.hr_bandpass_order,
        )
        self._min_distance = int(self.config.min_peak_distance_seconds * self.sample_rate)
        self._min_interval = 60.0 / self.config.max_heart_rate
        self._max_interval = 60.0 / self.config.min_heart_rate

    @property
    def buffered_samples(self) -> int:
        return len(self._buffer)

    @property
    def buffer_capacity(self) -> int:
        return self._buffer.capacity

    def update(self, value: float) -> HeartRateResult:
        """Append one cleaned green sample and re-estimate over the whole buffer."""
        self._buffer.append(float(value))

        if len(self._buffer) < self.min_samples:
            return NO_HEART_RATE

        filtered = self._bandpass.filtfilt(self._buffer.snapshot())
        mean = float(np.mean(filtered))
        std = float(np.std(filtered))
        if std <= FLAT_SIGNAL_STD:
            return NO_HEART_RATE

        peaks = find_peaks(
            filtered,
            min_distance=self._min_distance,
            min_prominence=std * self.config.peak_prominence_multiplier,
        )
        if len(peaks) < 2:
            return NO_HEART_RATE

        intervals = np.diff(peaks) / self.sample_rate
        intervals = intervals[(intervals >= self._min_interval) & (intervals <= self._max_interval)]
        if intervals.size == 0:
            return NO_HEART_RATE

        # Round half up
        bpm = int(math.floor(60.0 / float(np.median(intervals)) + 0.5))
        if not self.config.min_heart_rate <= bpm <= self.config.max_heart_rate:
            return NO_HEART_RATE

        return HeartRateResult(bpm=bpm, confidence=self._confidence(mean, std, intervals.size), is_worn=True)

    @staticmethod
    def _confidence(mean: float, std: float, interval_count: int) -> float:
        # AC strength and beat count; strictly positive whenever a BPM exists
        acdc = min(1.0, std / max(1.0, abs(mean)))
        peak_factor = min(1.0, interval_count / CONFIDENCE_FULL_INTERVALS)
        return float(min(1.0, max(0.6 * acdc + 0.4 * peak_factor, 1e-3)))

    def reset(self) -> None:
        """Drop buffered samples and clear filter history."""
        self._buffer.clear()
        self._bandpass.reset()
        logger.debug("Heart rate estimator reset")
