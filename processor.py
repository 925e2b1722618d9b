"""Per-frame vitals processor.

Interface contract:
- process(sample) -> VitalsResult
- process_packet(packet, timestamp_ms) -> VitalsResult (raises InvalidFrame)
- reset() clears every buffer and filter state

Per frame:
- Accelerometer magnitude from normalized counts
- Motion compensation of the green channel against that magnitude
- Heart rate from the rolling green buffer
- Motion-gated SpO2 from the rolling Red/IR buffers
- Activity classification from IR and magnitude
- Perfusion index and signal strength from the raw IR window
"""

import logging
import threading
from typing import NamedTuple, Optional

from activity import ActivityClassifier, ActivityType
from config import GRAVITY_G, VitalsConfig
from frame_decoder import ChannelSample, accel_magnitude, decode_frame
from heart_rate import HeartRateEstimator, HeartRateResult
from motion_compensator import MotionCompensator
from perfusion import PerfusionMonitor, PerfusionResult, SignalStrength
from spo2 import SpO2Estimator, SpO2Result

logger = logging.getLogger(__name__)


class VitalsResult(NamedTuple):
    """Combined result for one processed frame."""

    frame_index: int
    timestamp_ms: int
    heart_rate: HeartRateResult
    spo2: Optional[SpO2Result]
    activity: ActivityType
    accel_magnitude: float
    perfusion: PerfusionResult

    @property
    def motion_level(self) -> float:
        """Deviation of the accelerometer magnitude from 1 g, clipped to [0, 1]."""
        return min(1.0, abs(self.accel_magnitude - GRAVITY_G))

    @property
    def perfusion_index(self) -> float:
        return self.perfusion.perfusion_index

    @property
    def signal_strength(self) -> SignalStrength:
        return self.perfusion.signal_strength

    @property
    def heart_rate_bpm(self) -> Optional[int]:
        return self.heart_rate.bpm

    @property
    def heart_rate_confidence(self) -> float:
        return self.heart_rate.confidence

    @property
    def is_worn(self) -> bool:
        return self.heart_rate.is_worn

    @property
    def spo2_percent(self) -> Optional[float]:
        return self.spo2.spo2 if self.spo2 is not None else None

    @property
    def spo2_quality(self) -> Optional[float]:
        return self.spo2.quality if self.spo2 is not None else None

    def as_output(self) -> dict:
        """Flat mapping handed to consumers."""
        return {
            "heart_rate_bpm": self.heart_rate_bpm,
            "heart_rate_confidence": self.heart_rate_confidence,
            "is_worn": self.is_worn,
            "spo2_percent": self.spo2_percent,
            "spo2_quality": self.spo2_quality,
            "activity": self.activity.value,
            "perfusion_index": self.perfusion_index,
            "signal_strength": self.signal_strength.value,
            "motion_level": self.motion_level,
        }


class VitalsProcessor:
    """Owns all per-session signal state for one device."""

    def __init__(self, config: Optional[VitalsConfig] = None, spo2_calculator=None):
        self.config = (config if config else VitalsConfig()).validate()

        self.motion_compensator = MotionCompensator()
        self.heart_rate = HeartRateEstimator(self.config)
        self.spo2 = SpO2Estimator(
            calculator=spo2_calculator,
            capacity=self.config.spo2_buffer_capacity,
            stability_threshold=self.config.motion_stability_threshold,
        )
        self.activity = ActivityClassifier()
        self.perfusion = PerfusionMonitor(self.config.hr_buffer_capacity)

        self._lock = threading.Lock()
        self._frame_index = 0

    @property
    def processed_frames(self) -> int:
        with self._lock:
            return self._frame_index

    def process(self, sample: ChannelSample) -> VitalsResult:
        """Run one decoded sample through the full chain."""
        with self._lock:
            magnitude = accel_magnitude(sample)

            cleaned_green = self.motion_compensator.filter(sample.green, magnitude)
            hr_result = self.heart_rate.update(cleaned_green)
            spo2_result = self.spo2.update(sample.red, sample.ir, magnitude)
            activity = self.activity.classify(sample.ir, magnitude)
            perfusion = self.perfusion.update(sample.ir)

            self._frame_index += 1
            return VitalsResult(
                frame_index=self._frame_index,
                timestamp_ms=sample.timestamp_ms,
                heart_rate=hr_result,
                spo2=spo2_result,
                activity=activity,
                accel_magnitude=magnitude,
                perfusion=perfusion,
            )

    def process_packet(self, packet: bytes, timestamp_ms: int = 0) -> VitalsResult:
        """Decode then process; a short frame raises InvalidFrame before any state changes."""
        return self.process(decode_frame(packet, timestamp_ms))

    def reset(self) -> None:
        """Clear all buffers and filter history, e.g. when the sensor is re-attached."""
        with self._lock:
            self.motion_compensator.reset()
            self.heart_rate.reset()
            self.spo2.reset()
            self.activity.reset()
            self.perfusion.reset()
            self._frame_index = 0
        logger.info("Vitals processor reset")
