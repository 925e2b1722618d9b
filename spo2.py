"""Motion-gated SpO2 estimation over rolling Red/IR buffers.

The ratio-of-ratios maths lives in a calculator object with
``calculate(red_samples, ir_samples) -> Optional[SpO2Result]``. The estimator
only owns the buffers, the motion gate and the held reading.
"""

import logging
from typing import NamedTuple, Optional, Sequence

import numpy as np

from config import (
    MOTION_STABILITY_THRESHOLD_G,
    SPO2_BUFFER_CAPACITY,
    SPO2_MAX_PERCENT,
    SPO2_MIN_PERCENT,
    SPO2_MIN_SAMPLES,
)
from signal_buffer import SignalBuffer

logger = logging.getLogger(__name__)

SPO2_LOWER_BOUND = 50.0
SPO2_UPPER_BOUND = 100.0

# Empirical calibration: SpO2 = A*R^2 + B*R + C
CAL_A = -45.060
CAL_B = 30.354
CAL_C = 94.845
R_MIN = 0.4
R_MAX = 3.4
QUALITY_FULL_RATIO = 0.1


class SpO2Result(NamedTuple):
    spo2: float
    quality: float


def _is_valid(result: Optional[SpO2Result]) -> bool:
    if result is None:
        return False
    return (
        SPO2_LOWER_BOUND <= result.spo2 <= SPO2_UPPER_BOUND
        and 0.0 <= result.quality <= 1.0
    )


class RatioOfRatiosCalculator:
    """
    Default SpO2 calculator: AC/DC ratio of Red over IR mapped through a
    quadratic calibration curve.

    AC is peak-to-peak, DC is the mean. R values outside the physiological
    range, or SpO2 values outside [min_spo2, max_spo2], yield None.
    """

    def __init__(
        self,
        min_samples: int = SPO2_MIN_SAMPLES,
        min_spo2: float = SPO2_MIN_PERCENT,
        max_spo2: float = SPO2_MAX_PERCENT,
    ):
        self.min_samples = max(2, int(min_samples))
        self.min_spo2 = float(min_spo2)
        self.max_spo2 = float(max_spo2)

    def calculate(self, red_samples: Sequence[float], ir_samples: Sequence[float]) -> Optional[SpO2Result]:
        red = np.asarray(red_samples, dtype=float)
        ir = np.asarray(ir_samples, dtype=float)
        if red.size != ir.size or red.size < self.min_samples:
            return None

        dc_red = red.mean()
        dc_ir = ir.mean()
        if dc_red <= 0.0 or dc_ir <= 0.0:
            return None

        ac_red = red.max() - red.min()
        ac_ir = ir.max() - ir.min()
        if ac_red <= 0.0 or ac_ir <= 0.0:
            return None

        ratio_red = ac_red / dc_red
        ratio_ir = ac_ir / dc_ir
        r_value = ratio_red / ratio_ir
        if not R_MIN <= r_value <= R_MAX:
            return None

        spo2 = CAL_A * r_value ** 2 + CAL_B * r_value + CAL_C
        if not self.min_spo2 <= spo2 <= self.max_spo2:
            return None

        quality = min(1.0, ((ratio_red + ratio_ir) / 2.0) / QUALITY_FULL_RATIO)
        return SpO2Result(spo2=round(float(spo2), 1), quality=float(max(0.0, quality)))


class SpO2Estimator:
    """Buffers Red/IR unconditionally and recomputes SpO2 only while the wearer is still."""

    def __init__(
        self,
        calculator=None,
        capacity: int = SPO2_BUFFER_CAPACITY,
        stability_threshold: float = MOTION_STABILITY_THRESHOLD_G,
    ):
        self.calculator = calculator if calculator is not None else RatioOfRatiosCalculator()
        self.stability_threshold = float(stability_threshold)
        self._red = SignalBuffer(capacity)
        self._ir = SignalBuffer(capacity)
        self._last_valid: Optional[SpO2Result] = None

    @property
    def buffered_samples(self) -> int:
        return len(self._ir)

    @property
    def buffer_capacity(self) -> int:
        return self._ir.capacity

    @property
    def last_valid(self) -> Optional[SpO2Result]:
        return self._last_valid

    def update(self, red: float, ir: float, accel_magnitude: float) -> Optional[SpO2Result]:
        """
        Append one Red/IR pair and return the current SpO2 reading.

        Args:
            red: Red optical count.
            ir: Infrared optical count.
            accel_magnitude: Accelerometer magnitude in g for this frame.

        Returns:
            A fresh SpO2Result when still, the held reading during motion,
            or None when no valid reading is available.
        """
        self._red.append(float(red))
        self._ir.append(float(ir))

        if accel_magnitude >= self.stability_threshold:
            return self._last_valid

        result = self.calculator.calculate(self._red.snapshot(), self._ir.snapshot())
        if not _is_valid(result):
            return None

        result = SpO2Result(spo2=float(result.spo2), quality=float(result.quality))
        self._last_valid = result
        return result

    def reset(self) -> None:
        """Clear both buffers and the held reading."""
        self._red.clear()
        self._ir.clear()
        self._last_valid = None
        logger.debug("SpO2 estimator reset")
