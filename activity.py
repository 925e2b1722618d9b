"""Coarse activity classification from IR level and accelerometer magnitude."""

from collections import deque
from enum import Enum
from typing import Deque, Optional

import numpy as np

from config import (
    ACTIVITY_DEVIATION_THRESHOLD,
    ACTIVITY_GRINDING_VARIANCE,
    ACTIVITY_HISTORY_SIZE,
    ACTIVITY_MOTION_THRESHOLD_G,
)

BASELINE_DECAY = 0.95


class ActivityType(str, Enum):
    RELAXED = "relaxed"
    CLENCHING = "clenching"
    GRINDING = "grinding"
    MOTION = "motion"


class ActivityClassifier:
    """
    Labels each frame as relaxed, clenching, grinding or motion.

    Motion wins whenever the accelerometer magnitude exceeds the motion
    threshold. Otherwise a large IR departure from a slowly drifting baseline
    marks muscle activity, split into grinding (high IR variance) and
    clenching (low variance).
    """

    def __init__(
        self,
        history_size: int = ACTIVITY_HISTORY_SIZE,
        motion_threshold: float = ACTIVITY_MOTION_THRESHOLD_G,
        deviation_threshold: float = ACTIVITY_DEVIATION_THRESHOLD,
        grinding_variance_threshold: float = ACTIVITY_GRINDING_VARIANCE,
    ):
        self.motion_threshold = float(motion_threshold)
        self.deviation_threshold = float(deviation_threshold)
        self.grinding_variance_threshold = float(grinding_variance_threshold)
        self._ir_history: Deque[float] = deque(maxlen=max(1, int(history_size)))
        self._baseline: Optional[float] = None

    def classify(self, ir: float, accel_magnitude: float) -> ActivityType:
        ir = float(ir)
        if self._baseline is None:
            self._baseline = ir
        self._ir_history.append(ir)

        if accel_magnitude > self.motion_threshold:
            return ActivityType.MOTION

        if abs(ir - self._baseline) > self.deviation_threshold:
            if np.var(self._ir_history) > self.grinding_variance_threshold:
                return ActivityType.GRINDING
            return ActivityType.CLENCHING

        # Track slow drift only while relaxed
        self._baseline = BASELINE_DECAY * self._baseline + (1.0 - BASELINE_DECAY) * ir
        return ActivityType.RELAXED

    def reset(self) -> None:
        self._ir_history.clear()
        self._baseline = None
