"""Perfusion index and signal-strength grading from the raw IR channel."""

from enum import Enum
from typing import NamedTuple, Sequence

import numpy as np

from config import PERFUSION_MODERATE, PERFUSION_STRONG, PERFUSION_WEAK
from signal_buffer import SignalBuffer


class SignalStrength(str, Enum):
    NONE = "none"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"

    @classmethod
    def from_perfusion_index(cls, perfusion_index: float) -> 'SignalStrength':
        if perfusion_index < PERFUSION_WEAK:
            return cls.NONE
        if perfusion_index < PERFUSION_MODERATE:
            return cls.WEAK
        if perfusion_index < PERFUSION_STRONG:
            return cls.MODERATE
        return cls.STRONG


class PerfusionResult(NamedTuple):
    perfusion_index: float
    signal_strength: SignalStrength


def perfusion_index(values: Sequence[float]) -> float:
    """AC/DC ratio: peak-to-peak over mean. 0.0 for empty input or a non-positive mean."""
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return 0.0
    dc = float(data.mean())
    if dc <= 0.0:
        return 0.0
    return float(data.max() - data.min()) / dc


class PerfusionMonitor:
    """Rolling IR window graded into a signal-strength category each frame."""

    def __init__(self, capacity: int):
        self._buffer = SignalBuffer(capacity)

    @property
    def buffered_samples(self) -> int:
        return len(self._buffer)

    @property
    def buffer_capacity(self) -> int:
        return self._buffer.capacity

    def update(self, ir: float) -> PerfusionResult:
        self._buffer.append(float(ir))
        index = perfusion_index(self._buffer.snapshot())
        return PerfusionResult(index, SignalStrength.from_perfusion_index(index))

    def reset(self) -> None:
        self._buffer.clear()

