from collections import deque
from typing import Deque

import numpy as np


class SignalBuffer:
    """Bounded FIFO of samples; the oldest values fall off once capacity is reached."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = int(capacity)
        self._values: Deque[float] = deque(maxlen=self._capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._values)

    def append(self, value: float) -> None:
        self._values.append(value)

    def snapshot(self) -> np.ndarray:
        """Return a copy of the buffered values, oldest first."""
        return np.array(self._values, dtype=float)

    def clear(self) -> None:
        self._values.clear()
