from typing import List, Sequence

import numpy as np

LOCAL_WINDOW = 2  # Samples either side for the strict local-maximum test


def _local_maxima(values: np.ndarray) -> np.ndarray:
    """Indices strictly greater than every neighbour within LOCAL_WINDOW."""
    n = values.size
    centre = values[LOCAL_WINDOW:n - LOCAL_WINDOW]
    mask = np.ones(centre.size, dtype=bool)
    for k in range(1, LOCAL_WINDOW + 1):
        mask &= centre > values[LOCAL_WINDOW - k:n - LOCAL_WINDOW - k]
        mask &= centre > values[LOCAL_WINDOW + k:n - LOCAL_WINDOW + k]
    return np.flatnonzero(mask) + LOCAL_WINDOW


def find_peaks(signal: Sequence[float], min_distance: int, min_prominence: float) -> List[int]:
    """
    Locate prominent local maxima, greedily left to right.

    A sample i (2 <= i < len - 2) is a peak when it is strictly greater than
    every other sample in [i-2, i+2], its prominence against the higher of the
    two min_distance-wide side minima reaches min_prominence, and it lies at
    least min_distance samples after the previously accepted peak.

    Args:
        signal: Filtered signal window.
        min_distance: Minimum spacing between accepted peaks, in samples.
        min_prominence: Minimum height above the surrounding minima.

    Returns:
        Peak indices in ascending order.
    """
    values = np.asarray(signal, dtype=float)
    n = values.size
    if n < 2 * LOCAL_WINDOW + 1:
        return []

    min_distance = max(0, int(min_distance))
    peaks: List[int] = []

    for i in _local_maxima(values):
        i = int(i)
        current = values[i]

        left = values[max(0, i - min_distance):i]
        right = values[i + 1:min(n, i + min_distance + 1)]
        left_min = left.min() if left.size else current
        right_min = right.min() if right.size else current
        if current - max(left_min, right_min) < min_prominence:
            continue

        if peaks and i - peaks[-1] < min_distance:
            continue

        peaks.append(i)

    return peaks
