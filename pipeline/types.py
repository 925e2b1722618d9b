"""Data types used by the acquisition/processing pipeline."""

from typing import NamedTuple


class ResetRequest(NamedTuple):
    """Control marker: reset processor state at this point in the frame stream."""

    reason: str = "sensor re-attached"


class PipelineSummary(NamedTuple):
    """Session/runtime counters exposed to app orchestrator."""

    received_packets: int
    processed_frames: int
    dropped_malformed_frames: int
    dropped_results: int
    resets: int
