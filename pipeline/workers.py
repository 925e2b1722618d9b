"""Worker implementation for the streaming vitals pipeline."""

import queue
import time
from typing import Callable, Optional, Union

from frame_decoder import InvalidFrame
from processor import VitalsProcessor, VitalsResult

from pipeline.types import ResetRequest

WorkItem = Union[bytes, ResetRequest, None]


class FrameWorker:
    """Worker thread: decode frames in arrival order, process them, publish results."""

    def __init__(
        self,
        *,
        processor: VitalsProcessor,
        raw_packet_queue: queue.Queue[WorkItem],
        result_queue: queue.Queue[VitalsResult],
        put_drop_oldest: Callable[[queue.Queue, object], bool],
        on_processed_frame: Callable[[], None],
        on_malformed_frame: Callable[[], None],
        on_dropped_result: Callable[[], None],
        on_reset: Callable[[], None],
        on_error: Callable[[str], None],
        start_time_s: Optional[float] = None,
    ):
        self.processor = processor
        self.raw_packet_queue = raw_packet_queue
        self.result_queue = result_queue
        self.put_drop_oldest = put_drop_oldest
        self.on_processed_frame = on_processed_frame
        self.on_malformed_frame = on_malformed_frame
        self.on_dropped_result = on_dropped_result
        self.on_reset = on_reset
        self.on_error = on_error
        self.start_time_s = start_time_s if start_time_s is not None else time.monotonic()

    def _timestamp_ms(self) -> int:
        return int((time.monotonic() - self.start_time_s) * 1000)

    def run(self) -> None:
        while True:
            item = self.raw_packet_queue.get()
            if item is None:
                break

            if isinstance(item, ResetRequest):
                self.processor.reset()
                self.on_reset()
                continue

            try:
                result = self.processor.process_packet(item, self._timestamp_ms())
            except InvalidFrame:
                self.on_malformed_frame()
                continue
            except Exception as exc:
                self.on_error(f"Error in frame worker: {exc}")
                continue

            self.on_processed_frame()
            if self.put_drop_oldest(self.result_queue, result):
                self.on_dropped_result()
