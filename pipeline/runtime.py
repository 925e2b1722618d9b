"""Runtime coordinator for the threaded vitals pipeline."""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from config import RAW_QUEUE_SIZE, RESULT_QUEUE_SIZE
from processor import VitalsProcessor, VitalsResult

from pipeline.types import PipelineSummary, ResetRequest
from pipeline.workers import FrameWorker, WorkItem

logger = logging.getLogger(__name__)


class PipelineRuntime:
    """Owns the worker thread, queues, and pipeline counters for one device session."""

    def __init__(
        self,
        *,
        processor: VitalsProcessor,
        error_logger: Optional[Callable[[str], None]] = None,
        raw_queue_size: int = RAW_QUEUE_SIZE,
        result_queue_size: int = RESULT_QUEUE_SIZE,
    ):
        self.processor = processor
        self.error_logger = error_logger if error_logger is not None else logger.error

        self.raw_packet_queue: queue.Queue[WorkItem] = queue.Queue(maxsize=raw_queue_size)
        self.result_queue: queue.Queue[VitalsResult] = queue.Queue(maxsize=result_queue_size)

        self._worker: Optional[FrameWorker] = None
        self._worker_thread: Optional[threading.Thread] = None

        self._lock = threading.Lock()
        # Serialises producers against the shutdown marker
        self._ingest_lock = threading.Lock()
        self._accepting = False
        self._received_packets = 0
        self._processed_frames = 0
        self._dropped_malformed_frames = 0
        self._dropped_results = 0
        self._resets = 0

    def start(self) -> None:
        """Reset pipeline state and start the worker thread for a session."""
        if self.is_running():
            raise RuntimeError("Pipeline is already running")

        self.processor.reset()
        self._drain_queue(self.raw_packet_queue)
        self._drain_queue(self.result_queue)

        with self._lock:
            self._received_packets = 0
            self._processed_frames = 0
            self._dropped_malformed_frames = 0
            self._dropped_results = 0
            self._resets = 0

        self._worker = FrameWorker(
            processor=self.processor,
            raw_packet_queue=self.raw_packet_queue,
            result_queue=self.result_queue,
            put_drop_oldest=self._put_drop_oldest,
            on_processed_frame=self._on_processed_frame,
            on_malformed_frame=self._on_malformed_frame,
            on_dropped_result=self._on_dropped_result,
            on_reset=self._on_reset,
            on_error=self.error_logger,
            start_time_s=time.monotonic(),
        )
        self._worker_thread = threading.Thread(target=self._worker.run, daemon=True)
        self._worker_thread.start()
        with self._ingest_lock:
            self._accepting = True
        logger.info("Vitals pipeline started")

    def stop(self) -> PipelineSummary:
        """Process everything already queued, stop the worker and return the summary."""
        thread = self._worker_thread
        with self._ingest_lock:
            self._accepting = False
            if thread and thread.is_alive():
                # Strict drain: shutdown marker goes behind all queued frames.
                self._put_control(self.raw_packet_queue, None, alive=thread.is_alive)
        if thread:
            thread.join()
        self._worker_thread = None
        self._worker = None
        logger.info("Vitals pipeline stopped")
        return self.get_summary()

    def is_running(self) -> bool:
        return bool(self._worker_thread and self._worker_thread.is_alive())

    def ingest_packet(self, packet: bytes) -> None:
        """
        Transport API: queue one raw frame.

        Blocks while the queue is full and the worker is draining it; never
        drops a frame.

        Raises:
            RuntimeError: if the pipeline is not running, or stops while the
                frame is waiting for queue space.
        """
        with self._ingest_lock:
            if not self._accepting or not self.is_running():
                raise RuntimeError("Pipeline is not running")
            with self._lock:
                self._received_packets += 1
            if not self._put_control(self.raw_packet_queue, bytes(packet), alive=self.is_running):
                raise RuntimeError("Pipeline stopped before the frame was queued")

    def request_reset(self, reason: str = "sensor re-attached") -> None:
        """Queue a reset behind every frame already ingested, or reset now when stopped."""
        logger.info(f"Reset requested: {reason}")
        with self._ingest_lock:
            if self._accepting and self._put_control(
                self.raw_packet_queue, ResetRequest(reason), alive=self.is_running
            ):
                return
        self.processor.reset()

    def drain_results(self) -> list[VitalsResult]:
        """Drain processed results in frame order (non-blocking)."""
        items: list[VitalsResult] = []
        while not self.result_queue.empty():
            try:
                items.append(self.result_queue.get_nowait())
            except queue.Empty:
                break
        return items

    def get_summary(self) -> PipelineSummary:
        """Get counters snapshot for current or last session."""
        with self._lock:
            return PipelineSummary(
                received_packets=self._received_packets,
                processed_frames=self._processed_frames,
                dropped_malformed_frames=self._dropped_malformed_frames,
                dropped_results=self._dropped_results,
                resets=self._resets,
            )

    def _on_processed_frame(self) -> None:
        with self._lock:
            self._processed_frames += 1

    def _on_malformed_frame(self) -> None:
        with self._lock:
            self._dropped_malformed_frames += 1

    def _on_dropped_result(self) -> None:
        with self._lock:
            self._dropped_results += 1

    def _on_reset(self) -> None:
        with self._lock:
            self._resets += 1

    @staticmethod
    def _put_drop_oldest(q: queue.Queue, item: object) -> bool:
        """Enqueue, evicting the oldest item when full. Returns True if something was evicted."""
        dropped = False
        while True:
            try:
                q.put_nowait(item)
                return dropped
            except queue.Full:
                try:
                    q.get_nowait()
                    dropped = True
                except queue.Empty:
                    continue

    @staticmethod
    def _put_control(
        q: queue.Queue,
        item: object,
        timeout_s: float = 0.1,
        alive: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Enqueue without dropping existing data. Returns False once the consumer is gone."""
        while True:
            try:
                q.put(item, timeout=timeout_s)
                return True
            except queue.Full:
                if alive is not None and not alive():
                    return False

    @staticmethod
    def _drain_queue(q: queue.Queue) -> None:
        while True:
            try:
                q.get_nowait()
            except queue.Empty:
                break
