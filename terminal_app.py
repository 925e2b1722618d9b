"""
Terminal-only application entry point.

Runs the simulator through the vitals pipeline.
Prints one line of vitals per second to the terminal.
"""

import datetime
import logging
import time

from config import PPG_SAMPLE_RATE_HZ, VitalsConfig
from pipeline.runtime import PipelineRuntime
from processor import VitalsProcessor, VitalsResult
from simulator import Simulator

logger = logging.getLogger(__name__)


class VitalsTerminalApp:
    def __init__(self):
        self.processor = VitalsProcessor(VitalsConfig())
        self.runtime = PipelineRuntime(processor=self.processor)
        self.simulator = Simulator(sample_rate_hz=PPG_SAMPLE_RATE_HZ)

        self.frame_count = 0
        self.start_time = None

    def start(self):
        print("=== Vitals Terminal Mode ===")
        print("Starting session...\n")

        self.start_time = time.time()
        self.frame_count = 0

        self.runtime.start()
        self.simulator.start(self.runtime.ingest_packet)

    def stop(self):
        print("\nStopping session...")
        self.simulator.stop()
        summary = self.runtime.stop()
        self.poll()

        elapsed = time.time() - self.start_time
        print(f"Session duration: {elapsed:.2f} seconds")
        print(f"Processed frames: {summary.processed_frames}")
        print(f"Malformed frames: {summary.dropped_malformed_frames}")

    def poll(self):
        """Drain results and print the latest one."""
        results = self.runtime.drain_results()
        if not results:
            return
        self.frame_count += len(results)
        self._print_result(results[-1])

    @staticmethod
    def _format(value, fmt: str) -> str:
        return "--" if value is None else format(value, fmt)

    def _print_result(self, result: VitalsResult):
        timestamp = datetime.datetime.now().strftime("%H:%M:%S")
        print(
            f"[{timestamp}] Frame {result.frame_index} @ {result.timestamp_ms} ms | "
            f"HR: {self._format(result.heart_rate_bpm, 'd')} bpm "
            f"(conf {result.heart_rate_confidence:.2f}) | "
            f"SpO2: {self._format(result.spo2_percent, '.1f')} % | "
            f"Worn: {'yes' if result.is_worn else 'no'} | "
            f"Activity: {result.activity.value} | "
            f"Signal: {result.signal_strength.value} (PI {result.perfusion_index:.4f})"
        )


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )
    app = VitalsTerminalApp()

    try:
        app.start()

        # Run until interrupted
        while True:
            time.sleep(1)
            app.poll()

    except KeyboardInterrupt:
        app.stop()


if __name__ == "__main__":
    main()
