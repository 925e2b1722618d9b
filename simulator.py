import math
import random
import threading
import time
from typing import Callable, Optional

from config import ACCEL_COUNTS_PER_G, FRAME_SIZE, PPG_SAMPLE_RATE_HZ
from frame_decoder import encode_frame


class Simulator:
    """Generates wearable sensor frames.

    frame structure:
        18 bytes => [red (uint32)][ir (uint32)][green (uint32)][accel_x (int16)][accel_y (int16)][accel_z (int16)]
    """

    FRAME_SIZE = FRAME_SIZE

    def __init__(
        self,
        sample_rate_hz: float = PPG_SAMPLE_RATE_HZ,
        heart_rate_bpm: float = 72.0,
        motion_probability: float = 0.002,
        seed: Optional[int] = None,
    ):
        self.sample_rate_hz = sample_rate_hz
        self.heart_rate_bpm = heart_rate_bpm
        self.motion_probability = motion_probability
        self._callback: Optional[Callable[[bytes], None]] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._rng = random.Random(seed)
        self._motion_frames_left = 0
        self._phase = 0.0
        self._reset_signal_state()

    def _reset_signal_state(self):
        """Initialize per-session signal parameters."""
        self._phase = self._rng.uniform(0.0, 2.0 * math.pi)
        self._motion_frames_left = 0

    def generate_frame(self, frame_number: int) -> bytes:
        """
        Generate one physiologically plausible frame.
        """

        t = frame_number / self.sample_rate_hz

        # ----------------------------
        # Physiological Frequencies
        # ----------------------------
        heart_freq = self.heart_rate_bpm / 60.0
        resp_freq = 0.25     # Hz

        pulse = math.sin(2 * math.pi * heart_freq * t + self._phase)
        breathing = math.sin(2 * math.pi * resp_freq * t)

        # ----------------------------
        # Optical channels (DC + pulsatile AC)
        # ----------------------------
        red = 90000.0 + 900.0 * pulse + 300.0 * breathing
        ir = 120000.0 + 1500.0 * pulse + 400.0 * breathing
        green = 60000.0 + 1200.0 * pulse + 200.0 * breathing

        # ----------------------------
        # Accelerometer: gravity on Z + sensor noise
        # ----------------------------
        accel_x = self._rng.gauss(0.0, 20.0)
        accel_y = self._rng.gauss(0.0, 20.0)
        accel_z = ACCEL_COUNTS_PER_G + self._rng.gauss(0.0, 20.0)

        # ----------------------------
        # Motion bursts (rare, ~1 s)
        # ----------------------------
        if self._motion_frames_left == 0 and self._rng.random() < self.motion_probability:
            self._motion_frames_left = int(self.sample_rate_hz)

        if self._motion_frames_left > 0:
            self._motion_frames_left -= 1
            jolt = self._rng.uniform(0.2, 0.6) * ACCEL_COUNTS_PER_G
            accel_x += jolt
            accel_z += 0.5 * jolt
            artifact = 4000.0 * (jolt / ACCEL_COUNTS_PER_G)
            red += artifact
            ir += artifact
            green += artifact

        # ----------------------------
        # Sensor noise
        # ----------------------------
        red += self._rng.gauss(0.0, 30.0)
        ir += self._rng.gauss(0.0, 30.0)
        green += self._rng.gauss(0.0, 30.0)

        return encode_frame(red, ir, green, accel_x, accel_y, accel_z)

    def _run_loop(self):
        """Call generate_frame() at sample Hz"""
        interval = 1.0 / self.sample_rate_hz
        frame_number = 0
        while not self._stop_event.is_set():
            if self._callback:
                self._callback(self.generate_frame(frame_number))
            frame_number += 1
            time.sleep(interval)

    def start(self, callback: Callable[[bytes], None]):
        """Start simulator

        Args:
            callback: callback function for handling generated frames
        """
        if self._running:
            raise RuntimeError("Simulator is already running")
        self._callback = callback
        self._stop_event.clear()
        self._reset_signal_state()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()
        self._running = True

    def stop(self):
        """Stop simulator"""
        if not self._running:
            return
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=1.0)
        self._running = False
        self._thread = None

    def is_running(self) -> bool:
        return self._running
