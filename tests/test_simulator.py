import time

from config import FRAME_SIZE
from frame_decoder import accel_magnitude, decode_frame
from processor import VitalsProcessor
from simulator import Simulator


def test_frames_decode():
    sim = Simulator(seed=1)
    for n in range(100):
        packet = sim.generate_frame(n)
        assert len(packet) == FRAME_SIZE
        decode_frame(packet)


def test_seeded_simulators_agree():
    a = Simulator(seed=7)
    b = Simulator(seed=7)
    assert [a.generate_frame(n) for n in range(50)] == [b.generate_frame(n) for n in range(50)]


def test_still_wearer_reads_about_one_g():
    sim = Simulator(motion_probability=0.0, seed=3)
    magnitudes = [accel_magnitude(decode_frame(sim.generate_frame(n))) for n in range(100)]
    assert all(0.98 < m < 1.02 for m in magnitudes)


def test_simulated_session_produces_vitals():
    sim = Simulator(heart_rate_bpm=72.0, motion_probability=0.0, seed=5)
    processor = VitalsProcessor()

    results = [processor.process_packet(sim.generate_frame(n)) for n in range(500)]

    last = results[-1]
    assert last.heart_rate_bpm is not None
    assert abs(last.heart_rate_bpm - 72) <= 3
    assert last.spo2_percent is not None


def test_start_delivers_frames_until_stopped():
    received = []
    sim = Simulator(sample_rate_hz=500.0, seed=2)

    sim.start(received.append)
    deadline = time.monotonic() + 2.0
    while len(received) < 5 and time.monotonic() < deadline:
        time.sleep(0.01)
    sim.stop()

    assert len(received) >= 5
    assert not sim.is_running()
    assert all(len(p) == FRAME_SIZE for p in received)
