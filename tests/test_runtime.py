import threading

import pytest

from pipeline.runtime import PipelineRuntime
from pipeline.types import PipelineSummary
from processor import VitalsProcessor
from tests.frame_factory import frame, pulse_frames


class FailingProcessor:
    """Processor double whose frame path always raises."""

    def __init__(self):
        self.resets = 0

    def reset(self):
        self.resets += 1

    def process_packet(self, packet, timestamp_ms=0):
        raise RuntimeError("sensor fault")


@pytest.fixture
def runtime():
    rt = PipelineRuntime(processor=VitalsProcessor())
    yield rt
    if rt.is_running():
        rt.stop()


def test_frames_processed_in_order_and_malformed_counted(runtime):
    frames = pulse_frames(seconds=6.0)
    runtime.start()

    for packet in frames[:100]:
        runtime.ingest_packet(packet)
    runtime.ingest_packet(b'\x01' * 10)
    for packet in frames[100:]:
        runtime.ingest_packet(packet)
    summary = runtime.stop()

    results = runtime.drain_results()
    assert [r.frame_index for r in results] == list(range(1, 301))
    assert summary == PipelineSummary(
        received_packets=301,
        processed_frames=300,
        dropped_malformed_frames=1,
        dropped_results=0,
        resets=0,
    )


def test_reset_applies_at_its_place_in_the_stream(runtime):
    frames = pulse_frames(seconds=5.0)
    runtime.start()

    for packet in frames[:200]:
        runtime.ingest_packet(packet)
    runtime.request_reset()
    for packet in frames[200:210]:
        runtime.ingest_packet(packet)
    summary = runtime.stop()

    indices = [r.frame_index for r in runtime.drain_results()]
    assert indices == list(range(1, 201)) + list(range(1, 11))
    assert summary.resets == 1


def test_full_result_queue_drops_oldest():
    rt = PipelineRuntime(processor=VitalsProcessor(), result_queue_size=5)
    rt.start()

    for packet in pulse_frames(seconds=0.4):
        rt.ingest_packet(packet)
    summary = rt.stop()

    assert [r.frame_index for r in rt.drain_results()] == [16, 17, 18, 19, 20]
    assert summary.processed_frames == 20
    assert summary.dropped_results == 15


def test_processing_errors_go_to_error_logger():
    messages = []
    processor = FailingProcessor()
    rt = PipelineRuntime(processor=processor, error_logger=messages.append)
    rt.start()

    for packet in pulse_frames(seconds=0.06):
        rt.ingest_packet(packet)
    summary = rt.stop()

    assert len(messages) == 3
    assert all(m.startswith("Error in frame worker") for m in messages)
    assert summary.processed_frames == 0
    assert rt.drain_results() == []
    assert processor.resets == 1


def test_start_twice_rejected(runtime):
    runtime.start()
    with pytest.raises(RuntimeError):
        runtime.start()


def test_restart_resets_counters_and_processor(runtime):
    runtime.start()
    for packet in pulse_frames(seconds=1.0):
        runtime.ingest_packet(packet)
    runtime.stop()

    runtime.start()
    runtime.ingest_packet(pulse_frames(seconds=0.02)[0])
    summary = runtime.stop()

    assert summary.received_packets == 1
    assert [r.frame_index for r in runtime.drain_results()] == [1]


def test_ingest_before_start_rejected():
    rt = PipelineRuntime(processor=VitalsProcessor(), raw_queue_size=2)
    with pytest.raises(RuntimeError):
        rt.ingest_packet(frame())


def test_ingest_after_stop_does_not_block():
    rt = PipelineRuntime(processor=VitalsProcessor(), raw_queue_size=2)
    rt.start()
    rt.stop()
    errors = []

    def produce():
        for _ in range(3):
            try:
                rt.ingest_packet(frame())
            except RuntimeError as exc:
                errors.append(exc)

    producer = threading.Thread(target=produce, daemon=True)
    producer.start()
    producer.join(timeout=2.0)

    assert not producer.is_alive()
    assert len(errors) == 3
    assert rt.get_summary().received_packets == 0


def test_reset_while_stopped_applies_immediately():
    processor = VitalsProcessor()
    rt = PipelineRuntime(processor=processor)
    for packet in pulse_frames(seconds=1.0):
        processor.process_packet(packet)

    rt.request_reset()

    assert processor.processed_frames == 0
    assert processor.heart_rate.buffered_samples == 0
