import pytest

from perfusion import PerfusionMonitor, SignalStrength, perfusion_index


@pytest.mark.parametrize(
    "index, strength",
    [
        (0.0, SignalStrength.NONE),
        (0.0004, SignalStrength.NONE),
        (0.0005, SignalStrength.WEAK),
        (0.001, SignalStrength.WEAK),
        (0.002, SignalStrength.MODERATE),
        (0.0049, SignalStrength.MODERATE),
        (0.005, SignalStrength.STRONG),
        (0.3, SignalStrength.STRONG),
    ],
)
def test_strength_thresholds(index, strength):
    assert SignalStrength.from_perfusion_index(index) == strength


def test_perfusion_index_is_peak_to_peak_over_mean():
    assert perfusion_index([99.0, 101.0, 100.0]) == pytest.approx(0.02)


@pytest.mark.parametrize("values", [[], [5.0] * 10, [-1.0, 1.0, -2.0]])
def test_degenerate_windows(values):
    assert perfusion_index(values) == 0.0


def test_monitor_window_is_bounded():
    monitor = PerfusionMonitor(capacity=4)
    for value in [100.0, 200.0, 100.0, 100.0, 100.0, 100.0, 100.0]:
        result = monitor.update(value)

    assert monitor.buffered_samples == 4
    assert result.perfusion_index == 0.0
    assert result.signal_strength == SignalStrength.NONE


def test_monitor_reset():
    monitor = PerfusionMonitor(capacity=10)
    monitor.update(100.0)
    monitor.update(110.0)

    monitor.reset()

    assert monitor.buffered_samples == 0
    assert monitor.update(100.0).perfusion_index == 0.0
