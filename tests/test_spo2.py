import math

import pytest

from spo2 import RatioOfRatiosCalculator, SpO2Estimator, SpO2Result

STILL = 1.0
MOVING = 1.2


class StubCalculator:
    """Returns queued results (repeating the last) and counts calls."""

    def __init__(self, *results):
        self.results = list(results) or [SpO2Result(97.0, 0.8)]
        self.calls = 0

    def calculate(self, red_samples, ir_samples):
        self.calls += 1
        index = min(self.calls, len(self.results)) - 1
        return self.results[index]


def _optical(count, freq_hz=1.25, fs=50.0):
    red, ir = [], []
    for n in range(count):
        s = math.sin(2 * math.pi * freq_hz * n / fs)
        red.append(90000.0 + 900.0 * s)
        ir.append(120000.0 + 1500.0 * s)
    return red, ir


def test_ratio_of_ratios_reading():
    red, ir = _optical(200)

    result = RatioOfRatiosCalculator().calculate(red, ir)

    assert result.spo2 == pytest.approx(90.3, abs=0.2)
    assert result.quality == pytest.approx(0.225, abs=0.01)


def test_calculator_needs_enough_samples():
    red, ir = _optical(149)
    assert RatioOfRatiosCalculator().calculate(red, ir) is None


def test_calculator_rejects_mismatched_lengths():
    red, ir = _optical(200)
    assert RatioOfRatiosCalculator().calculate(red, ir[:-1]) is None


def test_calculator_rejects_flat_channels():
    assert RatioOfRatiosCalculator().calculate([1000.0] * 200, [2000.0] * 200) is None


def test_motion_holds_last_reading_without_recomputing():
    stub = StubCalculator()
    est = SpO2Estimator(calculator=stub)

    fresh = est.update(90000.0, 120000.0, STILL)
    assert fresh == SpO2Result(97.0, 0.8)
    assert stub.calls == 1

    held = [est.update(90000.0, 120000.0, MOVING) for _ in range(60)]

    assert all(r == fresh for r in held)
    assert stub.calls == 1
    assert est.buffered_samples == 61


def test_motion_before_any_reading_returns_none():
    stub = StubCalculator()
    est = SpO2Estimator(calculator=stub)
    assert est.update(1.0, 1.0, MOVING) is None
    assert stub.calls == 0


def test_threshold_is_inclusive_of_motion():
    stub = StubCalculator()
    est = SpO2Estimator(calculator=stub, stability_threshold=1.05)
    est.update(1.0, 1.0, 1.05)
    assert stub.calls == 0


def test_invalid_reading_returns_none_but_keeps_held_value():
    stub = StubCalculator(SpO2Result(96.0, 0.5), SpO2Result(120.0, 0.5))
    est = SpO2Estimator(calculator=stub)

    assert est.update(1.0, 1.0, STILL) == SpO2Result(96.0, 0.5)
    assert est.update(1.0, 1.0, STILL) is None
    assert est.update(1.0, 1.0, MOVING) == SpO2Result(96.0, 0.5)


@pytest.mark.parametrize("bad", [None, SpO2Result(40.0, 0.5), SpO2Result(95.0, 1.5)])
def test_out_of_range_results_rejected(bad):
    est = SpO2Estimator(calculator=StubCalculator(bad))
    assert est.update(1.0, 1.0, STILL) is None
    assert est.last_valid is None


def test_buffers_trim_to_capacity():
    est = SpO2Estimator(calculator=StubCalculator(), capacity=10)
    for _ in range(25):
        est.update(1.0, 1.0, STILL)
    assert est.buffered_samples == 10
    assert est.buffer_capacity == 10


def test_reset_clears_held_value():
    est = SpO2Estimator(calculator=StubCalculator())
    est.update(1.0, 1.0, STILL)

    est.reset()

    assert est.buffered_samples == 0
    assert est.last_valid is None
    assert est.update(1.0, 1.0, MOVING) is None
