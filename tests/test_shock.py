from __future__ import annotations

import pytest

from hzd.shock import DeltaShock, MovingAverageShock, ShockStrategy, make_shock_detector


def feed(det, samples):
    fired = []
    for s in samples:
        fired.append(det.observe(s))
        det = det.advance(s)
    return fired


def test_moving_average_waits_for_full_window():
    assert feed(MovingAverageShock(), [0, 255, 0, 255]) == [False] * 4


def test_moving_average_fires_on_deviation():
    det = MovingAverageShock(window=2, deviation=10)
    assert feed(det, [0, 0, 50, 50, 200]) == [False, False, True, False, True]


def test_moving_average_deviation_is_strict():
    det = MovingAverageShock(window=1, deviation=10)
    assert feed(det, [0, 10, 21]) == [False, False, True]


def test_delta_fires_on_step():
    assert feed(DeltaShock(), [0, 200, 0, 200]) == [False, True, False, True]
    assert feed(DeltaShock(step=96), [0, 96, 0]) == [False, False, False]


def test_factory():
    assert isinstance(make_shock_detector("moving_average", window=4), MovingAverageShock)
    assert make_shock_detector("delta", step=3).step == 3
    with pytest.raises(ValueError):
        make_shock_detector("fft")
    with pytest.raises(ValueError):
        MovingAverageShock(window=0)


def test_strategy_base_is_abstract():
    with pytest.raises(TypeError):
        ShockStrategy()
