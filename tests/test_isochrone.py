import pytest

from orsmap.isochrone import plan_steps, plan_thresholds, to_meters, to_seconds


def test_unit_conversions():
    assert to_meters(1.234) == 1234
    assert to_meters(0.0004) == 1
    assert to_seconds(0.5) == 30
    assert to_seconds(0) == 1


@pytest.mark.parametrize(
    "range_value, interval",
    [(1, 1), (10, 1), (10, 3), (7.5, 2.5), (3, 10), (60, 15)],
)
def test_steps_are_strictly_increasing_and_sized(range_value, interval):
    steps = plan_steps(range_value, interval)
    assert len(steps) == max(1, int(range_value // interval))
    assert all(a < b for a, b in zip(steps, steps[1:]))


def test_interval_larger_than_range_yields_one_step():
    assert plan_steps(2, 5) == [5]
    assert plan_thresholds(2, 5, "distance") == [5000]


def test_distance_thresholds_in_meters():
    assert plan_thresholds(3, 1, "distance") == [1000, 2000, 3000]


def test_time_thresholds_in_seconds():
    assert plan_thresholds(30, 10, "time") == [600, 1200, 1800]


def test_fractional_interval_uses_floor_of_one_for_count():
    # count = floor(2 / max(1, 0.5)) = 2
    assert plan_thresholds(2, 0.5, "distance") == [500, 1000]


def test_non_positive_interval_still_strictly_increasing():
    thresholds = plan_thresholds(3, 0, "time")
    assert thresholds == [60, 120, 180]


def test_collapsed_thresholds_are_dropped():
    thresholds = plan_thresholds(3, 0.0001, "distance")
    assert thresholds == [1]


def test_unknown_unit_rejected():
    with pytest.raises(ValueError):
        plan_thresholds(1, 1, "calories")
