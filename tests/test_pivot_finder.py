import numpy as np
import pytest

from conftest import series_arrays
from core.exceptions import InsufficientDataError
from core.pivot_finder import find_pivots


def test_pivots_at_generated_extrema(potential_gartley_data):
    prices, timestamps = series_arrays(potential_gartley_data)

    pivots = find_pivots(prices, timestamps, strength=3, min_pattern_bars=20)

    assert [p.index for p in pivots] == [30, 60, 90, 120, 150]
    assert [p.pivot_type for p in pivots] == ['high', 'low', 'high', 'low', 'high']
    assert pivots[0].price == pytest.approx(300.0)
    assert pivots[1].price == pytest.approx(200.0)
    assert pivots[0].timestamp == 30.0


def test_pivots_are_strict_window_extrema():
    prices = np.full(100, 50.0)
    prices[10] = 60.0           # high pivot
    prices[30] = 40.0           # low pivot
    prices[50] = 60.0           # plateau, no pivot
    prices[51] = 60.0
    prices[70] = 55.0           # beaten by a neighbour within the window
    prices[72] = 56.0
    prices[1] = 70.0            # inside the edge margin
    prices[98] = 30.0           # inside the edge margin
    timestamps = np.arange(100, dtype=float)

    pivots = find_pivots(prices, timestamps, strength=3, min_pattern_bars=20)

    assert [(p.index, p.pivot_type) for p in pivots] == [(10, 'high'), (30, 'low'), (72, 'high')]


def test_pivots_are_in_chronological_order(random_walk_data):
    prices, timestamps = series_arrays(random_walk_data)

    pivots = find_pivots(prices, timestamps)
    indices = [p.index for p in pivots]

    assert indices == sorted(indices)
    assert len(set(indices)) == len(indices)
    for pivot in pivots:
        window = np.delete(prices[pivot.index - 3:pivot.index + 4], 3)
        if pivot.pivot_type == 'high':
            assert np.all(prices[pivot.index] > window)
        else:
            assert np.all(prices[pivot.index] < window)


def test_straight_line_has_no_pivots(trend_data):
    prices, timestamps = series_arrays(trend_data)
    assert find_pivots(prices, timestamps) == []


def test_short_series_raises_insufficient_data():
    prices = np.linspace(100, 110, 10)

    with pytest.raises(InsufficientDataError) as excinfo:
        find_pivots(prices, np.arange(10), min_pattern_bars=20)

    assert excinfo.value.length == 10
    assert excinfo.value.required == 80


def test_complete_series_keeps_c_and_d_as_pivots(complete_gartley_data):
    prices, timestamps = series_arrays(complete_gartley_data)

    pivots = find_pivots(prices, timestamps)

    assert [p.index for p in pivots] == [30, 60, 90, 120, 150, 180]
    assert [p.pivot_type for p in pivots] == ['high', 'low', 'high', 'low', 'high', 'low']
