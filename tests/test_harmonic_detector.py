import numpy as np
import pandas as pd
import pytest

from conftest import series_arrays
from core.exceptions import InsufficientDataError, InvalidPriceSeriesError, UnknownPatternTemplateError
from core.harmonic_detector import HarmonicPatternDetector
from core.pattern_scanner import is_valid_pivot_sequence
from models.harmonic_models import PatternDirection, PatternType
from models.scan_parameters import HarmonicScanParameters


def test_synthetic_gartley_scan(detector, potential_gartley_data):
    prices, timestamps = series_arrays(potential_gartley_data)

    scan = detector.scan_for_harmonic_patterns(prices, timestamps)

    gartleys = [p for p in scan.patterns
                if p.pattern_type is PatternType.GARTLEY and p.direction is PatternDirection.BULLISH]
    assert gartleys
    assert max(p.completion.validation_score for p in gartleys) > 0.9


def test_complete_pattern_is_reported_as_completed(detector, complete_gartley_data):
    prices, timestamps = series_arrays(complete_gartley_data)

    scan = detector.scan_for_harmonic_patterns(prices, timestamps)

    gartleys = [p for p in scan.completed_patterns
                if p.pattern_type is PatternType.GARTLEY and p.direction is PatternDirection.BULLISH]
    assert [(p.points.x.index, p.points.d.index) for p in gartleys] == [(30, 180)]
    assert gartleys[0].completion.validation_score == pytest.approx(0.75, abs=1e-3)
    assert all(p.points.d is not None for p in scan.completed_patterns)
    assert all(p.points.d is None for p in scan.potential_patterns)


def test_straight_line_yields_empty_scan(detector, trend_data):
    prices, timestamps = series_arrays(trend_data)

    scan = detector.scan_for_harmonic_patterns(prices, timestamps)

    assert scan.patterns == []
    assert scan.potential_patterns == []
    assert scan.completed_patterns == []
    assert scan.quality_metrics.average_reliability == 0
    assert scan.quality_metrics.fibonacci_accuracy == 0
    assert scan.quality_metrics.pattern_density == 0


def test_short_series_raises_insufficient_data(detector):
    prices = np.linspace(100, 110, 10)

    with pytest.raises(InsufficientDataError):
        detector.scan_for_harmonic_patterns(prices, np.arange(10))


@pytest.mark.parametrize("prices,timestamps", [
    (np.full(100, 100.0), np.arange(99)),
    (np.r_[np.full(99, 100.0), -1.0], np.arange(100)),
    (np.r_[np.full(99, 100.0), np.nan], np.arange(100)),
    (np.full(100, 100.0), np.r_[np.arange(99), 0]),
    (np.full((10, 10), 100.0), np.arange(100)),
])
def test_invalid_series_rejected(detector, prices, timestamps):
    with pytest.raises(InvalidPriceSeriesError):
        detector.scan_for_harmonic_patterns(prices, timestamps)


def test_invalid_series_is_a_value_error(detector):
    with pytest.raises(ValueError):
        detector.scan_for_harmonic_patterns(np.full(100, 100.0), np.arange(50))


def test_scan_is_deterministic(detector, random_walk_data):
    prices, timestamps = series_arrays(random_walk_data)

    first = detector.scan_for_harmonic_patterns(prices, timestamps).to_dict()
    second = detector.scan_for_harmonic_patterns(prices, timestamps).to_dict()

    assert first == second


def test_threaded_scan_matches_sequential(random_walk_data, potential_gartley_data):
    sequential = HarmonicPatternDetector(HarmonicScanParameters(fibonacci_tolerance=0.1))
    threaded = HarmonicPatternDetector(HarmonicScanParameters(fibonacci_tolerance=0.1, max_workers=4))

    for data in (random_walk_data, potential_gartley_data):
        prices, timestamps = series_arrays(data)
        assert (threaded.scan_for_harmonic_patterns(prices, timestamps).to_dict()
                == sequential.scan_for_harmonic_patterns(prices, timestamps).to_dict())


def test_scan_invariants(random_walk_data, potential_gartley_data, bearish_gartley_data):
    parameters = HarmonicScanParameters(fibonacci_tolerance=0.1)
    detector = HarmonicPatternDetector(parameters)

    for data in (random_walk_data, potential_gartley_data, bearish_gartley_data):
        prices, timestamps = series_arrays(data)
        scan = detector.scan_for_harmonic_patterns(prices, timestamps)

        completed = {id(p) for p in scan.completed_patterns}
        potential = {id(p) for p in scan.potential_patterns}
        assert completed | potential == {id(p) for p in scan.patterns}
        assert not completed & potential

        for pattern in scan.patterns:
            points = pattern.points
            assert is_valid_pivot_sequence(points.x, points.a, points.b, points.c, pattern.direction)
            assert points.a.index - points.x.index >= parameters.min_pattern_bars
            assert points.b.index - points.a.index >= parameters.min_pattern_bars
            assert points.c.index - points.b.index >= parameters.min_pattern_bars
            assert points.c.index - points.x.index <= parameters.max_pattern_bars

            levels = pattern.trading_levels
            assert levels.risk_reward_ratio > 0
            if pattern.direction is PatternDirection.BULLISH:
                assert levels.stop_loss < points.x.price
            else:
                assert levels.stop_loss > points.x.price


def test_scan_type_filter(detector, potential_gartley_data):
    prices, timestamps = series_arrays(potential_gartley_data)

    complete_only = detector.scan_for_harmonic_patterns(prices, timestamps, scan_type="complete")
    potential_only = detector.scan_for_harmonic_patterns(prices, timestamps, scan_type="potential")

    assert complete_only.patterns == complete_only.completed_patterns
    assert potential_only.patterns == potential_only.potential_patterns
    assert potential_only.patterns


def test_scan_dataframe_with_datetime_index(detector, potential_gartley_data):
    scan = detector.scan_dataframe(potential_gartley_data)

    gartley = next(p for p in scan.patterns if p.pattern_type is PatternType.GARTLEY)
    expected = pd.Timestamp(potential_gartley_data.index[30]).timestamp()
    assert gartley.points.x.timestamp == pytest.approx(expected)


def test_scan_dataframe_with_timestamp_column(detector, potential_gartley_data):
    data = potential_gartley_data.reset_index(drop=True)
    data['timestamp'] = np.arange(len(data)) * 60.0

    scan = detector.scan_dataframe(data)

    gartley = next(p for p in scan.patterns if p.pattern_type is PatternType.GARTLEY)
    assert gartley.points.x.timestamp == 30 * 60.0


def test_scan_dataframe_missing_column(detector, potential_gartley_data):
    with pytest.raises(InvalidPriceSeriesError):
        detector.scan_dataframe(potential_gartley_data, price_source='open')


def test_predict_pattern_completion(detector, potential_gartley_data):
    scan = detector.scan_dataframe(potential_gartley_data, scan_type="potential")
    pattern = next(p for p in scan.patterns if p.pattern_type is PatternType.GARTLEY)

    prediction = detector.predict_pattern_completion(pattern, pattern.completion.projected_d)

    assert prediction.projected_completion == pytest.approx(pattern.completion.projected_d)
    assert prediction.probability > 90
    assert prediction.time_estimate == pytest.approx(30 * 0.618)


def test_calculate_trading_levels_uses_stored_projection(detector, potential_gartley_data):
    scan = detector.scan_dataframe(potential_gartley_data, scan_type="potential")
    pattern = scan.patterns[0]

    levels = detector.calculate_trading_levels(pattern)

    assert levels.entry == pytest.approx(pattern.completion.projected_d)
    assert levels == pattern.trading_levels


def test_template_accessors(detector):
    assert detector.get_available_pattern_types() == ['gartley', 'butterfly', 'bat', 'crab']
    assert detector.get_pattern_template('crab', 'bearish').reliability == 85
    with pytest.raises(UnknownPatternTemplateError):
        detector.get_pattern_template('cypher', 'bullish')


def test_validate_fibonacci_ratios(detector, bullish_gartley_points, gartley_template):
    ratios = detector.validate_fibonacci_ratios(bullish_gartley_points, gartley_template)
    assert ratios.ab_xa.is_valid and ratios.bc_ab.is_valid


def test_custom_parameters_are_used(potential_gartley_data):
    parameters = HarmonicScanParameters(min_pattern_bars=40, max_pattern_bars=300)
    detector = HarmonicPatternDetector(parameters)
    prices, timestamps = series_arrays(potential_gartley_data)

    # 181 bars >= 160 required, but the 30-bar legs are now too short
    scan = detector.scan_for_harmonic_patterns(prices, timestamps)
    assert scan.patterns == []
