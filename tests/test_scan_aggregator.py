import pytest

from conftest import make_point
from core.fibonacci_validator import validate_ratio
from core.scan_aggregator import aggregate, calculate_quality_metrics, rank_patterns
from models.harmonic_models import (
    CompletionStatus, FibonacciRatios, HarmonicPattern, PatternDirection,
    PatternPoints, PatternType, ScanType, TradingLevels
)


def _pattern(complete, validation_score, reliability, risk_reward=1.0, confidence=100.0):
    points = PatternPoints(
        x=make_point(0, 300), a=make_point(30, 200), b=make_point(60, 260), c=make_point(90, 220),
        d=make_point(120, 170) if complete else None
    )
    return HarmonicPattern(
        pattern_type=PatternType.GARTLEY,
        direction=PatternDirection.BULLISH,
        points=points,
        fibonacci_ratios=FibonacciRatios(
            ab_xa=validate_ratio(0.6, 0.618, 0.05),
            bc_ab=validate_ratio(0.667, 0.618, 0.1)
        ),
        completion=CompletionStatus(
            is_complete=complete,
            projected_d=170.0,
            confidence_score=confidence,
            validation_score=validation_score
        ),
        trading_levels=TradingLevels(entry=170.0, stop_loss=276.4, targets=[180.0],
                                     risk_reward_ratio=risk_reward),
        reliability=reliability
    )


@pytest.fixture
def mixed_patterns():
    return [
        _pattern(True, 0.8, 75, risk_reward=0.5, confidence=75.0),
        _pattern(False, 0.95, 80, risk_reward=0.2),
        _pattern(False, 0.7, 85, risk_reward=0.9),
    ]


def test_empty_scan_has_zero_metrics():
    scan = aggregate([])

    assert scan.patterns == []
    assert scan.potential_patterns == []
    assert scan.completed_patterns == []
    assert scan.quality_metrics.average_reliability == 0
    assert scan.quality_metrics.fibonacci_accuracy == 0
    assert scan.quality_metrics.pattern_density == 0


def test_partition_is_disjoint_and_complete(mixed_patterns):
    scan = aggregate(mixed_patterns)

    assert len(scan.completed_patterns) == 1
    assert len(scan.potential_patterns) == 2
    assert all(p.completion.is_complete for p in scan.completed_patterns)
    assert not any(p.completion.is_complete for p in scan.potential_patterns)

    combined = {id(p) for p in scan.completed_patterns} | {id(p) for p in scan.potential_patterns}
    assert combined == {id(p) for p in scan.patterns}
    assert not {id(p) for p in scan.completed_patterns} & {id(p) for p in scan.potential_patterns}


def test_quality_metrics(mixed_patterns):
    metrics = calculate_quality_metrics(mixed_patterns)

    assert metrics.average_reliability == pytest.approx(80.0)
    assert metrics.fibonacci_accuracy == pytest.approx((0.8 + 0.95 + 0.7) / 3)
    assert metrics.pattern_density == 3


@pytest.mark.parametrize("scan_type,expected", [
    (ScanType.ALL, 3),
    ("complete", 1),
    ("potential", 2),
])
def test_scan_type_selects_patterns(mixed_patterns, scan_type, expected):
    scan = aggregate(mixed_patterns, scan_type)

    assert len(scan.patterns) == expected
    # metrics always describe the whole scan
    assert scan.quality_metrics.pattern_density == 3


def test_unknown_scan_type(mixed_patterns):
    with pytest.raises(ValueError):
        aggregate(mixed_patterns, "partial")


def test_rank_patterns(mixed_patterns):
    by_score = rank_patterns(mixed_patterns)
    assert [p.completion.validation_score for p in by_score] == [0.95, 0.8, 0.7]

    by_reliability = rank_patterns(mixed_patterns, "reliability")
    assert [p.reliability for p in by_reliability] == [85, 80, 75]

    by_rr = rank_patterns(mixed_patterns, "risk_reward")
    assert [p.trading_levels.risk_reward_ratio for p in by_rr] == [0.9, 0.5, 0.2]

    # ties keep scan order
    by_confidence = rank_patterns(mixed_patterns, "confidence")
    assert by_confidence == [mixed_patterns[1], mixed_patterns[2], mixed_patterns[0]]

    with pytest.raises(ValueError):
        rank_patterns(mixed_patterns, "volume")


def test_scan_to_dict_is_plain_data(mixed_patterns):
    result = aggregate(mixed_patterns).to_dict()

    assert result['quality_metrics']['pattern_density'] == 3
    first = result['patterns'][0]
    assert first['pattern_type'] == 'gartley'
    assert first['direction'] == 'bullish'
    assert set(first['points']) == {'X', 'A', 'B', 'C', 'D'}
    assert set(first['fibonacci_ratios']) == {'AB_XA', 'BC_AB'}
    assert first['completion']['is_complete'] is True
