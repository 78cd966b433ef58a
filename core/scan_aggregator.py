from typing import Callable, Dict, List, Sequence

from models.harmonic_models import HarmonicPattern, PatternScan, QualityMetrics, ScanType

RANKING_FACTORS: Dict[str, Callable[[HarmonicPattern], float]] = {
    'validation_score': lambda p: p.completion.validation_score,
    'confidence': lambda p: p.completion.confidence_score,
    'reliability': lambda p: p.reliability,
    'risk_reward': lambda p: p.trading_levels.risk_reward_ratio,
}


def calculate_quality_metrics(patterns: Sequence[HarmonicPattern]) -> QualityMetrics:
    """
    Scan-wide quality metrics.

    Pattern density is the raw pattern count; normalising it by a time window
    is left to the caller. An empty scan yields all-zero metrics.
    """
    if not patterns:
        return QualityMetrics()

    count = len(patterns)
    return QualityMetrics(
        average_reliability=sum(p.reliability for p in patterns) / count,
        fibonacci_accuracy=sum(p.completion.validation_score for p in patterns) / count,
        pattern_density=count
    )


def aggregate(patterns: Sequence[HarmonicPattern], scan_type=ScanType.ALL) -> PatternScan:
    """
    Partition patterns into complete and potential and build the scan result.

    Args:
        patterns: Every surviving pattern of the scan
        scan_type: Which subset to expose as `patterns` (all, complete, potential)

    Returns:
        PatternScan; metrics always cover every surviving pattern
    """
    scan_type = ScanType(scan_type)
    patterns = list(patterns)

    completed = [p for p in patterns if p.completion.is_complete]
    potential = [p for p in patterns if not p.completion.is_complete]

    if scan_type is ScanType.COMPLETE:
        selected = list(completed)
    elif scan_type is ScanType.POTENTIAL:
        selected = list(potential)
    else:
        selected = patterns

    return PatternScan(
        patterns=selected,
        potential_patterns=potential,
        completed_patterns=completed,
        quality_metrics=calculate_quality_metrics(patterns)
    )


def rank_patterns(patterns: Sequence[HarmonicPattern],
                  ranking_factor: str = "validation_score") -> List[HarmonicPattern]:
    """
    Rank patterns by the given factor, best first.

    Args:
        patterns: Patterns to rank
        ranking_factor: One of validation_score, confidence, reliability, risk_reward

    Returns:
        New list sorted in descending order; ties keep their scan order
    """
    if ranking_factor not in RANKING_FACTORS:
        raise ValueError(f"Unknown ranking factor '{ranking_factor}', "
                         f"expected one of {sorted(RANKING_FACTORS)}")
    return sorted(patterns, key=RANKING_FACTORS[ranking_factor], reverse=True)
