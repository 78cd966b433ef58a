from typing import Optional

from models.harmonic_models import FibonacciRatio, FibonacciRatios, PatternPoints, PatternTemplate


def validate_ratio(actual: float, target: float, tolerance: float) -> FibonacciRatio:
    """
    Compare an observed leg ratio with its Fibonacci target.

    Args:
        actual: Observed ratio
        target: Target ratio (positive Fibonacci constant, e.g. 0.618)
        tolerance: Allowed fractional deviation from the target (e.g. 0.05)

    Returns:
        FibonacciRatio with the deviation and validity
    """
    deviation = abs(actual - target) / target
    return FibonacciRatio(
        ratio=target,
        tolerance=tolerance,
        actual_ratio=actual,
        deviation=deviation,
        is_valid=deviation <= tolerance
    )


def segment_ratio(numerator: float, denominator: float) -> Optional[float]:
    """Ratio of two segment lengths, or None when the denominator segment is empty."""
    if denominator == 0:
        return None
    return numerator / denominator


def validate_partial_ratios(points: PatternPoints,
                            template: PatternTemplate,
                            tolerance: float) -> Optional[FibonacciRatios]:
    """
    Validate the AB/XA and BC/AB legs of an X-A-B-C candidate.

    Returns:
        FibonacciRatios with the two partial ratios, or None if a leg has zero length
    """
    xa = abs(points.a.price - points.x.price)
    ab = abs(points.b.price - points.a.price)
    bc = abs(points.c.price - points.b.price)

    ab_xa = segment_ratio(ab, xa)
    bc_ab = segment_ratio(bc, ab)
    if ab_xa is None or bc_ab is None:
        return None

    return FibonacciRatios(
        ab_xa=validate_ratio(ab_xa, template.ab_xa.ideal, tolerance),
        bc_ab=validate_ratio(bc_ab, template.bc_ab.ideal, tolerance)
    )


def validate_fibonacci_ratios(points: PatternPoints,
                              template: PatternTemplate,
                              tolerance: float) -> Optional[FibonacciRatios]:
    """
    Validate every leg ratio available for a pattern.

    CD/BC and AD/XA are only evaluated when the D point is present.

    Args:
        points: Pattern points, D optional
        template: Template providing the ideal ratios
        tolerance: Allowed fractional deviation

    Returns:
        FibonacciRatios, or None if a denominator leg has zero length
    """
    ratios = validate_partial_ratios(points, template, tolerance)
    if ratios is None or points.d is None:
        return ratios

    xa = abs(points.a.price - points.x.price)
    bc = abs(points.c.price - points.b.price)
    cd = abs(points.d.price - points.c.price)
    ad = abs(points.d.price - points.a.price)

    cd_bc = segment_ratio(cd, bc)
    ad_xa = segment_ratio(ad, xa)
    if cd_bc is None or ad_xa is None:
        return None

    ratios.cd_bc = validate_ratio(cd_bc, template.cd_bc.ideal, tolerance)
    ratios.ad_xa = validate_ratio(ad_xa, template.ad_xa.ideal, tolerance)
    return ratios


def calculate_validation_score(ratios: FibonacciRatios) -> float:
    """
    Mean closeness of the ratios to their targets.

    Each valid ratio contributes (1 - deviation); invalid ratios contribute
    nothing but still count towards the number of ratios evaluated.
    """
    evaluated = ratios.evaluated()
    if not evaluated:
        return 0.0
    score = sum(1 - r.deviation for r in evaluated if r.is_valid)
    return score / len(evaluated)


def calculate_confidence_score(ratios: FibonacciRatios) -> float:
    """Percentage of evaluated ratios that are valid."""
    evaluated = ratios.evaluated()
    if not evaluated:
        return 0.0
    return len(ratios.valid()) / len(evaluated) * 100
