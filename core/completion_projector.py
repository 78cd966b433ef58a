from typing import Optional, Sequence

from models.harmonic_models import (
    CompletionPrediction, HarmonicPattern, PatternDirection, PatternPoints,
    PatternTemplate, PricePoint, TradingPlan
)
from models.scan_parameters import HarmonicScanParameters
from trading.trading_levels import calculate_trading_levels

# Fibonacci fraction of the average leg duration used as the time estimate
TIME_ESTIMATE_FACTOR = 0.618

# Blend of price proximity and validation score in the completion probability
PROXIMITY_WEIGHT = 0.6
VALIDATION_WEIGHT = 0.4


def project_d(points: PatternPoints, direction: PatternDirection, template: PatternTemplate) -> float:
    """
    Project the theoretical D price from the BC leg and the template's CD/BC ideal.

    D lies below C for bullish patterns and above C for bearish ones.
    """
    cd_distance = abs(points.c.price - points.b.price) * template.cd_bc.ideal
    if direction is PatternDirection.BULLISH:
        return points.c.price - cd_distance
    return points.c.price + cd_distance


def find_nearest_pivot(pivots: Sequence[PricePoint],
                       projected_price: float,
                       after_index: int,
                       tolerance: float = 0.02) -> Optional[PricePoint]:
    """
    Find the first pivot after a series index that confirms a projected price.

    Args:
        pivots: Pivots in ascending index order
        projected_price: Projected D price
        after_index: Series index of C; only later pivots are considered
        tolerance: Allowed distance as a fraction of the projected price

    Returns:
        The first matching pivot, or None
    """
    band = abs(projected_price) * tolerance
    for pivot in pivots:
        if pivot.index <= after_index:
            continue
        if abs(pivot.price - projected_price) <= band:
            return pivot
    return None


def average_leg_duration(points: PatternPoints) -> float:
    """Mean bar span of the XA, AB and BC legs."""
    xa = points.a.index - points.x.index
    ab = points.b.index - points.a.index
    bc = points.c.index - points.b.index
    return (xa + ab + bc) / 3


def calculate_completion_probability(pattern: HarmonicPattern,
                                     projected_d: Optional[float],
                                     current_price: float) -> float:
    """
    Probability (0-100) that the pattern completes at its projection.

    Price proximity to the projection, normalised by the A to C range, is
    weighted 0.6 and the validation score 0.4.
    """
    if projected_d is None:
        return 0.0

    distance = abs(current_price - projected_d)
    total_move = abs(pattern.points.c.price - pattern.points.a.price)
    proximity = max(0.0, 1 - distance / total_move) if total_move > 0 else 0.0

    return (proximity * PROXIMITY_WEIGHT
            + pattern.completion.validation_score * VALIDATION_WEIGHT) * 100


def recommended_timeframe(points: PatternPoints) -> str:
    """Chart timeframe suited to the pattern's X to C span."""
    duration = points.c.index - points.x.index
    if duration < 50:
        return '1h-4h'
    if duration < 100:
        return '4h-1d'
    return '1d-1w'


def generate_trading_plan(pattern: HarmonicPattern,
                          projected_d: float,
                          current_price: float,
                          parameters: HarmonicScanParameters) -> TradingPlan:
    """
    Trading plan for entering at the projected D.

    Entry is recommended only when price is near the projection, the projected
    risk/reward is attractive and the pattern validates strongly.
    """
    levels = calculate_trading_levels(pattern.points.with_d(None), pattern.direction, projected_d)
    distance_to_entry = abs(current_price - projected_d) / current_price

    should_enter = (
        distance_to_entry < parameters.entry_distance_tolerance
        and levels.risk_reward_ratio > parameters.min_risk_reward
        and pattern.completion.validation_score > parameters.entry_validation_score
    )

    return TradingPlan(
        should_enter=should_enter,
        entry_price=levels.entry,
        stop_loss=levels.stop_loss,
        targets=levels.targets,
        timeframe=recommended_timeframe(pattern.points)
    )


def predict_completion(pattern: HarmonicPattern,
                       template: PatternTemplate,
                       current_price: float,
                       parameters: Optional[HarmonicScanParameters] = None) -> CompletionPrediction:
    """
    Predict where, when and how likely a potential pattern completes.

    Args:
        pattern: Pattern to project (normally one without a D point)
        template: Template matching the pattern's type and direction
        current_price: Latest traded price
        parameters: Scan parameters holding the entry thresholds

    Returns:
        CompletionPrediction with the projected D, time estimate in bars,
        probability (0-100) and trading plan
    """
    if current_price <= 0:
        raise ValueError(f"current_price must be positive, got {current_price}")

    parameters = parameters or HarmonicScanParameters()
    projected = project_d(pattern.points, pattern.direction, template)

    return CompletionPrediction(
        projected_completion=projected,
        time_estimate=average_leg_duration(pattern.points) * TIME_ESTIMATE_FACTOR,
        probability=calculate_completion_probability(pattern, projected, current_price),
        trading_plan=generate_trading_plan(pattern, projected, current_price, parameters)
    )
