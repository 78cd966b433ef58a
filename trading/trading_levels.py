from typing import List, Optional, Tuple

from core.exceptions import MissingCompletionPointError
from models.harmonic_models import PatternDirection, PatternPoints, TradingLevels

# Fraction of the XA leg placed beyond X as the stop-loss buffer
STOP_LOSS_BUFFER = 0.236

# Multiples of the AD distance projected from D for the profit targets
TARGET_FIB_LEVELS: Tuple[float, ...] = (0.382, 0.618, 0.786, 1.0, 1.272)


def calculate_stop_loss(points: PatternPoints, direction: PatternDirection) -> float:
    """Stop just beyond the pattern origin X, buffered by 23.6% of XA."""
    buffer = abs(points.a.price - points.x.price) * STOP_LOSS_BUFFER
    if direction is PatternDirection.BULLISH:
        return points.x.price - buffer
    return points.x.price + buffer


def calculate_targets(points: PatternPoints,
                      direction: PatternDirection,
                      d_price: float,
                      levels: Tuple[float, ...] = TARGET_FIB_LEVELS) -> List[float]:
    """
    Fibonacci profit targets projected from D.

    Targets move away from D in the direction of the expected reversal, which
    is opposite to the X to A leg.
    """
    ad_move = abs(d_price - points.a.price)
    if direction is PatternDirection.BULLISH:
        return [d_price + ad_move * level for level in levels]
    return [d_price - ad_move * level for level in levels]


def calculate_trading_levels(points: PatternPoints,
                             direction: PatternDirection,
                             projected_d: Optional[float] = None) -> TradingLevels:
    """
    Derive entry, stop-loss, targets and risk/reward for a pattern.

    Args:
        points: Pattern points; the actual D point is used when present
        direction: Pattern direction
        projected_d: Projected D price, used when the pattern has no actual D

    Returns:
        TradingLevels for the pattern

    Raises:
        MissingCompletionPointError: If neither an actual nor a projected D is available
    """
    if points.d is not None:
        d_price = points.d.price
    elif projected_d is not None:
        d_price = projected_d
    else:
        raise MissingCompletionPointError("Cannot calculate trading levels without D point")

    entry = d_price
    stop_loss = calculate_stop_loss(points, direction)
    targets = calculate_targets(points, direction, d_price)

    risk = abs(entry - stop_loss)
    reward = abs(targets[0] - entry)
    risk_reward_ratio = reward / risk if risk > 0 else 0.0

    return TradingLevels(
        entry=entry,
        stop_loss=stop_loss,
        targets=targets,
        risk_reward_ratio=risk_reward_ratio
    )
