import pandas as pd
import numpy as np
from datetime import datetime
from typing import Optional, Sequence

from models.harmonic_models import PatternDirection

# Fixed start so generated series are reproducible
DEFAULT_START_DATE = datetime(2024, 1, 1)


def generate_harmonic_series(
    extrema: Sequence[float],
    bars_per_leg: int = 30,
    start_date: datetime = DEFAULT_START_DATE,
    freq: str = "D"
) -> pd.DataFrame:
    """
    Generate a piecewise-linear price series through the given extrema.

    Each leg is strictly monotonic, so every interior turning point of the
    list becomes a pivot for any pivot strength below bars_per_leg.

    Args:
        extrema: Prices to pass through, in order (first and last are the series ends)
        bars_per_leg: Number of bars between consecutive extrema
        start_date: Timestamp of the first bar
        freq: Pandas frequency string for the DatetimeIndex

    Returns:
        DataFrame with a 'close' column indexed by date
    """
    if len(extrema) < 2:
        raise ValueError("At least two extrema are required")
    if bars_per_leg < 1:
        raise ValueError("bars_per_leg must be positive")

    legs = []
    for start, end in zip(extrema[:-1], extrema[1:]):
        legs.append(np.linspace(start, end, bars_per_leg + 1)[:-1])
    close_prices = np.concatenate(legs + [np.array([extrema[-1]], dtype=float)])

    dates = pd.date_range(start=start_date, periods=len(close_prices), freq=freq)
    return pd.DataFrame({'close': close_prices}, index=dates)


def gartley_extrema(direction: PatternDirection = PatternDirection.BULLISH,
                    complete: bool = False,
                    base: float = 200.0,
                    leg: float = 100.0) -> list:
    """
    Textbook Gartley extrema: AB = 0.618 XA, BC = 0.618 AB.

    For a complete pattern D sits at the CD = 1.272 BC projection from C,
    reached after a short bounce so that C stays a pivot.
    For a potential pattern the series instead turns back at a 78.6% retrace
    of XA, away from the projection, so no D pivot confirms it.

    Returns:
        [start, X, A, B, C, bounce, D, end] prices when complete,
        [start, X, A, B, C, retrace, end] prices otherwise
    """
    sign = 1 if direction is PatternDirection.BULLISH else -1

    x = base + sign * leg
    a = base
    b = a + sign * leg * 0.618
    bc = abs(b - a) * 0.618
    c = b - sign * bc

    if complete:
        d = c - sign * bc * 1.272
        bounce = c + sign * bc * 0.25
        tail = [bounce, d, d + sign * bc * 0.5]
    else:
        retrace = a + sign * leg * 0.786
        tail = [retrace, (retrace + c) / 2]

    start = (x + a) / 2
    return [start, x, a, b, c] + tail


def generate_gartley_series(direction: PatternDirection = PatternDirection.BULLISH,
                            complete: bool = False,
                            bars_per_leg: int = 30) -> pd.DataFrame:
    """Price series containing a single textbook Gartley shape."""
    return generate_harmonic_series(gartley_extrema(direction, complete), bars_per_leg)


def generate_trend_series(length: int = 200,
                          start_price: float = 100.0,
                          step: float = 0.5) -> pd.DataFrame:
    """Straight-line series without any pivots."""
    close_prices = start_price + step * np.arange(length)
    dates = pd.date_range(start=DEFAULT_START_DATE, periods=length, freq="D")
    return pd.DataFrame({'close': close_prices}, index=dates)


def generate_random_walk(length: int = 500,
                         start_price: float = 100.0,
                         volatility: float = 0.01,
                         seed: Optional[int] = 42) -> pd.DataFrame:
    """
    Generate a reproducible geometric random walk.

    Args:
        length: Number of bars
        start_price: First price
        volatility: Standard deviation of the per-bar log return
        seed: Random seed

    Returns:
        DataFrame with a 'close' column indexed by date
    """
    rng = np.random.default_rng(seed)
    returns = rng.normal(0, volatility, length)
    returns[0] = 0.0
    close_prices = start_price * np.exp(np.cumsum(returns))
    dates = pd.date_range(start=DEFAULT_START_DATE, periods=length, freq="D")
    return pd.DataFrame({'close': close_prices}, index=dates)
