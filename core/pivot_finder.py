from typing import List, Sequence

import numpy as np
from scipy import signal

from core.exceptions import InsufficientDataError
from models.harmonic_models import PricePoint


def find_pivots(prices: Sequence[float],
                timestamps: Sequence[float],
                strength: int = 3,
                min_pattern_bars: int = 20) -> List[PricePoint]:
    """
    Reduce a price series to its local extrema.

    A sample at index i (strength <= i < n - strength) is a high pivot when it is
    strictly greater than every other sample in [i - strength, i + strength] and
    a low pivot when strictly less than all of them. Plateaus produce no pivot.

    Args:
        prices: Price series in chronological order
        timestamps: Timestamps aligned with prices
        strength: Number of bars on each side of the pivot
        min_pattern_bars: Minimum bars between pattern points

    Returns:
        Pivots in ascending index order

    Raises:
        InsufficientDataError: If the series has fewer than 4 * min_pattern_bars samples
    """
    values = np.asarray(prices, dtype=float)
    n = len(values)
    required = min_pattern_bars * 4
    if n < required:
        raise InsufficientDataError(n, required)

    # argrelextrema clips the window at the edges, so edge samples are
    # filtered out below to keep only full windows
    highs = signal.argrelextrema(values, np.greater, order=strength)[0]
    lows = signal.argrelextrema(values, np.less, order=strength)[0]

    pivots = []
    for idx, pivot_type in sorted([(int(i), 'high') for i in highs] + [(int(i), 'low') for i in lows]):
        if idx < strength or idx >= n - strength:
            continue
        pivots.append(PricePoint(
            timestamp=float(timestamps[idx]),
            price=float(values[idx]),
            index=idx,
            pivot_type=pivot_type
        ))

    return pivots
