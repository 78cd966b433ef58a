import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from core.completion_projector import find_nearest_pivot, project_d
from core.exceptions import MissingCompletionPointError
from core.fibonacci_validator import (
    calculate_confidence_score, calculate_validation_score,
    validate_fibonacci_ratios, validate_partial_ratios
)
from models.harmonic_models import (
    CompletionStatus, HarmonicPattern, PatternDirection, PatternPoints,
    PatternTemplate, PricePoint
)
from models.scan_parameters import HarmonicScanParameters
from trading.trading_levels import calculate_trading_levels
from utils.logging_utils import get_component_logger

DEFAULT_LOGGER = get_component_logger("core.pattern_scanner")


def cap_pivots(pivots: Sequence[PricePoint], max_pivots: int) -> List[PricePoint]:
    """Keep only the most recent pivots to bound the O(p^4) enumeration."""
    return list(pivots[-max_pivots:]) if len(pivots) > max_pivots else list(pivots)


def is_valid_pivot_sequence(x: PricePoint, a: PricePoint, b: PricePoint, c: PricePoint,
                            direction: PatternDirection) -> bool:
    """
    Check the alternating high/low ordering of X, A, B, C.

    Bullish: X high, A low, B high, C low. Bearish is the mirror image.
    """
    if direction is PatternDirection.BULLISH:
        return x.price > a.price and b.price > a.price and c.price < b.price
    return x.price < a.price and b.price < a.price and c.price > b.price


def is_valid_time_sequence(x: PricePoint, a: PricePoint, b: PricePoint, c: PricePoint,
                           min_bars: int, max_bars: int) -> bool:
    """Each leg spans at least min_bars and X to C spans at most max_bars."""
    return (
        a.index - x.index >= min_bars
        and b.index - a.index >= min_bars
        and c.index - b.index >= min_bars
        and c.index - x.index <= max_bars
    )


class PatternScanner:
    """
    Enumerates X-A-B-C pivot quadruples and turns the ones that fit a
    template into scored harmonic patterns.

    The enumeration is a brute-force search over strictly increasing pivot
    quadruples. Loops are pruned as soon as a leg breaks the direction or
    spacing rules; because pivots are sorted by index, a span that already
    exceeds max_pattern_bars cannot shrink further along the loop. The pivot
    list is capped to the most recent `max_pivots` entries beforehand.
    """

    def __init__(self,
                 parameters: Optional[HarmonicScanParameters] = None,
                 logger: Optional[logging.Logger] = None):
        self.parameters = parameters or HarmonicScanParameters()
        self.logger = logger or DEFAULT_LOGGER

    def iter_candidates(self,
                        pivots: Sequence[PricePoint],
                        direction: PatternDirection) -> Iterator[Tuple[PricePoint, PricePoint, PricePoint, PricePoint]]:
        """
        Yield X, A, B, C quadruples passing the direction and spacing filters.

        Args:
            pivots: Pivots in ascending index order
            direction: Direction whose ordering the points must follow

        Yields:
            (X, A, B, C) tuples of pivots
        """
        min_bars = self.parameters.min_pattern_bars
        max_bars = self.parameters.max_pattern_bars
        bullish = direction is PatternDirection.BULLISH
        count = len(pivots)

        for xi in range(count - 3):
            x = pivots[xi]
            for ai in range(xi + 1, count - 2):
                a = pivots[ai]
                if a.index - x.index > max_bars:
                    break
                if a.index - x.index < min_bars:
                    continue
                if (x.price <= a.price) if bullish else (x.price >= a.price):
                    continue

                for bi in range(ai + 1, count - 1):
                    b = pivots[bi]
                    if b.index - x.index > max_bars:
                        break
                    if b.index - a.index < min_bars:
                        continue
                    if (b.price <= a.price) if bullish else (b.price >= a.price):
                        continue

                    for ci in range(bi + 1, count):
                        c = pivots[ci]
                        if c.index - x.index > max_bars:
                            break
                        if not is_valid_time_sequence(x, a, b, c, min_bars, max_bars):
                            continue
                        if not is_valid_pivot_sequence(x, a, b, c, direction):
                            continue
                        yield x, a, b, c

    def scan(self, pivots: Sequence[PricePoint], template: PatternTemplate) -> List[HarmonicPattern]:
        """
        Scan a pivot list for patterns matching one template.

        Args:
            pivots: Pivots in ascending index order
            template: Pattern template to match

        Returns:
            Scored patterns in enumeration order
        """
        capped = cap_pivots(pivots, self.parameters.max_pivots)
        if len(capped) < len(pivots):
            self.logger.debug(f"Capped pivot list from {len(pivots)} to {len(capped)} pivots")

        patterns = []
        if len(capped) < 4:
            return patterns

        for x, a, b, c in self.iter_candidates(capped, template.direction):
            pattern = self._build_pattern(PatternPoints(x=x, a=a, b=b, c=c), capped, template)
            if pattern is not None:
                patterns.append(pattern)

        self.logger.debug(f"{template.description}: {len(patterns)} patterns "
                          f"from {len(capped)} pivots")
        return patterns

    def _build_pattern(self,
                       points: PatternPoints,
                       pivots: Sequence[PricePoint],
                       template: PatternTemplate) -> Optional[HarmonicPattern]:
        """Validate, complete, score and price one candidate; None if it is rejected."""
        params = self.parameters

        partial = validate_partial_ratios(points, template, params.fibonacci_tolerance)
        if partial is None:
            self.logger.debug(f"Skipping degenerate candidate at X={points.x.index}: zero-length leg")
            return None
        if not (partial.ab_xa.is_valid and partial.bc_ab.is_valid):
            return None

        projected_d = project_d(points, template.direction, template)
        if projected_d <= 0:
            self.logger.debug(f"Skipping candidate at X={points.x.index}: "
                              f"projected D {projected_d:.4f} is not a valid price")
            return None

        d_point = find_nearest_pivot(pivots, projected_d, points.c.index, params.pivot_match_tolerance)
        if d_point is not None:
            points = points.with_d(d_point)
            ratios = validate_fibonacci_ratios(points, template, params.fibonacci_tolerance)
            if ratios is None:
                self.logger.debug(f"Skipping degenerate candidate at X={points.x.index}: zero-length leg")
                return None
        else:
            ratios = partial

        validation_score = calculate_validation_score(ratios)
        if validation_score <= params.min_validation_score:
            return None

        try:
            trading_levels = calculate_trading_levels(points, template.direction, projected_d)
        except MissingCompletionPointError as e:
            self.logger.debug(f"Dropping candidate at X={points.x.index}: {e}")
            return None

        if trading_levels.risk_reward_ratio <= 0:
            self.logger.debug(f"Skipping candidate at X={points.x.index}: zero risk or reward")
            return None

        return HarmonicPattern(
            pattern_type=template.pattern_type,
            direction=template.direction,
            points=points,
            fibonacci_ratios=ratios,
            completion=CompletionStatus(
                is_complete=d_point is not None,
                projected_d=projected_d,
                confidence_score=calculate_confidence_score(ratios),
                validation_score=validation_score
            ),
            trading_levels=trading_levels,
            reliability=template.reliability
        )
