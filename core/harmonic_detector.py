import concurrent.futures
import logging
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.completion_projector import predict_completion
from core.exceptions import InsufficientDataError, InvalidPriceSeriesError
from core.fibonacci_validator import validate_fibonacci_ratios
from core.pattern_scanner import PatternScanner
from core.pivot_finder import find_pivots
from core.scan_aggregator import aggregate
from models.harmonic_models import (
    CompletionPrediction, FibonacciRatios, HarmonicPattern, PatternPoints,
    PatternScan, PatternTemplate, PricePoint, ScanType, TradingLevels
)
from models.pattern_templates import PatternTemplateRegistry
from models.scan_parameters import HarmonicScanParameters
from trading.trading_levels import calculate_trading_levels
from utils.logging_utils import get_component_logger

DEFAULT_LOGGER = get_component_logger("core.harmonic_detector")


class HarmonicPatternDetector:
    """
    Main entry point for harmonic pattern detection.

    This class ties the scanning pipeline together:

    1. Validating the price/timestamp input
    2. Reducing the series to pivots
    3. Scanning the pivots once per registered template
       (Gartley, Butterfly, Bat and Crab, bullish and bearish)
    4. Aggregating complete and potential patterns with quality metrics

    It also exposes completion prediction and trading level helpers for
    patterns returned by a scan.

    A detector holds no scan state. Its registry is read-only, so instances
    can be shared, and scans run with max_workers > 1 fan the templates out
    over a thread pool while keeping results in registry order.
    """

    def __init__(self,
                 parameters: Optional[HarmonicScanParameters] = None,
                 registry: Optional[PatternTemplateRegistry] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the detector.

        Args:
            parameters: Scan parameters (defaults when None)
            registry: Template registry (standard templates when None)
            logger: Optional logger instance
        """
        self.parameters = parameters or HarmonicScanParameters()
        self.registry = registry or PatternTemplateRegistry()
        self.logger = logger or DEFAULT_LOGGER
        self.scanner = PatternScanner(self.parameters, self.logger)

    def scan_for_harmonic_patterns(self,
                                   prices: Sequence[float],
                                   timestamps: Sequence[float],
                                   scan_type="all") -> PatternScan:
        """
        Scan a price series for harmonic patterns.

        Args:
            prices: Prices in chronological order
            timestamps: Non-decreasing timestamps aligned with prices
            scan_type: "all", "complete" or "potential"

        Returns:
            PatternScan with every surviving pattern partitioned into
            complete and potential ones

        Raises:
            InsufficientDataError: If the series is shorter than 4 * min_pattern_bars
            InvalidPriceSeriesError: If the input arrays are malformed
        """
        scan_type = ScanType(scan_type)
        price_array, time_array = self._prepare_series(prices, timestamps)

        start_time = time.time()
        pivots = find_pivots(
            price_array,
            time_array,
            strength=self.parameters.pivot_strength,
            min_pattern_bars=self.parameters.min_pattern_bars
        )
        self.logger.debug(f"Found {len(pivots)} pivots in {len(price_array)} bars")

        patterns = self._scan_templates(pivots)
        result = aggregate(patterns, scan_type)

        self.logger.info(
            f"Harmonic scan found {len(result.completed_patterns)} complete and "
            f"{len(result.potential_patterns)} potential patterns "
            f"in {time.time() - start_time:.3f} seconds"
        )
        return result

    def scan_dataframe(self,
                       data: pd.DataFrame,
                       price_source: str = "close",
                       scan_type="all") -> PatternScan:
        """
        Scan a price DataFrame.

        Timestamps come from a DatetimeIndex (as epoch seconds), otherwise from
        a 'timestamp' column, otherwise from the row position.

        Args:
            data: DataFrame with a price column
            price_source: Name of the price column
            scan_type: "all", "complete" or "potential"

        Returns:
            PatternScan
        """
        if price_source not in data.columns:
            raise InvalidPriceSeriesError(f"Price source '{price_source}' not found in data")

        prices = data[price_source].to_numpy(dtype=float)

        if isinstance(data.index, pd.DatetimeIndex):
            index = data.index
            if index.tz is not None:
                index = index.tz_convert(None)
            timestamps = index.to_numpy(dtype='datetime64[ns]').astype('int64') / 1e9
        elif 'timestamp' in data.columns:
            timestamps = data['timestamp'].to_numpy(dtype=float)
        else:
            timestamps = np.arange(len(data), dtype=float)

        return self.scan_for_harmonic_patterns(prices, timestamps, scan_type)

    def predict_pattern_completion(self,
                                   pattern: HarmonicPattern,
                                   current_price: float) -> CompletionPrediction:
        """
        Predict the completion of a potential pattern.

        Args:
            pattern: Pattern returned by a scan
            current_price: Latest traded price

        Returns:
            CompletionPrediction
        """
        template = self.registry.get(pattern.pattern_type, pattern.direction)
        return predict_completion(pattern, template, current_price, self.parameters)

    def calculate_trading_levels(self,
                                 pattern: HarmonicPattern,
                                 projected_d: Optional[float] = None) -> TradingLevels:
        """Trading levels for a pattern, falling back to its stored projection."""
        if projected_d is None:
            projected_d = pattern.completion.projected_d
        return calculate_trading_levels(pattern.points, pattern.direction, projected_d)

    def validate_fibonacci_ratios(self,
                                  points: PatternPoints,
                                  template: PatternTemplate) -> Optional[FibonacciRatios]:
        return validate_fibonacci_ratios(points, template, self.parameters.fibonacci_tolerance)

    def get_pattern_template(self, pattern_type, direction) -> PatternTemplate:
        return self.registry.get(pattern_type, direction)

    def get_available_pattern_types(self) -> List[str]:
        return self.registry.available_pattern_types()

    def _scan_templates(self, pivots: List[PricePoint]) -> List[HarmonicPattern]:
        """Run the scanner for every template, concatenating results in registry order."""
        templates = list(self.registry)
        max_workers = min(self.parameters.max_workers, len(templates))

        if max_workers <= 1:
            results = [self.scanner.scan(pivots, template) for template in templates]
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
                # map() yields in submission order, keeping the output deterministic
                results = list(executor.map(lambda t: self.scanner.scan(pivots, t), templates))

        patterns = []
        for template, template_patterns in zip(templates, results):
            if template_patterns:
                self.logger.debug(f"{template.description}: {len(template_patterns)} patterns")
            patterns.extend(template_patterns)
        return patterns

    def _prepare_series(self,
                        prices: Sequence[float],
                        timestamps: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Convert and validate the input arrays.

        Raises:
            InvalidPriceSeriesError: On shape, value or ordering problems
            InsufficientDataError: If the series is too short
        """
        try:
            price_array = np.asarray(prices, dtype=float)
            time_array = np.asarray(timestamps, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidPriceSeriesError(f"Prices and timestamps must be numeric: {e}")

        if price_array.ndim != 1 or time_array.ndim != 1:
            raise InvalidPriceSeriesError("Prices and timestamps must be one-dimensional")
        if len(price_array) != len(time_array):
            raise InvalidPriceSeriesError(
                f"Prices ({len(price_array)}) and timestamps ({len(time_array)}) differ in length"
            )

        required = self.parameters.min_series_length
        if len(price_array) < required:
            raise InsufficientDataError(len(price_array), required)

        if not np.all(np.isfinite(price_array)) or np.any(price_array <= 0):
            raise InvalidPriceSeriesError("Prices must be finite and positive")
        if not np.all(np.isfinite(time_array)):
            raise InvalidPriceSeriesError("Timestamps must be finite")
        if np.any(np.diff(time_array) < 0):
            raise InvalidPriceSeriesError("Timestamps must be non-decreasing")

        return price_array, time_array
