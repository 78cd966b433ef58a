import argparse
import json
import os
import sys
from typing import Dict, List, Optional

import pandas as pd

from core.exceptions import HarmonicPatternError
from core.harmonic_detector import HarmonicPatternDetector
from core.scan_aggregator import RANKING_FACTORS, rank_patterns
from data.mock_data_generator import generate_gartley_series
from models.harmonic_models import PatternScan
from models.scan_parameters import HarmonicScanParameters
from utils.config import load_config, get_config_value
from utils.logging_utils import configure_root_logger, log_exception, log_manager


def load_price_data(path: str, price_column: str) -> pd.DataFrame:
    """
    Load a price CSV.

    A 'date', 'datetime' or 'time' column becomes the DatetimeIndex; a numeric
    'timestamp' column is kept as is.

    Args:
        path: Path to the CSV file
        price_column: Column holding the prices

    Returns:
        DataFrame ready for HarmonicPatternDetector.scan_dataframe
    """
    data = pd.read_csv(path)
    for column in ('date', 'datetime', 'time'):
        if column in data.columns:
            data[column] = pd.to_datetime(data[column])
            data = data.set_index(column)
            break

    if price_column not in data.columns:
        raise ValueError(f"Column '{price_column}' not found in {path}")
    return data


def build_report(scan: PatternScan,
                 detector: HarmonicPatternDetector,
                 ranking_factor: str,
                 current_price: Optional[float] = None) -> Dict:
    """
    Build the JSON report for a scan.

    Args:
        scan: Scan result
        detector: Detector used for completion predictions
        ranking_factor: Factor used to order the reported patterns
        current_price: When given, predictions are added for potential patterns

    Returns:
        JSON-serialisable dictionary
    """
    report = scan.to_dict()
    report['patterns'] = [p.to_dict() for p in rank_patterns(scan.patterns, ranking_factor)]

    if current_price is not None:
        predictions: List[Dict] = []
        for pattern in rank_patterns(scan.potential_patterns, ranking_factor):
            prediction = detector.predict_pattern_completion(pattern, current_price)
            predictions.append({
                'pattern_type': pattern.pattern_type.value,
                'direction': pattern.direction.value,
                'x_index': pattern.points.x.index,
                'c_index': pattern.points.c.index,
                'prediction': prediction.to_dict()
            })
        report['predictions'] = predictions

    return report


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(description="Harmonic Pattern Scanner")
    parser.add_argument("--config", type=str, default="config/config.json", help="Path to config file")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    parser.add_argument("--input", type=str, help="CSV file with price data")
    parser.add_argument("--price-column", type=str, default=None, help="Price column in the CSV")
    parser.add_argument("--scan-type", type=str, default=None,
                        choices=["all", "complete", "potential"], help="Patterns to report")
    parser.add_argument("--current-price", type=float, default=None,
                        help="Latest price, adds completion predictions for potential patterns")
    parser.add_argument("--rank-by", type=str, default=None, choices=sorted(RANKING_FACTORS),
                        help="Ranking factor for reported patterns")
    parser.add_argument("--demo", action="store_true", help="Scan a generated Gartley series")
    parser.add_argument("--output", type=str, help="Write the JSON report to this file")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ValueError as e:
        logger = configure_root_logger(args.log_level or 'INFO')
        log_exception(logger, e, "Invalid configuration:")
        return 1

    # Set up logging
    log_level = args.log_level or get_config_value(config, 'logging.level', 'INFO')
    file_logging = bool(get_config_value(config, 'logging.file_logging', False))
    log_file = get_config_value(config, 'logging.log_file')
    log_manager.set_default_level(log_level)
    logger = configure_root_logger(log_level, file_logging=file_logging, log_file=log_file)
    if file_logging:
        log_manager.enable_file_logging(log_file)
    log_manager.set_all_levels(log_level)
    logger.info("Starting Harmonic Pattern Scanner")

    if not args.input and not args.demo:
        parser.error("either --input or --demo is required")

    try:
        parameters = HarmonicScanParameters.from_config(config)
    except ValueError as e:
        log_exception(logger, e, "Invalid configuration:")
        return 1

    detector = HarmonicPatternDetector(parameters)
    price_column = args.price_column or get_config_value(config, 'general.price_column', 'close')
    scan_type = args.scan_type or get_config_value(config, 'general.default_scan_type', 'all')
    ranking_factor = args.rank_by or get_config_value(config, 'ranking.ranking_factor', 'validation_score')

    try:
        if args.demo:
            data = generate_gartley_series()
            price_column = 'close'
        else:
            data = load_price_data(args.input, price_column)

        scan = detector.scan_dataframe(data, price_source=price_column, scan_type=scan_type)
        report = build_report(scan, detector, ranking_factor, args.current_price)
    except (HarmonicPatternError, ValueError, OSError) as e:
        log_exception(logger, e, "Harmonic scan failed:")
        return 1

    output = json.dumps(report, indent=2)
    if args.output:
        directory = os.path.dirname(args.output)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(args.output, 'w') as f:
            f.write(output)
        logger.info(f"Report written to {args.output}")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
