from typing import Dict


def get_default_config() -> Dict:
    """
    Returns a default configuration dictionary for the system.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "general": {
            "price_column": "close",
            "default_scan_type": "all"
        },
        "harmonics": {
            "pivot_strength": 3,
            "min_pattern_bars": 20,
            "max_pattern_bars": 200,
            "fibonacci_tolerance": 0.05,
            "pivot_match_tolerance": 0.02,  # fraction of the projected D price
            "min_validation_score": 0.6,
            "entry_validation_score": 0.7,
            "entry_distance_tolerance": 0.02,
            "min_risk_reward": 1.5,
            "max_pivots": 50
        },
        "ranking": {
            "ranking_factor": "validation_score"
        },
        "performance": {
            "max_workers": 1
        },
        "logging": {
            "level": "INFO",
            "file_logging": False,
            "log_file": None
        }
    }
