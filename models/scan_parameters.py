from dataclasses import dataclass, asdict
from typing import Dict, Optional, Any

from utils.config import get_config_value


@dataclass(frozen=True)
class HarmonicScanParameters:
    """
    Parameters for harmonic pattern scanning.

    The tolerances and thresholds keep the values the detector has always
    used; they are exposed here so callers can override them.
    """
    pivot_strength: int = 3
    min_pattern_bars: int = 20
    max_pattern_bars: int = 200
    fibonacci_tolerance: float = 0.05
    pivot_match_tolerance: float = 0.02
    min_validation_score: float = 0.6
    entry_validation_score: float = 0.7
    entry_distance_tolerance: float = 0.02
    min_risk_reward: float = 1.5
    max_pivots: int = 50
    max_workers: int = 1

    def __post_init__(self):
        self.validate()

    @property
    def min_series_length(self) -> int:
        """Shortest series that can hold X, A, B and C at minimum spacing."""
        return self.min_pattern_bars * 4

    def validate(self) -> None:
        """
        Reject parameter combinations the scanner cannot work with.

        Raises:
            ValueError: If a window, span or tolerance is out of range
        """
        if self.pivot_strength < 1:
            raise ValueError(f"pivot_strength must be >= 1, got {self.pivot_strength}")
        if self.min_pattern_bars < 1:
            raise ValueError(f"min_pattern_bars must be >= 1, got {self.min_pattern_bars}")
        if self.max_pattern_bars < self.min_pattern_bars * 3:
            raise ValueError(
                f"max_pattern_bars ({self.max_pattern_bars}) cannot hold three legs of "
                f"min_pattern_bars ({self.min_pattern_bars})"
            )
        for name in ('fibonacci_tolerance', 'pivot_match_tolerance', 'entry_distance_tolerance'):
            value = getattr(self, name)
            if not 0 < value < 1:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        if self.max_pivots < 4:
            raise ValueError(f"max_pivots must be >= 4, got {self.max_pivots}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_config(cls, config: Optional[Dict]) -> 'HarmonicScanParameters':
        """
        Create parameters from a configuration dictionary.

        Reads the `harmonics` section and `performance.max_workers`; missing
        keys keep their defaults.

        Args:
            config: Configuration dictionary (see get_default_config)

        Returns:
            HarmonicScanParameters instance
        """
        config = config or {}
        defaults = cls()
        values = {}
        for name in defaults.to_dict():
            if name == 'max_workers':
                values[name] = get_config_value(config, 'performance.max_workers', defaults.max_workers)
            else:
                values[name] = get_config_value(config, f'harmonics.{name}', getattr(defaults, name))
        return cls(**values)
