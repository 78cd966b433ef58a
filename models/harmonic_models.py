from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any

import numpy as np


class PatternType(str, Enum):
    """Supported harmonic pattern shapes."""
    GARTLEY = "gartley"
    BUTTERFLY = "butterfly"
    BAT = "bat"
    CRAB = "crab"


class PatternDirection(str, Enum):
    """Expected reversal direction at the D point."""
    BULLISH = "bullish"
    BEARISH = "bearish"


class ScanType(str, Enum):
    """Which subset of surviving patterns a scan reports in `patterns`."""
    ALL = "all"
    COMPLETE = "complete"
    POTENTIAL = "potential"


def _to_native(obj: Any) -> Any:
    """Convert numpy scalars and containers to builtin Python types."""
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, dict):
        return {k: _to_native(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_to_native(item) for item in obj]
    elif hasattr(obj, 'isoformat'):
        return obj.isoformat()
    return obj


@dataclass(frozen=True)
class PricePoint:
    """
    One sampled observation of the price series.

    `index` is the offset of the sample in the original series and is used for
    bar-spacing checks.
    """
    timestamp: float
    price: float
    index: int
    pivot_type: Optional[str] = None

    def to_dict(self) -> Dict:
        return _to_native({
            'timestamp': self.timestamp,
            'price': self.price,
            'index': self.index,
            'pivot_type': self.pivot_type
        })


@dataclass(frozen=True)
class FibonacciRatio:
    """Validation result for one leg ratio against its target."""
    ratio: float
    tolerance: float
    actual_ratio: float
    deviation: float
    is_valid: bool

    def to_dict(self) -> Dict:
        return _to_native({
            'ratio': self.ratio,
            'tolerance': self.tolerance,
            'actual_ratio': self.actual_ratio,
            'deviation': self.deviation,
            'is_valid': self.is_valid
        })


@dataclass(frozen=True)
class RatioBand:
    """Acceptable (minimum, maximum) range and ideal value of one leg ratio."""
    minimum: float
    maximum: float
    ideal: float

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True)
class PatternTemplate:
    """
    Immutable description of one harmonic shape in one direction.

    The four bands describe AB/XA, BC/AB, CD/BC and AD/XA. Reliability is a
    baseline score between 0 and 100.
    """
    pattern_type: PatternType
    direction: PatternDirection
    ab_xa: RatioBand
    bc_ab: RatioBand
    cd_bc: RatioBand
    ad_xa: RatioBand
    description: str
    reliability: float

    @property
    def key(self):
        return (self.pattern_type, self.direction)


@dataclass
class PatternPoints:
    """The labelled X, A, B, C and optional D points of a pattern."""
    x: PricePoint
    a: PricePoint
    b: PricePoint
    c: PricePoint
    d: Optional[PricePoint] = None

    def with_d(self, d_point: Optional[PricePoint]) -> 'PatternPoints':
        return PatternPoints(x=self.x, a=self.a, b=self.b, c=self.c, d=d_point)

    def to_dict(self) -> Dict:
        result = {
            'X': self.x.to_dict(),
            'A': self.a.to_dict(),
            'B': self.b.to_dict(),
            'C': self.c.to_dict()
        }
        if self.d is not None:
            result['D'] = self.d.to_dict()
        return result


@dataclass
class FibonacciRatios:
    """Per-leg ratio validations; CD/BC and AD/XA exist only once D is known."""
    ab_xa: FibonacciRatio
    bc_ab: FibonacciRatio
    cd_bc: Optional[FibonacciRatio] = None
    ad_xa: Optional[FibonacciRatio] = None

    def evaluated(self) -> List[FibonacciRatio]:
        """Ratios that were actually computed, in leg order."""
        return [r for r in (self.ab_xa, self.bc_ab, self.cd_bc, self.ad_xa) if r is not None]

    def valid(self) -> List[FibonacciRatio]:
        return [r for r in self.evaluated() if r.is_valid]

    def to_dict(self) -> Dict:
        result = {
            'AB_XA': self.ab_xa.to_dict(),
            'BC_AB': self.bc_ab.to_dict()
        }
        if self.cd_bc is not None:
            result['CD_BC'] = self.cd_bc.to_dict()
        if self.ad_xa is not None:
            result['AD_XA'] = self.ad_xa.to_dict()
        return result


@dataclass
class CompletionStatus:
    is_complete: bool
    projected_d: Optional[float]
    confidence_score: float
    validation_score: float

    def to_dict(self) -> Dict:
        return _to_native({
            'is_complete': self.is_complete,
            'projected_d': self.projected_d,
            'confidence_score': self.confidence_score,
            'validation_score': self.validation_score
        })


@dataclass
class TradingLevels:
    entry: float
    stop_loss: float
    targets: List[float] = field(default_factory=list)
    risk_reward_ratio: float = 0.0

    def to_dict(self) -> Dict:
        return _to_native({
            'entry': self.entry,
            'stop_loss': self.stop_loss,
            'targets': self.targets,
            'risk_reward_ratio': self.risk_reward_ratio
        })


@dataclass
class HarmonicPattern:
    """
    One detected (complete) or candidate (potential) harmonic pattern.
    """
    pattern_type: PatternType
    direction: PatternDirection
    points: PatternPoints
    fibonacci_ratios: FibonacciRatios
    completion: CompletionStatus
    trading_levels: TradingLevels
    reliability: float

    @property
    def is_complete(self) -> bool:
        return self.completion.is_complete

    def to_dict(self) -> Dict:
        return {
            'pattern_type': self.pattern_type.value,
            'direction': self.direction.value,
            'points': self.points.to_dict(),
            'fibonacci_ratios': self.fibonacci_ratios.to_dict(),
            'completion': self.completion.to_dict(),
            'trading_levels': self.trading_levels.to_dict(),
            'reliability': _to_native(self.reliability)
        }


@dataclass
class QualityMetrics:
    average_reliability: float = 0.0
    fibonacci_accuracy: float = 0.0
    pattern_density: int = 0

    def to_dict(self) -> Dict:
        return _to_native({
            'average_reliability': self.average_reliability,
            'fibonacci_accuracy': self.fibonacci_accuracy,
            'pattern_density': self.pattern_density
        })


@dataclass
class PatternScan:
    """
    Complete result of one harmonic pattern scan.

    `potential_patterns` and `completed_patterns` partition every surviving
    pattern; `patterns` holds the subset requested by the scan type.
    """
    patterns: List[HarmonicPattern] = field(default_factory=list)
    potential_patterns: List[HarmonicPattern] = field(default_factory=list)
    completed_patterns: List[HarmonicPattern] = field(default_factory=list)
    quality_metrics: QualityMetrics = field(default_factory=QualityMetrics)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'patterns': [p.to_dict() for p in self.patterns],
            'potential_patterns': [p.to_dict() for p in self.potential_patterns],
            'completed_patterns': [p.to_dict() for p in self.completed_patterns],
            'quality_metrics': self.quality_metrics.to_dict()
        }


@dataclass
class TradingPlan:
    should_enter: bool
    entry_price: float
    stop_loss: float
    targets: List[float]
    timeframe: str

    def to_dict(self) -> Dict:
        return _to_native({
            'should_enter': self.should_enter,
            'entry_price': self.entry_price,
            'stop_loss': self.stop_loss,
            'targets': self.targets,
            'timeframe': self.timeframe
        })


@dataclass
class CompletionPrediction:
    """Projection of where and when a potential pattern may complete."""
    projected_completion: float
    time_estimate: float
    probability: float
    trading_plan: TradingPlan

    def to_dict(self) -> Dict:
        return {
            'projected_completion': _to_native(self.projected_completion),
            'time_estimate': _to_native(self.time_estimate),
            'probability': _to_native(self.probability),
            'trading_plan': self.trading_plan.to_dict()
        }
