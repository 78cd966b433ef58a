"""
Exception hierarchy for the harmonic pattern scanner.
"""


class HarmonicPatternError(Exception):
    """Base class for all harmonic pattern scanner errors."""


class InsufficientDataError(HarmonicPatternError):
    """Raised when a price series is too short to contain a four-point pattern."""

    def __init__(self, length: int, required: int):
        self.length = length
        self.required = required
        super().__init__(
            f"Insufficient data for harmonic pattern analysis: "
            f"{length} bars supplied, at least {required} required"
        )


class InvalidPriceSeriesError(HarmonicPatternError, ValueError):
    """Raised when the price/timestamp arrays are malformed."""


class MissingCompletionPointError(HarmonicPatternError):
    """Raised when trading levels are requested for a pattern without a D point."""


class UnknownPatternTemplateError(HarmonicPatternError, KeyError):
    """Raised when no template is registered for a (type, direction) pair."""
