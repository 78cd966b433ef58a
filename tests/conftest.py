import pytest
import os
import numpy as np
import pandas as pd

# Add parent directory to path
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.harmonic_detector import HarmonicPatternDetector
from data.mock_data_generator import (
    generate_gartley_series, generate_random_walk, generate_trend_series
)
from models.harmonic_models import PatternDirection, PricePoint, PatternPoints
from models.pattern_templates import PatternTemplateRegistry
from models.scan_parameters import HarmonicScanParameters


def series_arrays(data: pd.DataFrame):
    """Prices and integer-position timestamps of a generated series."""
    prices = data['close'].to_numpy()
    timestamps = np.arange(len(prices), dtype=float)
    return prices, timestamps


def make_point(index, price):
    return PricePoint(timestamp=float(index), price=float(price), index=index)


@pytest.fixture
def parameters():
    return HarmonicScanParameters()


@pytest.fixture
def registry():
    return PatternTemplateRegistry()


@pytest.fixture
def detector(parameters, registry):
    return HarmonicPatternDetector(parameters, registry)


@pytest.fixture
def gartley_template(registry):
    return registry.get('gartley', 'bullish')


@pytest.fixture
def bullish_gartley_points():
    """X=300, A=200, B at 61.8% of XA, C at 61.8% of AB, 30 bars apart."""
    b = 200 + 100 * 0.618
    c = b - (b - 200) * 0.618
    return PatternPoints(
        x=make_point(30, 300.0),
        a=make_point(60, 200.0),
        b=make_point(90, b),
        c=make_point(120, c)
    )


@pytest.fixture
def potential_gartley_data():
    return generate_gartley_series(PatternDirection.BULLISH, complete=False)


@pytest.fixture
def complete_gartley_data():
    return generate_gartley_series(PatternDirection.BULLISH, complete=True)


@pytest.fixture
def bearish_gartley_data():
    return generate_gartley_series(PatternDirection.BEARISH, complete=False)


@pytest.fixture
def trend_data():
    return generate_trend_series(length=200)


@pytest.fixture
def random_walk_data():
    return generate_random_walk(length=600, seed=7)
