"""
Analysis Module

Annual and seasonal aggregation, trend estimation, era comparisons
and extreme-event statistics for daily station records.
"""

from .core.aggregator import TemporalAggregator
from .core.extreme_events import (
    ExtremeEventCounter,
    count_exceedance_days,
    annual_extreme,
    total_exceedances,
    estimate_return_period
)
from .trends.trend_estimator import TrendEstimator
from .trends.mann_kendall import MannKendallTester
from .comparative.statistical_tests import DistributionComparator

__all__ = [
    'TemporalAggregator',
    'ExtremeEventCounter',
    'count_exceedance_days',
    'annual_extreme',
    'total_exceedances',
    'estimate_return_period',
    'TrendEstimator',
    'MannKendallTester',
    'DistributionComparator'
]
