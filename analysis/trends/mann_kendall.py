#!/usr/bin/env python3
"""
Mann-Kendall Monotonic Trend Test

Rank-based test of monotonic association between year and an annual
metric (annual mean, count or maximum). The statistic and its tie-corrected
variance come from ``pymannkendall.original_test``.

Expected order: values must be sorted by year, oldest first. ``test_series``
sorts a year-keyed table itself; ``test`` trusts the caller's order.

Kendall's tau describes direction and strength only. It is not a rate of
change and is reported without any slope.
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, Any, Optional, Sequence
import pymannkendall as mk

from utils.config.helpers import filter_by_year_range
from utils.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


class MannKendallTester:
    """Non-parametric trend test over a year-ordered series."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        stats_config = config.get('analysis', {}).get('statistics', {})
        self.alpha = 1 - stats_config.get('confidence_level', 0.95)
        self.min_observations = int(stats_config.get('min_observations_mk', 4))

    def test(self, values: Sequence[float], alpha: Optional[float] = None) -> Dict[str, Any]:
        """Run the test on values already ordered by year (missing values are dropped)."""
        alpha = self.alpha if alpha is None else alpha
        data = np.asarray(values, dtype=float)
        data = data[~np.isnan(data)]

        if len(data) < self.min_observations:
            raise InsufficientDataError(
                f"Mann-Kendall test needs at least {self.min_observations} observations, got {len(data)}"
            )

        result = mk.original_test(data, alpha=alpha)

        return {
            'tau': float(result.Tau),
            'p_value': float(result.p),
            's': float(result.s),
            'var_s': float(result.var_s),
            'z': float(result.z),
            'trend': result.trend,
            'significant': bool(result.h),
            'alpha': alpha,
            'n_observations': int(len(data))
        }

    def test_series(self, table: pd.DataFrame, value_column: str,
                    year_range: Optional[Sequence[Optional[int]]] = None,
                    year_column: str = 'year') -> Dict[str, Any]:
        """Sort a year-keyed table by year and test ``value_column``."""
        subset = filter_by_year_range(table, tuple(year_range) if year_range else None, year_column)
        ordered = subset.sort_values(year_column)
        result = self.test(ordered[value_column].values)

        valid_years = ordered.loc[ordered[value_column].notna(), year_column]
        result['metric'] = value_column
        result['year_range'] = (int(valid_years.min()), int(valid_years.max()))

        logger.info(f"Mann-Kendall {value_column}: tau={result['tau']:.3f} "
                    f"p={result['p_value']:.4f} ({result['trend']}, n={result['n_observations']})")
        return result

    @staticmethod
    def results_to_frame(results: Dict[str, Dict[str, Any]]) -> pd.DataFrame:
        """Tabulate test results, one row per series."""
        rows = []
        for name, result in results.items():
            rows.append({
                'series': name,
                'metric': result.get('metric', name),
                'start_year': result.get('year_range', (None, None))[0],
                'end_year': result.get('year_range', (None, None))[1],
                'tau': result['tau'],
                'p_value': result['p_value'],
                's': result['s'],
                'z': result['z'],
                'trend': result['trend'],
                'n_observations': result['n_observations']
            })
        return pd.DataFrame(rows)
