#!/usr/bin/env python3
"""
Linear Trend Estimation Module

Ordinary least-squares fit of an annual metric against year,
``value = intercept + slope * year``, over the full series or an inclusive
year sub-range. Overlapping sub-ranges are allowed: they compare shifting
eras and do not partition the record.
"""

import pandas as pd
import logging
from typing import Dict, Any, Optional, Tuple, Mapping, Sequence
from statsmodels.formula.api import ols

from utils.config.helpers import filter_by_year_range
from utils.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

YearRange = Tuple[Optional[int], Optional[int]]


class TrendEstimator:
    """
    OLS trend of a metric against year.

    Results are plain dictionaries so they can be tabulated and exported
    alongside the other analyses.
    """

    min_observations = 2

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the estimator.

        Args:
            config: Framework configuration; ``analysis.statistics.confidence_level``
                sets the default interval level (0.95 when absent)
        """
        self.config = config
        self.confidence_level = config.get('analysis', {}).get('statistics', {}).get('confidence_level', 0.95)

    def fit(self, table: pd.DataFrame, value_column: str,
            year_range: Optional[YearRange] = None,
            confidence_level: Optional[float] = None,
            year_column: str = 'year') -> Dict[str, Any]:
        """
        Fit the trend of ``value_column`` against year.

        Args:
            table: One row per year (annual summary or extreme series)
            value_column: Metric to regress
            year_range: Inclusive (start, end) years; None fits the full series
            confidence_level: Level of the slope interval, e.g. 0.90 or 0.95
            year_column: Name of the year column

        Returns:
            Dictionary with slope, intercept, confidence_interval, p_value,
            n_observations, r_squared, std_error, the fitted values and the
            regression summary table

        Raises:
            InsufficientDataError: fewer than two valid (year, value) pairs
        """
        level = self.confidence_level if confidence_level is None else confidence_level
        if not 0 < level < 1:
            raise ValueError(f"confidence_level must be between 0 and 1, got {level}")

        subset = filter_by_year_range(table, year_range, year_column)
        frame = pd.DataFrame({
            'year': subset[year_column].astype(float),
            'value': subset[value_column].astype(float)
        }).dropna().sort_values('year')

        if len(frame) < self.min_observations:
            raise InsufficientDataError(
                f"Trend of {value_column} over {self._describe_range(year_range)} needs at least "
                f"{self.min_observations} observations, got {len(frame)}"
            )

        model = ols('value ~ year', data=frame).fit()
        lower, upper = model.conf_int(alpha=1 - level).loc['year']

        result = {
            'metric': value_column,
            'year_range': (int(frame['year'].min()), int(frame['year'].max())),
            'slope': float(model.params['year']),
            'intercept': float(model.params['Intercept']),
            'confidence_interval': {
                'lower': float(lower),
                'upper': float(upper),
                'level': level
            },
            'p_value': float(model.pvalues['year']),
            'std_error': float(model.bse['year']),
            'r_squared': float(model.rsquared),
            'n_observations': int(model.nobs),
            'fitted': pd.Series(model.fittedvalues.values, index=frame['year'].astype(int).values, name='fitted'),
            'summary': self._summary_text(model, value_column, level)
        }

        logger.info(f"OLS trend {value_column} {self._describe_range(year_range)}: "
                    f"slope={result['slope']:.4f}/yr "
                    f"[{result['confidence_interval']['lower']:.4f}, {result['confidence_interval']['upper']:.4f}] "
                    f"p={result['p_value']:.4f} n={result['n_observations']}")

        return result

    def fit_ranges(self, table: pd.DataFrame, value_column: str,
                   ranges: Mapping[str, Sequence[Optional[int]]],
                   confidence_level: Optional[float] = None,
                   include_full: bool = True,
                   errors: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
        """Fit one trend per named year range (plus the full series when requested).

        Without ``errors`` the first range that cannot be fitted raises
        InsufficientDataError. With it, the failure is recorded under the range
        name and the remaining ranges are still fitted.
        """
        requested = [('full', None)] if include_full else []
        requested += [(name, tuple(year_range)) for name, year_range in ranges.items()]

        results = {}
        for name, year_range in requested:
            try:
                results[name] = self.fit(table, value_column, year_range, confidence_level)
            except InsufficientDataError as e:
                if errors is None:
                    raise
                logger.error(f"Trend of {value_column} ({name}) failed: {e}")
                errors[name] = str(e)

        return results

    @staticmethod
    def results_to_frame(results: Mapping[str, Dict[str, Any]]) -> pd.DataFrame:
        """Tabulate trend results, one row per fit."""
        rows = []
        for name, result in results.items():
            rows.append({
                'range': name,
                'metric': result['metric'],
                'start_year': result['year_range'][0],
                'end_year': result['year_range'][1],
                'slope': result['slope'],
                'intercept': result['intercept'],
                'ci_lower': result['confidence_interval']['lower'],
                'ci_upper': result['confidence_interval']['upper'],
                'ci_level': result['confidence_interval']['level'],
                'p_value': result['p_value'],
                'r_squared': result['r_squared'],
                'n_observations': result['n_observations']
            })
        return pd.DataFrame(rows)

    @staticmethod
    def _summary_text(model, value_column: str, level: float) -> str:
        # Residual diagnostics in the full summary can fail on very short series
        try:
            return str(model.summary(alpha=1 - level, yname=value_column))
        except ValueError:
            return model.summary2(alpha=1 - level).tables[1].to_string()

    @staticmethod
    def _describe_range(year_range: Optional[YearRange]) -> str:
        if year_range is None:
            return 'full record'
        start, end = year_range
        return f"{start if start is not None else '...'}-{end if end is not None else '...'}"
