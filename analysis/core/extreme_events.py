#!/usr/bin/env python3
"""
Extreme Event Module

Per-year threshold-exceedance counts, per-year extrema, and the empirical
return-period estimate derived from exceedance counts.

Each per-year series has one row per calendar year present in the daily
record. A year with valid observations but no qualifying day counts 0;
a year with no valid observation for the variable yields NaN.
"""

import operator
import pandas as pd
import numpy as np
import logging
from typing import Dict, Any, Optional

from utils.exceptions import ReturnPeriodError

logger = logging.getLogger(__name__)

COMPARISONS = {
    'le': operator.le,
    'lt': operator.lt,
    'ge': operator.ge,
    'gt': operator.gt
}

COMPARISON_SYMBOLS = {'le': '<=', 'lt': '<', 'ge': '>=', 'gt': '>'}


def _years(data: pd.DataFrame) -> pd.Series:
    if 'year' in data.columns:
        return data['year'].astype(int)
    return data['date'].dt.year.rename('year')


def exceedance_indicator(data: pd.DataFrame, column: str, threshold: float,
                         comparison: str = 'ge') -> pd.Series:
    """Daily 1/0 indicator of the exceedance condition; NaN where the value is missing."""
    if comparison not in COMPARISONS:
        raise ValueError(f"Unknown comparison '{comparison}'. Use one of {sorted(COMPARISONS)}")

    values = data[column]
    hits = COMPARISONS[comparison](values, threshold).astype(float)
    return hits.where(values.notna())


def count_exceedance_days(data: pd.DataFrame, column: str, threshold: float,
                          comparison: str = 'ge', name: Optional[str] = None) -> pd.DataFrame:
    """Number of days per year where ``column <comparison> threshold``."""
    name = name or f'{column}_{comparison}_{threshold:g}_days'
    indicator = exceedance_indicator(data, column, threshold, comparison)

    counts = indicator.groupby(_years(data)).sum(min_count=1)
    counts.index.name = 'year'

    result = counts.rename(name).reset_index()
    logger.info(f"{name}: {int(np.nansum(result[name]))} qualifying day(s) over {len(result)} year(s)")
    return result


def annual_extreme(data: pd.DataFrame, column: str, how: str = 'max',
                   name: Optional[str] = None) -> pd.DataFrame:
    """Per-year maximum (or minimum) of a daily variable."""
    if how not in ('max', 'min'):
        raise ValueError(f"Unknown extremum '{how}'. Use 'max' or 'min'")

    name = name or f'{how}_{column}'
    grouped = data[column].groupby(_years(data))
    extremes = grouped.max() if how == 'max' else grouped.min()
    extremes.index.name = 'year'

    return extremes.astype(float).rename(name).reset_index()


def total_exceedances(data: pd.DataFrame, column: str, threshold: float,
                      comparison: str = 'ge') -> int:
    """Total qualifying days over the whole record."""
    indicator = exceedance_indicator(data, column, threshold, comparison)
    return int(indicator.sum())


def estimate_return_period(exceedance_count: float, years_spanned: int) -> float:
    """Average recurrence interval ``(years_spanned + 1) / exceedance_count``.

    This is the empirical-frequency estimate, not a fitted return level.

    Raises:
        ReturnPeriodError: if ``exceedance_count`` is not positive
    """
    if years_spanned < 1:
        raise ValueError("years_spanned must be at least 1")
    if not exceedance_count > 0:
        raise ReturnPeriodError("Return period is undefined for a record with no qualifying events")

    return (years_spanned + 1) / exceedance_count


class ExtremeEventCounter:
    """Runs the configured exceedance counts and return-period estimates."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        analysis_config = config.get('analysis', {})
        self.extremes = analysis_config.get('extremes', [])
        self.hottest_day = analysis_config.get('hottest_day', {'column': 'tmax'})
        self.return_periods = analysis_config.get('return_periods', [])

    def build_extreme_series(self, data: pd.DataFrame) -> Dict[str, pd.DataFrame]:
        """All configured per-year exceedance counts plus the hottest-day series."""
        series = {}

        for event in self.extremes:
            name = event['name']
            series[name] = count_exceedance_days(
                data, event['column'], float(event['threshold']),
                event.get('comparison', 'ge'), name=name
            )

        if self.hottest_day:
            column = self.hottest_day.get('column', 'tmax')
            name = self.hottest_day.get('name', 'hottest_day')
            series[name] = annual_extreme(data, column, how=self.hottest_day.get('how', 'max'), name=name)

        return series

    def return_period_from_daily(self, data: pd.DataFrame, column: str, threshold: float,
                                 comparison: str = 'ge') -> Dict[str, Any]:
        """Count qualifying days and distinct years in the record, then estimate the return period."""
        count = total_exceedances(data, column, threshold, comparison)
        years_spanned = int(_years(data).nunique())

        result = {
            'column': column,
            'condition': f'{column} {COMPARISON_SYMBOLS[comparison]} {threshold:g}',
            'exceedance_count': count,
            'years_spanned': years_spanned,
            'return_period_years': estimate_return_period(count, years_spanned)
        }

        logger.info(f"Return period for {result['condition']}: "
                    f"{result['return_period_years']:.2f} years "
                    f"({count} event day(s) in {years_spanned} year(s))")
        return result

    def configured_return_periods(self, data: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
        """Return-period estimates for every configured event definition."""
        results = {}
        for event in self.return_periods:
            results[event['name']] = self.return_period_from_daily(
                data, event['column'], float(event['threshold']), event.get('comparison', 'ge')
            )
        return results
