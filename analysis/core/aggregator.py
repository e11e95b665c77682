#!/usr/bin/env python3
"""
Temporal Aggregation Module

Groups daily station rows by calendar year (optionally year + season) and
reduces each group to summary statistics. Every (year[, season]) present
in the input yields exactly one output row; a group with no valid value
for a metric yields NaN for that metric rather than a dropped row.
"""

import pandas as pd
import logging
from typing import Dict, Any, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SEASONS = {
    'winter': [12, 1, 2],
    'spring': [3, 4, 5],
    'summer': [6, 7, 8],
    'fall': [9, 10, 11]
}


def _nan_sum(values: pd.Series) -> float:
    """Sum treating missing as zero, NaN when the group has no value at all."""
    return values.sum(min_count=1)


REDUCERS = {
    'mean': 'mean',
    'sum': _nan_sum,
    'max': 'max',
    'min': 'min',
    'count': 'count'
}

ANNUAL_REDUCTIONS = {
    'mean_tmax': ('tmax', 'mean'),
    'mean_tmin': ('tmin', 'mean'),
    'total_precip': ('prcp', 'sum')
}


class TemporalAggregator:
    """Annual and seasonal reduction of daily observations."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.seasons = config.get('seasons') or DEFAULT_SEASONS
        self.month_to_season = self._build_month_lookup(self.seasons)

    @staticmethod
    def _build_month_lookup(seasons: Dict[str, List[int]]) -> Dict[int, str]:
        """Map month number to season name, rejecting overlapping definitions."""
        lookup = {}
        for season, months in seasons.items():
            for month in months:
                month = int(month)
                if not 1 <= month <= 12:
                    raise ValueError(f"Invalid month {month} in season '{season}'")
                if month in lookup:
                    raise ValueError(f"Month {month} assigned to both '{lookup[month]}' and '{season}'")
                lookup[month] = season
        return lookup

    def add_calendar_fields(self, data: pd.DataFrame, date_column: str = 'date') -> pd.DataFrame:
        """Return a copy with integer ``year``, ``month`` and ``season`` columns."""
        result = data.copy()
        if not pd.api.types.is_datetime64_any_dtype(result[date_column]):
            result[date_column] = pd.to_datetime(result[date_column])

        result['year'] = result[date_column].dt.year.astype(int)
        result['month'] = result[date_column].dt.month.astype(int)
        result['season'] = result['month'].map(self.month_to_season)
        return result

    def aggregate(self, data: pd.DataFrame,
                  reductions: Dict[str, Tuple[str, str]],
                  seasonal: bool = False) -> pd.DataFrame:
        """Reduce daily rows per year (or per year and season).

        Args:
            data: Daily table with a ``date`` column
            reductions: Output column -> (input column, reducer name) where the
                reducer is one of 'mean', 'sum', 'max', 'min', 'count'
            seasonal: Group by (year, season) instead of year

        Returns:
            DataFrame with the grouping keys as columns followed by one
            column per reduction
        """
        unknown = {how for _, how in reductions.values()} - set(REDUCERS)
        if unknown:
            raise ValueError(f"Unknown reducer(s): {sorted(unknown)}. Use one of {sorted(REDUCERS)}")

        keyed = data if {'year', 'month', 'season'} <= set(data.columns) else self.add_calendar_fields(data)
        keys = ['year', 'season'] if seasonal else ['year']

        if seasonal and keyed['season'].isna().any():
            logger.warning("Some months belong to no configured season; those days are excluded")
            keyed = keyed.dropna(subset=['season'])

        named = {name: (column, REDUCERS[how]) for name, (column, how) in reductions.items()}
        summary = keyed.groupby(keys, sort=True).agg(**named).reset_index()

        for name, (_, how) in reductions.items():
            if how == 'count':
                summary[name] = summary[name].astype(int)
            else:
                summary[name] = summary[name].astype(float)

        return summary

    def annual_summary(self, data: pd.DataFrame) -> pd.DataFrame:
        """Mean tmax, mean tmin and total precipitation per calendar year."""
        summary = self.aggregate(data, ANNUAL_REDUCTIONS)
        logger.info(f"Annual summary: {len(summary)} years")
        return summary

    def seasonal_summary(self, data: pd.DataFrame) -> pd.DataFrame:
        """Annual summary keyed by (year, season)."""
        summary = self.aggregate(data, ANNUAL_REDUCTIONS, seasonal=True)
        summary = self._order_seasons(summary)
        logger.info(f"Seasonal summary: {len(summary)} year-season rows")
        return summary

    def select_season(self, data: pd.DataFrame, season: str) -> pd.DataFrame:
        """Daily rows whose month belongs to ``season``."""
        if season not in self.seasons:
            raise ValueError(f"Unknown season '{season}'. Use one of {list(self.seasons)}")

        months = [int(m) for m in self.seasons[season]]
        keyed = data if 'month' in data.columns else self.add_calendar_fields(data)
        return keyed[keyed['month'].isin(months)].copy()

    def _order_seasons(self, summary: pd.DataFrame) -> pd.DataFrame:
        """Sort seasonal rows by year, then by configured season order."""
        order = {season: i for i, season in enumerate(self.seasons)}
        return (summary.assign(_order=summary['season'].map(order))
                .sort_values(['year', '_order'])
                .drop(columns='_order')
                .reset_index(drop=True))
