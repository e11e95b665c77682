#!/usr/bin/env python3
"""
Quality Filter for Daily Station Records

Two independent, per-variable policies:

- Precipitation: days with a missing value are either dropped from the
  precipitation series (visual inspection), treated as zero (arid-season
  assumption) or kept as-is. Temperature rows are never removed.
  The policy is always chosen by the caller.
- Temperature: a value is missing when absent or below a configurable
  sanity floor. Missing runs no longer than ``max_gap`` days are filled with
  the mean of the nearest valid values before and after them in date order.
  The first record is never a fill target; longer runs stay missing.
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

PRECIPITATION_POLICIES = ('keep', 'drop', 'zero')


class QualityFilter:
    """Applies the missing-value policies configured under ``quality``."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        quality_config = config.get('quality', {})
        self.precipitation_policy = quality_config.get('precipitation_policy', 'keep')
        self.temperature_floor = dict(quality_config.get('temperature_floor', {}) or {})
        self.max_gap = int(quality_config.get('max_gap_days', 1))

    def apply_precipitation_policy(self, data: pd.DataFrame,
                                   policy: Optional[str] = None,
                                   column: str = 'prcp') -> pd.DataFrame:
        """Return a copy of ``data`` with the missing-precipitation policy applied."""
        policy = policy or self.precipitation_policy
        if policy not in PRECIPITATION_POLICIES:
            raise ValueError(f"Unknown precipitation policy '{policy}'. "
                             f"Use one of {PRECIPITATION_POLICIES}")

        result = data.copy()
        missing = result[column].isna()

        if policy == 'drop':
            result = result.loc[~missing].reset_index(drop=True)
            logger.info(f"Dropped {int(missing.sum())} row(s) with missing {column}")
        elif policy == 'zero':
            result[column] = result[column].fillna(0.0)
            logger.info(f"Treated {int(missing.sum())} missing {column} value(s) as zero")

        return result

    def flag_missing_temperature(self, data: pd.DataFrame, column: str,
                                 floor: Optional[float] = None) -> pd.Series:
        """Boolean mask of values that are absent or below the sanity floor."""
        values = data[column]
        missing = values.isna()
        if floor is not None:
            missing |= values < floor
        return missing

    def impute_temperature(self, data: pd.DataFrame, column: str,
                           floor: Optional[float] = None,
                           max_gap: Optional[int] = None) -> pd.DataFrame:
        """Fill short gaps with the mean of the neighbouring valid values.

        Rows are taken in date order. A missing run is filled only when it is
        at most ``max_gap`` rows long and has a valid value on both sides;
        every row of the run receives ``(previous_valid + next_valid) / 2``.
        Adds a boolean ``<column>_imputed`` column.
        """
        max_gap = self.max_gap if max_gap is None else int(max_gap)
        if max_gap < 1:
            raise ValueError("max_gap must be at least 1")

        result = data.sort_values('date').reset_index(drop=True)
        missing = self.flag_missing_temperature(result, column, floor)
        values = result[column].mask(missing)

        run_id = (missing != missing.shift()).cumsum()
        run_length = run_id.map(run_id.value_counts())

        previous_valid = values.ffill()
        next_valid = values.bfill()

        target = missing & (run_length <= max_gap) & previous_valid.notna() & next_valid.notna()
        if len(target):
            # The first record has no predecessor
            target.iloc[0] = False

        filled = (previous_valid + next_valid) / 2.0
        result[column] = values.where(~target, filled)
        result[f'{column}_imputed'] = target

        remaining = int((missing & ~target).sum())
        logger.info(f"{column}: {int(missing.sum())} missing, {int(target.sum())} imputed, "
                    f"{remaining} left missing")
        if remaining:
            long_runs = run_length[missing & ~target]
            logger.warning(f"{column}: {remaining} value(s) not imputed "
                           f"(longest unfilled run: {int(long_runs.max())} day(s))")

        return result

    def apply_quality_policy(self, data: pd.DataFrame) -> pd.DataFrame:
        """Apply temperature imputation and the configured precipitation policy.

        Each policy touches only its own column. Under ``drop`` the daily rows
        are kept so their temperatures still count; missing precipitation stays
        NaN, which every precipitation statistic skips.
        """
        result = data.copy()

        for column, floor in self.temperature_floor.items():
            if column not in result.columns:
                logger.warning(f"Temperature column '{column}' not found; skipping imputation")
                continue
            result = self.impute_temperature(result, column, floor=floor)

        if self.precipitation_policy == 'drop':
            logger.info(f"Precipitation policy 'drop': {int(result['prcp'].isna().sum())} missing prcp "
                        f"value(s) excluded from precipitation statistics, rows kept")
            return result

        return self.apply_precipitation_policy(result)

    def quality_assessment(self, data: pd.DataFrame) -> Dict[str, Any]:
        """Summarize completeness and floor violations for each value column."""
        assessment = {'total_rows': len(data), 'variables': {}}

        for column in ['tmax', 'tmin', 'prcp']:
            if column not in data.columns:
                continue

            series = data[column]
            floor = self.temperature_floor.get(column)
            below_floor = int((series < floor).sum()) if floor is not None else 0
            valid = int(series.notna().sum())

            assessment['variables'][column] = {
                'valid_values': valid,
                'missing_values': int(series.isna().sum()),
                'below_floor': below_floor,
                'completeness': valid / len(data) * 100 if len(data) else np.nan
            }

        return assessment
