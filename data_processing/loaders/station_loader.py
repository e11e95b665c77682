#!/usr/bin/env python3
"""
Daily Station Record Loader

Reads a delimited daily-observation table (one row per calendar day) and
returns a standardized, date-sorted DataFrame with the columns
``date``, ``tmax``, ``tmin`` and ``prcp``.

Loading steps:
1. Read the CSV from an explicit path or text stream
2. Normalize header names (case, surrounding and inner whitespace) and aliases
3. Parse dates in ISO year-month-day order
4. Apply the bad-date policy ('skip' drops and warns, 'raise' aborts)
5. Coerce the value columns to numbers (NA tokens become NaN)
6. Restrict to the configured calendar-year range (upper bound exclusive)
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, Any, List, Optional

from ..base_loader import BaseDataLoader, DataSource
from utils.exceptions import ParseError

logger = logging.getLogger(__name__)

BAD_DATE_POLICIES = ('skip', 'raise')


class StationDataLoader(BaseDataLoader):
    """Loader for single-station daily climate CSV files."""

    value_columns = ['tmax', 'tmin', 'prcp']

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        data_config = config.get('data', {})
        self.year_start: Optional[int] = data_config.get('year_start')
        self.year_end: Optional[int] = data_config.get('year_end')
        self.on_bad_date = data_config.get('on_bad_date', 'skip')
        self.required_columns = list(data_config.get('required_columns', self.value_columns))

        if self.on_bad_date not in BAD_DATE_POLICIES:
            raise ValueError(f"Unknown bad-date policy '{self.on_bad_date}'. "
                             f"Use one of {BAD_DATE_POLICIES}")

    def get_required_columns(self) -> List[str]:
        """Return required columns (after normalization)."""
        return ['date'] + self.required_columns

    def load_data(self, source: DataSource, **kwargs) -> pd.DataFrame:
        """Load a station file and return the standardized daily table."""
        logger.info(f"Loading station data from: {getattr(source, 'name', source)}")

        try:
            raw = pd.read_csv(source, dtype=str, skipinitialspace=True, **kwargs)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise ParseError(f"Could not read station file: {e}") from e

        data = self.normalize_columns(raw)
        logger.info(f"Loaded raw shape: {data.shape}")
        logger.debug(f"Normalized columns: {list(data.columns)}")

        if not self.validate_data(data):
            missing = [col for col in self.get_required_columns() if col not in data.columns]
            raise ParseError(f"Missing required columns: {missing}")

        data = self._parse_dates(data)
        data = self._coerce_values(data)
        data = self._apply_year_bounds(data)
        data = self._drop_duplicate_dates(data)

        data = data.sort_values('date').reset_index(drop=True)
        logger.info(f"Station record: {len(data)} days, "
                    f"{data['date'].min().date() if len(data) else None} to "
                    f"{data['date'].max().date() if len(data) else None}")

        self.data = data
        return data

    def validate_data(self, data: pd.DataFrame) -> bool:
        """Check that the date column and the required value columns are present."""
        missing = [col for col in self.get_required_columns() if col not in data.columns]
        if missing:
            logger.error(f"Missing required columns: {missing}")
            return False
        return True

    def _parse_dates(self, data: pd.DataFrame) -> pd.DataFrame:
        """Parse the date column in ISO order and apply the bad-date policy."""
        raw_dates = data['date'].astype('string').str.strip()
        parsed = pd.to_datetime(raw_dates, format='ISO8601', errors='coerce')
        bad = parsed.isna()

        if bad.any():
            examples = raw_dates[bad].head(5).tolist()
            if self.on_bad_date == 'raise':
                raise ParseError(f"{int(bad.sum())} unparseable date(s), e.g. {examples}")
            logger.warning(f"Skipping {int(bad.sum())} row(s) with unparseable dates, e.g. {examples}")

        data = data.loc[~bad].copy()
        data['date'] = parsed[~bad].dt.normalize()
        return data

    def _coerce_values(self, data: pd.DataFrame) -> pd.DataFrame:
        """Convert value columns to float; NA tokens and junk become NaN."""
        for column in self.value_columns:
            if column not in data.columns:
                data[column] = np.nan
                continue

            original = data[column]
            numeric = pd.to_numeric(original, errors='coerce')
            junk = numeric.isna() & original.notna() & (original.str.strip() != '')
            if junk.any():
                logger.warning(f"{int(junk.sum())} non-numeric {column} value(s) treated as missing")
            data[column] = numeric.astype(float)

        return data

    def _apply_year_bounds(self, data: pd.DataFrame) -> pd.DataFrame:
        """Drop rows outside [year_start, year_end)."""
        years = data['date'].dt.year
        keep = pd.Series(True, index=data.index)

        if self.year_start is not None:
            keep &= years >= int(self.year_start)
        if self.year_end is not None:
            keep &= years < int(self.year_end)

        dropped = int((~keep).sum())
        if dropped:
            logger.info(f"Dropped {dropped} row(s) outside the configured year range")

        return data.loc[keep]

    def _drop_duplicate_dates(self, data: pd.DataFrame) -> pd.DataFrame:
        """Keep the first row for each date."""
        duplicates = data['date'].duplicated(keep='first')
        if duplicates.any():
            logger.warning(f"Found {int(duplicates.sum())} duplicate date(s); keeping first occurrence")
        return data.loc[~duplicates]


def load_station_data(source: DataSource, config: Dict[str, Any]) -> pd.DataFrame:
    """Convenience wrapper around :class:`StationDataLoader`."""
    return StationDataLoader(config).load_data(source)
