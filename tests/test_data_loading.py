import pytest
import pandas as pd
import numpy as np
import os
import sys
from io import StringIO

# Add project root to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from data_processing.loaders.station_loader import StationDataLoader, load_station_data
from data_processing.processors.quality_filter import QualityFilter
from analysis.core.extreme_events import count_exceedance_days
from utils.config.helpers import merge_config
from utils.exceptions import ParseError


class TestStationDataLoader:
    """Test station CSV loading."""

    @pytest.fixture
    def config(self):
        """Default configuration for testing."""
        return merge_config({'logging': {'file': None}})

    @pytest.fixture
    def sample_csv(self):
        """Small station file with messy headers and an NA token."""
        return StringIO(
            " Date , TMAX,TMin , PRCP\n"
            "1950-01-02, 52, 30, 0.00\n"
            "1950-01-01, 50, 28, NA\n"
            "1950-01-03, 55, 31, 0.25\n"
            "2021-01-01, 40, 20, 0.00\n"
        )

    def test_loader_initialization(self, config):
        """Test loader initialization."""
        loader = StationDataLoader(config)
        assert loader.on_bad_date == 'skip'
        assert loader.get_required_columns() == ['date', 'tmax', 'tmin', 'prcp']

    def test_invalid_bad_date_policy(self, config):
        """Unknown bad-date policies are rejected up front."""
        config['data']['on_bad_date'] = 'ignore'
        with pytest.raises(ValueError):
            StationDataLoader(config)

    def test_load_normalizes_and_sorts(self, config, sample_csv):
        """Headers are normalized and rows come back in date order."""
        data = StationDataLoader(config).load_data(sample_csv)

        assert list(data.columns[:4]) == ['date', 'tmax', 'tmin', 'prcp']
        assert pd.api.types.is_datetime64_any_dtype(data['date'])
        assert data['date'].is_monotonic_increasing
        assert data['tmax'].tolist() == [50.0, 52.0, 55.0]

    def test_na_token_becomes_missing(self, config, sample_csv):
        """NA tokens are read as missing values."""
        data = StationDataLoader(config).load_data(sample_csv)
        assert pd.isna(data.loc[0, 'prcp'])
        assert data['prcp'].dtype == float

    def test_year_end_is_exclusive(self, config, sample_csv):
        """The default upper bound drops the incomplete final year."""
        data = StationDataLoader(config).load_data(sample_csv)
        assert data['date'].dt.year.max() == 1950
        assert len(data) == 3

    def test_year_start_is_inclusive(self, config):
        """Rows before year_start are dropped, the start year is kept."""
        config['data']['year_start'] = 1951
        csv = StringIO("date,tmax,tmin,prcp\n1950-12-31,40,20,0\n1951-01-01,41,21,0\n")

        data = StationDataLoader(config).load_data(csv)
        assert data['date'].tolist() == [pd.Timestamp('1951-01-01')]

    def test_bad_date_skipped(self, config):
        """Unparseable dates are dropped with a warning under the default policy."""
        csv = StringIO("date,tmax,tmin,prcp\n1950-01-01,50,30,0\nnot-a-date,51,31,0\n1950-13-45,52,32,0\n")

        data = StationDataLoader(config).load_data(csv)
        assert len(data) == 1

    def test_bad_date_raises(self, config):
        """The strict policy aborts on an unparseable date."""
        config['data']['on_bad_date'] = 'raise'
        csv = StringIO("date,tmax,tmin,prcp\n1950-01-01,50,30,0\nnot-a-date,51,31,0\n")

        with pytest.raises(ParseError):
            StationDataLoader(config).load_data(csv)

    def test_missing_required_column(self, config):
        """A missing value column is a parse error."""
        csv = StringIO("date,tmax,prcp\n1950-01-01,50,0\n")

        with pytest.raises(ParseError, match='tmin'):
            StationDataLoader(config).load_data(csv)

    def test_column_aliases(self, config):
        """Configured aliases map source headers onto the standard names."""
        config['data']['column_aliases'] = {'Max Temp': 'tmax'}
        csv = StringIO("date,Max Temp,tmin,prcp\n1950-01-01,50,30,0\n")

        data = StationDataLoader(config).load_data(csv)
        assert data.loc[0, 'tmax'] == 50.0

    def test_duplicate_dates_keep_first(self, config):
        """Repeated dates keep their first row."""
        csv = StringIO("date,tmax,tmin,prcp\n1950-01-01,50,30,0\n1950-01-01,99,99,9\n")

        data = StationDataLoader(config).load_data(csv)
        assert len(data) == 1
        assert data.loc[0, 'tmax'] == 50.0

    def test_junk_value_becomes_missing(self, config):
        """Non-numeric readings are treated as missing."""
        csv = StringIO("date,tmax,tmin,prcp\n1950-01-01,T,30,0\n")

        data = load_station_data(csv, config)
        assert pd.isna(data.loc[0, 'tmax'])

    def test_load_from_path(self, config, tmp_path):
        """Loading accepts an explicit file path."""
        path = tmp_path / 'station.csv'
        path.write_text("date,tmax,tmin,prcp\n1950-01-01,50,30,0.1\n")

        loader = StationDataLoader(config)
        data = loader.load_data(str(path))
        assert loader.has_data()
        assert data.loc[0, 'prcp'] == pytest.approx(0.1)

    def test_missing_file(self, config, tmp_path):
        """A nonexistent path is reported, not silently ignored."""
        with pytest.raises(FileNotFoundError):
            StationDataLoader(config).load_data(str(tmp_path / 'absent.csv'))


class TestQualityFilter:
    """Test missing-value policies."""

    @pytest.fixture
    def config(self):
        return merge_config({'logging': {'file': None}})

    @staticmethod
    def daily(values, column='tmax', start='1950-01-01'):
        dates = pd.date_range(start, periods=len(values), freq='D')
        return pd.DataFrame({'date': dates, column: np.array(values, dtype=float)})

    def test_isolated_gap_is_neighbour_mean(self, config):
        """A one-day gap is filled with the exact mean of its neighbours."""
        data = self.daily([50, np.nan, 60, 70])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=None)
        assert result.loc[1, 'tmax'] == 55.0
        assert result['tmax_imputed'].tolist() == [False, True, False, False]

    def test_first_record_never_filled(self, config):
        """The first record has no predecessor and stays missing."""
        data = self.daily([np.nan, 50, 60])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=None)
        assert pd.isna(result.loc[0, 'tmax'])
        assert not result.loc[0, 'tmax_imputed']

    def test_last_record_not_filled(self, config):
        """A trailing gap has no successor and stays missing."""
        data = self.daily([50, 60, np.nan])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=None)
        assert pd.isna(result.loc[2, 'tmax'])

    def test_multi_day_gap_left_missing(self, config):
        """Runs longer than the allowed gap are not imputed."""
        data = self.daily([50, np.nan, np.nan, 70, np.nan, 80])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=None)
        assert result['tmax'].isna().tolist() == [False, True, True, False, False, False]
        assert result.loc[4, 'tmax'] == 75.0

    def test_longer_gap_allowed(self, config):
        """With a wider allowed gap every row of the run gets the neighbour mean."""
        data = self.daily([50, np.nan, np.nan, 70])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=None, max_gap=2)
        assert result['tmax'].tolist() == [50.0, 60.0, 60.0, 70.0]

    def test_floor_marks_missing(self, config):
        """Readings under the sanity floor are replaced like missing values."""
        data = self.daily([50, 10, 60])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=40.0)
        assert result.loc[1, 'tmax'] == 55.0

    def test_neighbour_below_floor_not_used(self, config):
        """A neighbour under the floor is itself missing and cannot anchor a fill."""
        data = self.daily([50, np.nan, 10, 60])

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=40.0)
        assert result['tmax'].isna().tolist() == [False, True, True, False]

    def test_unsorted_input_uses_date_order(self, config):
        """Neighbours are taken in date order, not file order."""
        data = self.daily([50, np.nan, 60]).iloc[[2, 0, 1]]

        result = QualityFilter(config).impute_temperature(data, 'tmax', floor=None)
        assert result['date'].is_monotonic_increasing
        assert result.loc[1, 'tmax'] == 55.0

    def test_precipitation_policies(self, config):
        """Drop, zero and keep handle missing precipitation as named."""
        data = self.daily([0.1, np.nan, 0.3], column='prcp')
        quality_filter = QualityFilter(config)

        dropped = quality_filter.apply_precipitation_policy(data, 'drop')
        assert len(dropped) == 2

        zeroed = quality_filter.apply_precipitation_policy(data, 'zero')
        assert zeroed['prcp'].tolist() == [0.1, 0.0, 0.3]

        kept = quality_filter.apply_precipitation_policy(data, 'keep')
        assert kept['prcp'].isna().sum() == 1

        # The input is left untouched
        assert data['prcp'].isna().sum() == 1

    def test_invalid_precipitation_policy(self, config):
        with pytest.raises(ValueError):
            QualityFilter(config).apply_precipitation_policy(self.daily([0.1], column='prcp'), 'guess')

    def test_apply_quality_policy(self, config):
        """The configured policy imputes both temperatures and honours the tmax floor."""
        dates = pd.date_range('1950-01-01', periods=3, freq='D')
        data = pd.DataFrame({
            'date': dates,
            'tmax': [50.0, 5.0, 60.0],
            'tmin': [20.0, np.nan, 30.0],
            'prcp': [0.0, np.nan, 0.1]
        })

        result = QualityFilter(config).apply_quality_policy(data)
        assert result.loc[1, 'tmax'] == 55.0
        assert result.loc[1, 'tmin'] == 25.0
        assert pd.isna(result.loc[1, 'prcp'])

    @pytest.mark.parametrize('policy', ['keep', 'drop', 'zero'])
    def test_temperature_counts_ignore_precipitation_policy(self, config, policy):
        """Freezing days on dates with missing precipitation are counted under every policy."""
        config['quality']['precipitation_policy'] = policy
        dates = pd.date_range('1950-01-01', periods=5, freq='D')
        data = pd.DataFrame({
            'date': dates,
            'tmax': 60.0,
            'tmin': [40.0, 30.0, 40.0, 31.0, 40.0],
            'prcp': [0.1, np.nan, 0.2, np.nan, 0.0]
        })

        result = QualityFilter(config).apply_quality_policy(data)
        assert len(result) == 5

        counts = count_exceedance_days(result, 'tmin', 32, 'le', name='freezing_days')
        assert counts['freezing_days'].tolist() == [2.0]

    def test_drop_policy_keeps_temperature_neighbours(self, config):
        """Imputation neighbours come from the full record, not the precipitation-filtered one."""
        config['quality']['precipitation_policy'] = 'drop'
        dates = pd.date_range('1950-01-01', periods=3, freq='D')
        data = pd.DataFrame({
            'date': dates,
            'tmax': [50.0, np.nan, 60.0],
            'tmin': [20.0, 25.0, 30.0],
            'prcp': [0.0, 0.1, np.nan]
        })

        result = QualityFilter(config).apply_quality_policy(data)
        assert result['tmax'].tolist() == [50.0, 55.0, 60.0]
        assert pd.isna(result.loc[2, 'prcp'])

    def test_quality_assessment(self, config):
        data = self.daily([50, np.nan, 30, 60])

        assessment = QualityFilter(config).quality_assessment(data)
        tmax = assessment['variables']['tmax']
        assert tmax['missing_values'] == 1
        assert tmax['below_floor'] == 1
        assert tmax['completeness'] == pytest.approx(75.0)
