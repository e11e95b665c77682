import pytest
import pandas as pd
import numpy as np
import os
import sys
import yaml

# Add project root to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from main import ClimateAnalysisPipeline
from utils.exceptions import ParseError


@pytest.fixture
def station_file(tmp_path):
    """Fifty years of synthetic daily observations with a warming tmin."""
    rng = np.random.default_rng(2024)
    dates = pd.date_range('1950-01-01', '1999-12-31', freq='D')
    seasonal = 20 * np.cos(2 * np.pi * (dates.dayofyear - 200) / 365.25)
    warming = 0.03 * (dates.year - 1950)

    data = pd.DataFrame({
        'Date': dates.strftime('%Y-%m-%d'),
        'TMAX': np.round(65 + seasonal + rng.normal(0, 5, len(dates)), 1),
        'TMIN': np.round(40 + seasonal + warming + rng.normal(0, 5, len(dates)), 1),
        'PRCP': np.round(rng.exponential(0.1, len(dates)), 2)
    })
    data.loc[[100, 5000], 'TMAX'] = np.nan

    path = tmp_path / 'station.csv'
    data.to_csv(path, index=False)
    return path


@pytest.fixture
def config_file(tmp_path):
    config = {
        'logging': {'level': 'WARNING', 'file': None},
        'analysis': {
            'year_ranges': {'early': [1950, 1974], 'late': [1975, 1999]},
            'comparisons': [
                {'name': 'tmin_early_vs_late', 'metric': 'mean_tmin', 'range_a': 'early', 'range_b': 'late'},
                {'name': 'tmax_literal', 'metric': 'mean_tmax', 'range_a': [1950, 1960], 'range_b': [1990, 1999]}
            ],
            'seasonal_trends': [{'season': 'winter', 'metric': 'mean_tmin'}],
            'extremes': [{'name': 'freezing_days', 'column': 'tmin', 'threshold': 32, 'comparison': 'le'}],
            'return_periods': [
                {'name': 'heavy_precip', 'column': 'prcp', 'threshold': 0.5, 'comparison': 'ge'},
                {'name': 'impossible_heat', 'column': 'tmax', 'threshold': 200, 'comparison': 'ge'}
            ]
        },
        'visualization': {'dpi': 40}
    }
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump(config))
    return path


class TestClimateAnalysisPipeline:
    """End-to-end run over a synthetic station record."""

    def test_full_run(self, station_file, config_file, tmp_path):
        output_dir = tmp_path / 'run'
        results = ClimateAnalysisPipeline(str(config_file)).run(str(station_file), str(output_dir))

        assert len(results['annual']) == 50
        assert set(results['trends']) == {'mean_tmax', 'mean_tmin', 'total_precip'}
        assert set(results['trends']['mean_tmin']) == {'full', 'early', 'late'}
        assert results['trends']['mean_tmin']['full']['slope'] > 0
        assert set(results['comparisons']) == {'tmin_early_vs_late', 'tmax_literal'}
        assert 'winter_mean_tmin' in results['seasonal_trends']
        assert set(results['extreme_series']) == {'freezing_days', 'hottest_day'}

    def test_step_failure_recorded(self, station_file, config_file, tmp_path):
        """A return period with no qualifying events is recorded, not fatal."""
        results = ClimateAnalysisPipeline(str(config_file)).run(str(station_file), str(tmp_path / 'run'))

        assert 'heavy_precip' in results['return_periods']
        assert 'impossible_heat' not in results['return_periods']
        assert 'return_period_impossible_heat' in results['errors']

    def test_outputs_written(self, station_file, config_file, tmp_path):
        output_dir = tmp_path / 'run'
        ClimateAnalysisPipeline(str(config_file)).run(str(station_file), str(output_dir))

        results_dir = output_dir / 'results'
        for name in ['annual_summary.csv', 'seasonal_summary.csv', 'trends.csv',
                     'mann_kendall.csv', 'comparisons.csv', 'extreme_series.csv',
                     'return_periods.csv', 'summary.txt']:
            assert (results_dir / name).exists(), name

        assert (output_dir / 'plots' / 'mean_tmin_trend.png').exists()
        assert (output_dir / 'plots' / 'freezing_days.png').exists()

        annual = pd.read_csv(results_dir / 'annual_summary.csv')
        assert list(annual.columns) == ['year', 'mean_tmax', 'mean_tmin', 'total_precip']

        summary = (results_dir / 'summary.txt').read_text()
        assert 'Mann-Kendall' in summary
        assert 'impossible_heat' in summary

    def test_bad_file_aborts(self, config_file, tmp_path):
        path = tmp_path / 'broken.csv'
        path.write_text("date,tmax\n1950-01-01,50\n")

        with pytest.raises(ParseError):
            ClimateAnalysisPipeline(str(config_file)).run(str(path), str(tmp_path / 'run'))

    def test_uncovered_range_keeps_other_trends(self, station_file, config_file, tmp_path):
        """A year range outside the record fails alone; the other fits survive."""
        config = yaml.safe_load(config_file.read_text())
        config['analysis']['year_ranges']['ancient'] = [1900, 1920]
        config_file.write_text(yaml.safe_dump(config))

        results = ClimateAnalysisPipeline(str(config_file)).run(str(station_file), str(tmp_path / 'run'))

        assert set(results['trends']) == {'mean_tmax', 'mean_tmin', 'total_precip'}
        for metric in results['trends']:
            assert set(results['trends'][metric]) == {'full', 'early', 'late'}
            assert f'trend_{metric}_ancient' in results['errors']
            assert f'trend_{metric}' not in results['errors']

    def test_hottest_day_plotted_as_temperature(self, station_file, config_file, tmp_path):
        """Annual maxima get a trend chart, day counts get bar charts."""
        output_dir = tmp_path / 'run'
        ClimateAnalysisPipeline(str(config_file)).run(str(station_file), str(output_dir))

        plots_dir = output_dir / 'plots'
        assert (plots_dir / 'hottest_day_trend.png').exists()
        assert not (plots_dir / 'hottest_day.png').exists()
        assert (plots_dir / 'freezing_days.png').exists()
