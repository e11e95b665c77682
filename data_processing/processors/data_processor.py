import pandas as pd
import logging
from typing import Dict, Any, List
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


class DataValidator:
    """Data validation and gap inspection utilities."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.large_gap_days = config.get('quality', {}).get('large_gap_days', 30)

    def validate_temporal_consistency(self, data: pd.DataFrame) -> Dict[str, Any]:
        """Check for duplicate dates and calendar days absent from the record."""
        if 'date' not in data.columns or data.empty:
            return {'valid': False, 'errors': ['No date column or empty data'], 'warnings': [], 'stats': {}}

        results = {'valid': True, 'errors': [], 'warnings': [], 'stats': {}}

        # Check for duplicate dates
        duplicates = int(data['date'].duplicated().sum())
        if duplicates > 0:
            results['warnings'].append(f"Found {duplicates} duplicate dates")

        # Check temporal coverage
        start, end = data['date'].min(), data['date'].max()
        expected_days = (end - start).days + 1
        present_days = data['date'].nunique()

        results['stats'] = {
            'start': start.strftime('%Y-%m-%d'),
            'end': end.strftime('%Y-%m-%d'),
            'expected_days': expected_days,
            'present_days': present_days,
            'absent_days': expected_days - present_days,
            'coverage_percent': present_days / expected_days * 100,
            'duplicate_dates': duplicates
        }

        # Gaps between consecutive rows (a one-day step is no gap)
        time_diffs = data['date'].drop_duplicates().sort_values().diff().dropna()
        results['stats']['max_gap_days'] = int(time_diffs.max().days) - 1 if len(time_diffs) else 0

        large_gaps = time_diffs[time_diffs > timedelta(days=self.large_gap_days)]
        if len(large_gaps) > 0:
            results['warnings'].append(f"Found {len(large_gaps)} gaps > {self.large_gap_days} days")

        return results

    def missing_value_summary(self, data: pd.DataFrame,
                              columns: List[str] = None) -> pd.DataFrame:
        """Count missing values per variable per calendar year."""
        if columns is None:
            columns = [col for col in ['tmax', 'tmin', 'prcp'] if col in data.columns]

        if data.empty:
            return pd.DataFrame(columns=['year', 'days'] + [f'missing_{col}' for col in columns])

        years = data['date'].dt.year.rename('year')
        summary = data[columns].isna().groupby(years).sum()
        summary.columns = [f'missing_{col}' for col in columns]
        summary.insert(0, 'days', data.groupby(years).size())

        return summary.reset_index()


class DataProcessor:
    """Data inspection and reporting utilities."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.validator = DataValidator(config)

    def generate_data_report(self, data: pd.DataFrame, data_type: str = 'station') -> Dict[str, Any]:
        """Generate data quality report."""
        report = {
            'data_type': data_type,
            'timestamp': datetime.now().isoformat(),
            'basic_stats': {},
            'validation_results': {},
            'missing_by_year': pd.DataFrame(),
            'recommendations': []
        }

        if data.empty:
            report['basic_stats'] = {'record_count': 0}
            report['recommendations'] = ['Data is empty - check data loading process']
            return report

        # Basic statistics
        report['basic_stats'] = {
            'record_count': len(data),
            'column_count': len(data.columns),
            'missing_values': {col: int(n) for col, n in data.isnull().sum().items()},
            'data_types': data.dtypes.astype(str).to_dict()
        }

        report['validation_results']['temporal'] = self.validator.validate_temporal_consistency(data)
        report['missing_by_year'] = self.validator.missing_value_summary(data)
        report['recommendations'] = self._generate_recommendations(report)

        return report

    def _generate_recommendations(self, report: Dict[str, Any]) -> List[str]:
        """Generate recommendations based on validation results."""
        recommendations = []

        for category, results in report['validation_results'].items():
            if not results.get('valid', True):
                recommendations.append(f"Address {category} validation errors before proceeding")

            if results.get('warnings'):
                recommendations.append(f"Review {category} warnings: {len(results['warnings'])} issues found")

        missing = report['basic_stats'].get('missing_values', {})
        for column in ['tmax', 'tmin', 'prcp']:
            if missing.get(column, 0) > 0:
                recommendations.append(f"{missing[column]} missing {column} values - review quality policy")

        return recommendations

    def log_data_report(self, report: Dict[str, Any]) -> None:
        """Write the key figures of a data report to the log."""
        temporal = report['validation_results'].get('temporal', {})
        stats = temporal.get('stats', {})

        if stats:
            logger.info(f"Record spans {stats['start']} to {stats['end']}: "
                        f"{stats['present_days']}/{stats['expected_days']} days present "
                        f"({stats['coverage_percent']:.1f}%), longest gap {stats['max_gap_days']} day(s)")

        for warning in temporal.get('warnings', []):
            logger.warning(warning)

        for recommendation in report.get('recommendations', []):
            logger.info(f"Recommendation: {recommendation}")

        if isinstance(report.get('missing_by_year'), pd.DataFrame) and not report['missing_by_year'].empty:
            logger.debug(f"Missing values by year:\n{report['missing_by_year'].to_string(index=False)}")
