#!/usr/bin/env python3
"""
Main script for the Station Climate Trend Analysis Framework

This script processes one daily weather-station record at a time: it loads
and cleans the record, summarizes it by year and season, estimates trends,
compares eras, counts extreme events and estimates return periods.

Usage:
    python main.py --data data/station.csv --config config/config.yaml
    python main.py --data data/station.csv --output-dir outputs/run_1
"""

import argparse
import logging
import os
import sys
from typing import Dict, Any, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from utils.config.helpers import load_config, setup_logging, ensure_directory_exists, get_timestamp, save_results
from utils.exceptions import ClimateAnalysisError, InsufficientDataError, ReturnPeriodError
from data_processing.loaders.station_loader import StationDataLoader
from data_processing.processors.data_processor import DataProcessor
from data_processing.processors.quality_filter import QualityFilter
from analysis.core.aggregator import TemporalAggregator
from analysis.core.extreme_events import ExtremeEventCounter
from analysis.trends.trend_estimator import TrendEstimator
from analysis.trends.mann_kendall import MannKendallTester
from analysis.comparative.statistical_tests import DistributionComparator
from visualization.plots.time_series_plots import TimeSeriesPlotter


class ClimateAnalysisPipeline:
    """Main pipeline for trend analysis of a single station record."""

    def __init__(self, config_path: str):
        """Initialize pipeline with configuration."""
        self.config = load_config(config_path)
        setup_logging(self.config)
        self.logger = logging.getLogger(__name__)

        # Initialize processors
        self.loader = StationDataLoader(self.config)
        self.data_processor = DataProcessor(self.config)
        self.quality_filter = QualityFilter(self.config)
        self.aggregator = TemporalAggregator(self.config)
        self.trend_estimator = TrendEstimator(self.config)
        self.mk_tester = MannKendallTester(self.config)
        self.comparator = DistributionComparator(self.config)
        self.event_counter = ExtremeEventCounter(self.config)
        self.plotter = TimeSeriesPlotter(self.config)

        self.analysis_config = self.config.get('analysis', {})

    def run(self, data_path: str, output_dir: Optional[str] = None) -> Dict[str, Any]:
        """Run the full analysis on one station file and return the results."""
        self.logger.info(f"Starting analysis for station file: {data_path}")

        output_dir = self._create_output_dir(data_path, output_dir)
        results = {'data_path': data_path, 'output_dir': output_dir, 'errors': {}}

        # Step 1: Load and validate data (failures abort the run)
        self.logger.info("Loading data...")
        raw = self.loader.load_data(data_path)

        # Step 2: Inspect record gaps
        self.logger.info("Inspecting record completeness...")
        results['data_report'] = self.data_processor.generate_data_report(raw)
        self.data_processor.log_data_report(results['data_report'])

        # Step 3: Quality policy
        self.logger.info("Applying quality policy...")
        daily = self.quality_filter.apply_quality_policy(raw)
        results['quality'] = self.quality_filter.quality_assessment(daily)
        daily = self.aggregator.add_calendar_fields(daily)

        # Step 4: Annual and seasonal summaries
        self.logger.info("Aggregating annual and seasonal summaries...")
        annual = self.aggregator.annual_summary(daily)
        seasonal = self.aggregator.seasonal_summary(daily)
        results['annual'] = annual
        results['seasonal'] = seasonal

        # Step 5: OLS and Mann-Kendall trends of the annual metrics
        self.logger.info("Estimating trends...")
        results['trends'], results['mann_kendall'] = self._analyze_metrics(annual, results['errors'])

        # Step 6: Era comparisons
        self.logger.info("Comparing eras...")
        results['comparisons'] = self._compare_eras(annual, results['errors'])

        # Step 7: Seasonal trends
        self.logger.info("Estimating seasonal trends...")
        results['seasonal_trends'] = self._analyze_seasons(seasonal, results['errors'])

        # Step 8: Extreme events
        self.logger.info("Counting extreme events...")
        results['extreme_series'] = self.event_counter.build_extreme_series(daily)
        results['extreme_trends'], results['extreme_mann_kendall'] = self._analyze_extremes(
            results['extreme_series'], results['errors']
        )

        # Step 9: Return periods
        self.logger.info("Estimating return periods...")
        results['return_periods'] = self._estimate_return_periods(daily, results['errors'])

        # Step 10: Plots
        if self.config.get('output', {}).get('save_plots', True):
            self.logger.info("Generating plots...")
            self._generate_plots(results, output_dir)

        # Step 11: Export
        self.logger.info("Exporting results...")
        self._export_results(results, output_dir)

        if results['errors']:
            self.logger.warning(f"{len(results['errors'])} analysis step(s) could not be completed")
        self.logger.info(f"Analysis completed; outputs in {output_dir}")
        return results

    def _create_output_dir(self, data_path: str, output_dir: Optional[str]) -> str:
        """Create the run output directory with results and plots subdirectories."""
        if output_dir is None:
            station = os.path.splitext(os.path.basename(str(data_path)))[0]
            output_dir = os.path.join(self.config['output']['base_path'], f"{station}_{get_timestamp()}")

        for subdir in ['results', 'plots']:
            ensure_directory_exists(os.path.join(output_dir, subdir))

        return output_dir

    def _analyze_metrics(self, annual: pd.DataFrame, errors: Dict[str, str]):
        trends, mann_kendall = {}, {}
        year_ranges = self.analysis_config.get('year_ranges', {})

        for metric in self.analysis_config.get('trend_metrics', []):
            if metric not in annual.columns:
                self.logger.warning(f"Metric '{metric}' not in annual summary; skipping")
                continue

            # A range the record does not cover fails alone
            range_errors = {}
            metric_trends = self.trend_estimator.fit_ranges(annual, metric, year_ranges, errors=range_errors)
            for name, message in range_errors.items():
                errors[f'trend_{metric}_{name}'] = message

            if metric_trends:
                trends[metric] = metric_trends

            try:
                mann_kendall[metric] = self.mk_tester.test_series(annual, metric)
            except InsufficientDataError as e:
                self.logger.error(f"Mann-Kendall test of {metric} failed: {e}")
                errors[f'mann_kendall_{metric}'] = str(e)

        return trends, mann_kendall

    def _compare_eras(self, annual: pd.DataFrame, errors: Dict[str, str]) -> Dict[str, Any]:
        comparisons = {}
        year_ranges = self.analysis_config.get('year_ranges', {})

        for comparison in self.analysis_config.get('comparisons', []):
            name = comparison.get('name', f"{comparison['metric']}_{comparison['range_a']}_vs_{comparison['range_b']}")
            # Ranges are either names from year_ranges or literal [start, end] pairs
            range_a, range_b = [
                year_ranges[r] if isinstance(r, str) else r
                for r in (comparison['range_a'], comparison['range_b'])
            ]

            try:
                comparisons[name] = self.comparator.compare_periods(annual, comparison['metric'], range_a, range_b)
            except InsufficientDataError as e:
                self.logger.error(f"Comparison {name} failed: {e}")
                errors[f'comparison_{name}'] = str(e)

        return comparisons

    def _analyze_seasons(self, seasonal: pd.DataFrame, errors: Dict[str, str]) -> Dict[str, Any]:
        seasonal_trends = {}

        for item in self.analysis_config.get('seasonal_trends', []):
            season, metric = item['season'], item['metric']
            name = f'{season}_{metric}'
            table = seasonal[seasonal['season'] == season]

            try:
                seasonal_trends[name] = self.trend_estimator.fit(table, metric)
            except InsufficientDataError as e:
                self.logger.error(f"Seasonal trend {name} failed: {e}")
                errors[f'seasonal_trend_{name}'] = str(e)

        return seasonal_trends

    def _analyze_extremes(self, extreme_series: Dict[str, pd.DataFrame], errors: Dict[str, str]):
        trends, mann_kendall = {}, {}

        for name, series in extreme_series.items():
            try:
                trends[name] = self.trend_estimator.fit(series, name)
            except InsufficientDataError as e:
                self.logger.error(f"Trend of {name} failed: {e}")
                errors[f'trend_{name}'] = str(e)

            try:
                mann_kendall[name] = self.mk_tester.test_series(series, name)
            except InsufficientDataError as e:
                self.logger.error(f"Mann-Kendall test of {name} failed: {e}")
                errors[f'mann_kendall_{name}'] = str(e)

        return trends, mann_kendall

    def _estimate_return_periods(self, daily: pd.DataFrame, errors: Dict[str, str]) -> Dict[str, Any]:
        return_periods = {}

        for event in self.analysis_config.get('return_periods', []):
            try:
                return_periods[event['name']] = self.event_counter.return_period_from_daily(
                    daily, event['column'], float(event['threshold']), event.get('comparison', 'ge')
                )
            except ReturnPeriodError as e:
                self.logger.error(f"Return period {event['name']} failed: {e}")
                errors[f"return_period_{event['name']}"] = str(e)

        return return_periods

    def _generate_plots(self, results: Dict[str, Any], output_dir: str) -> None:
        """Generate trend and event-count plots."""
        plots_dir = os.path.join(output_dir, 'plots')

        for metric, trend_results in results['trends'].items():
            fig = self.plotter.create_trend_plot(
                results['annual'], metric, trend_results,
                output_path=os.path.join(plots_dir, f'{metric}_trend.png')
            )
            if fig is not None:
                plt.close(fig)

        hottest_day = self.event_counter.hottest_day or {}
        hottest_name = hottest_day.get('name', 'hottest_day') if hottest_day else None

        for name, series in results['extreme_series'].items():
            if name == hottest_name:
                # Annual extremes are temperatures, not day counts
                fits = {'full': results['extreme_trends'][name]} if name in results['extreme_trends'] else None
                fig = self.plotter.create_trend_plot(
                    series, name, fits, y_label=f"{hottest_day.get('column', 'tmax')} (°F)",
                    output_path=os.path.join(plots_dir, f'{name}_trend.png')
                )
            else:
                fig = self.plotter.create_event_count_plot(
                    series, name, output_path=os.path.join(plots_dir, f'{name}.png')
                )
            if fig is not None:
                plt.close(fig)

    def _export_results(self, results: Dict[str, Any], output_dir: str) -> None:
        """Export tables to CSV and write a text summary."""
        results_dir = os.path.join(output_dir, 'results')

        save_results(results['annual'], os.path.join(results_dir, 'annual_summary.csv'))
        save_results(results['seasonal'], os.path.join(results_dir, 'seasonal_summary.csv'))
        save_results(results['data_report']['missing_by_year'], os.path.join(results_dir, 'missing_by_year.csv'))

        trend_frames = [TrendEstimator.results_to_frame(r) for r in results['trends'].values()]
        if results['seasonal_trends']:
            frame = TrendEstimator.results_to_frame(results['seasonal_trends'])
            frame['range'] = list(results['seasonal_trends'].keys())
            trend_frames.append(frame)
        if results['extreme_trends']:
            trend_frames.append(TrendEstimator.results_to_frame(results['extreme_trends']))
        if trend_frames:
            save_results(pd.concat(trend_frames, ignore_index=True), os.path.join(results_dir, 'trends.csv'))

        mk_results = {**results['mann_kendall'], **results['extreme_mann_kendall']}
        if mk_results:
            save_results(MannKendallTester.results_to_frame(mk_results), os.path.join(results_dir, 'mann_kendall.csv'))

        if results['comparisons']:
            save_results(DistributionComparator.results_to_frame(results['comparisons']),
                         os.path.join(results_dir, 'comparisons.csv'))

        if results['extreme_series']:
            extremes = None
            for series in results['extreme_series'].values():
                extremes = series if extremes is None else extremes.merge(series, on='year', how='outer')
            save_results(extremes.sort_values('year'), os.path.join(results_dir, 'extreme_series.csv'))

        if results['return_periods']:
            save_results(pd.DataFrame([{'event': name, **r} for name, r in results['return_periods'].items()]),
                         os.path.join(results_dir, 'return_periods.csv'))

        summary_path = os.path.join(results_dir, 'summary.txt')
        with open(summary_path, 'w') as f:
            f.write(self._summary_text(results))
        self.logger.info(f"Summary written to {summary_path}")

    def _summary_text(self, results: Dict[str, Any]) -> str:
        lines = [
            "Station Climate Trend Analysis",
            "=" * 40,
            f"Data file: {results['data_path']}",
            f"Years analyzed: {len(results['annual'])}",
            ""
        ]

        for metric, trend_results in results['trends'].items():
            lines.append(f"{metric}")
            lines.append("-" * len(metric))
            for name, result in trend_results.items():
                ci = result['confidence_interval']
                lines.append(f"  {name} {result['year_range'][0]}-{result['year_range'][1]}: "
                             f"slope {result['slope']:+.4f}/yr "
                             f"({ci['level']:.0%} CI {ci['lower']:+.4f} to {ci['upper']:+.4f}), "
                             f"p={result['p_value']:.4f}, n={result['n_observations']}")
            if metric in results['mann_kendall']:
                mk_result = results['mann_kendall'][metric]
                lines.append(f"  Mann-Kendall: tau={mk_result['tau']:.3f}, p={mk_result['p_value']:.4f} "
                             f"({mk_result['trend']})")
            lines.append("")

        for name, result in results['comparisons'].items():
            lines.append(f"Comparison {name}: difference {result['difference']:+.3f} "
                         f"(CI {result['confidence_interval']['lower']:+.3f} to "
                         f"{result['confidence_interval']['upper']:+.3f}), Welch p={result['p_value']:.4f}")

        for name, result in results['return_periods'].items():
            lines.append(f"Return period {name} ({result['condition']}): "
                         f"{result['return_period_years']:.2f} years")

        for step, message in results['errors'].items():
            lines.append(f"Not computed: {step}: {message}")

        lines.append("")
        lines.append("Regression summaries")
        lines.append("=" * 40)
        for metric, trend_results in results['trends'].items():
            for name, result in trend_results.items():
                lines.append(f"{metric} ({name})")
                lines.append(result['summary'])
                lines.append("")

        return "\n".join(lines)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Station Climate Trend Analysis Framework')
    parser.add_argument('--data', required=True,
                        help='Daily station CSV file (date, tmax, tmin, prcp)')
    parser.add_argument('--config', default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--output-dir',
                        help='Output directory (default: timestamped directory under output.base_path)')

    args = parser.parse_args()

    pipeline = ClimateAnalysisPipeline(args.config)

    try:
        pipeline.run(args.data, args.output_dir)
    except (ClimateAnalysisError, FileNotFoundError, ValueError) as e:
        logging.getLogger(__name__).error(f"Analysis failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
