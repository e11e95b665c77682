#!/usr/bin/env python3
"""
Time series plot implementations for climate trend analysis.

This module draws annual series with fitted OLS trend overlays and
bar charts of annual event counts.
"""

import matplotlib.pyplot as plt
import pandas as pd
import logging
from typing import Dict, Any, Optional
from .base import BasePlotter

logger = logging.getLogger(__name__)


class TimeSeriesPlotter(BasePlotter):
    """Specialized plotter for annual series and their trends."""

    def create_trend_plot(self, table: pd.DataFrame,
                          value_column: str,
                          trend_results: Optional[Dict[str, Dict[str, Any]]] = None,
                          year_column: str = 'year',
                          title: Optional[str] = None,
                          y_label: Optional[str] = None,
                          output_path: Optional[str] = None) -> plt.Figure:
        """Plot an annual metric as points with one fitted line per trend result."""
        if any(col not in table.columns for col in [year_column, value_column]):
            logger.error("Required columns missing for trend plot")
            return None

        data = table[[year_column, value_column]].dropna().sort_values(year_column)

        fig, ax = plt.subplots(figsize=self.figure_size)
        ax.plot(data[year_column], data[value_column], 'o', markersize=4, alpha=0.8,
                color=self._get_color(value_column), label=value_column)

        stats_lines = []
        for i, (name, result) in enumerate((trend_results or {}).items()):
            fitted = result.get('fitted')
            if fitted is None or fitted.empty:
                continue

            marker = self._significance_marker(result.get('p_value'))
            ax.plot(fitted.index, fitted.values, linewidth=2, color=f'C{i + 1}',
                    label=f"{name} ({result['year_range'][0]}-{result['year_range'][1]})")
            stats_lines.append(f"{name}: {result['slope']:+.4f}/yr{marker} (p={result['p_value']:.3f})")

        self._add_statistics_text(ax, stats_lines)

        ax.set_xlabel('Year')
        ax.set_ylabel(y_label or value_column)
        ax.set_title(title or f'{value_column} by year')
        ax.grid(True, alpha=0.3)
        ax.legend(loc='lower right', fontsize=9)

        fig.tight_layout()
        self._save_figure(fig, output_path, 'Trend plot')
        return fig

    def create_event_count_plot(self, series: pd.DataFrame,
                                value_column: str,
                                year_column: str = 'year',
                                title: Optional[str] = None,
                                y_label: str = 'Days',
                                output_path: Optional[str] = None) -> plt.Figure:
        """Bar chart of an annual count series."""
        if any(col not in series.columns for col in [year_column, value_column]):
            logger.error("Required columns missing for event count plot")
            return None

        data = series[[year_column, value_column]].dropna().sort_values(year_column)

        fig, ax = plt.subplots(figsize=self.figure_size)
        ax.bar(data[year_column], data[value_column], color=self._get_color(value_column), alpha=0.8)

        ax.set_xlabel('Year')
        ax.set_ylabel(y_label)
        ax.set_title(title or f'{value_column} per year')
        ax.grid(True, axis='y', alpha=0.3)

        fig.tight_layout()
        self._save_figure(fig, output_path, 'Event count plot')
        return fig
