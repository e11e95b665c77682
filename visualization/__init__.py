#!/usr/bin/env python3
"""
Visualization Module

This module provides the charting collaborator of the climate analysis
framework: annual series with trend overlays and event-count charts.
"""

from .plots.time_series_plots import TimeSeriesPlotter

__all__ = [
    'TimeSeriesPlotter'
]
