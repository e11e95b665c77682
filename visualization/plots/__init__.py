#!/usr/bin/env python3
"""
Plots Module

Charting of annual series, fitted trends and event counts.
"""

from .base import BasePlotter
from .time_series_plots import TimeSeriesPlotter

__all__ = [
    'BasePlotter',
    'TimeSeriesPlotter'
]
