"""
Data Processing Module

Handles loading, gap inspection and quality filtering of daily
climate station records.
"""

from .base_loader import BaseDataLoader
from .loaders.station_loader import StationDataLoader, load_station_data
from .processors.quality_filter import QualityFilter
from .processors.data_processor import DataValidator, DataProcessor

__all__ = [
    'BaseDataLoader',
    'StationDataLoader',
    'load_station_data',
    'QualityFilter',
    'DataValidator',
    'DataProcessor'
]
