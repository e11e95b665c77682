"""Quality control and inspection of daily station records."""

from .quality_filter import QualityFilter, PRECIPITATION_POLICIES
from .data_processor import DataValidator, DataProcessor

__all__ = ['QualityFilter', 'PRECIPITATION_POLICIES', 'DataValidator', 'DataProcessor']
