#!/usr/bin/env python3
"""
Utilities Module

This module provides common utilities for the climate analysis framework,
including configuration management, logging setup and the exception types.
"""

from .config.helpers import (
    DEFAULT_CONFIG,
    load_config,
    merge_config,
    setup_logging,
    ensure_directory_exists,
    validate_file_exists,
    filter_by_year_range,
    save_results,
    get_timestamp
)
from .exceptions import (
    ClimateAnalysisError,
    ParseError,
    InsufficientDataError,
    ReturnPeriodError
)

__all__ = [
    # Configuration helpers
    'DEFAULT_CONFIG',
    'load_config',
    'merge_config',
    'setup_logging',
    'ensure_directory_exists',
    'validate_file_exists',
    'filter_by_year_range',
    'save_results',
    'get_timestamp',

    # Exceptions
    'ClimateAnalysisError',
    'ParseError',
    'InsufficientDataError',
    'ReturnPeriodError'
]
