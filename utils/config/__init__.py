#!/usr/bin/env python3
"""
Configuration Management Module

This module contains configuration and setup utilities including
YAML loading with defaults, logging setup, and filesystem helpers.
"""

from .helpers import (
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

__all__ = [
    'DEFAULT_CONFIG',
    'load_config',
    'merge_config',
    'setup_logging',
    'ensure_directory_exists',
    'validate_file_exists',
    'filter_by_year_range',
    'save_results',
    'get_timestamp'
]
