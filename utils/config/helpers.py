import copy
import yaml
import logging
import os
from typing import Dict, Any, Optional, Tuple
import pandas as pd
from datetime import datetime


DEFAULT_CONFIG: Dict[str, Any] = {
    'data': {
        'year_start': None,
        'year_end': 2021,
        'on_bad_date': 'skip',
        'required_columns': ['tmax', 'tmin', 'prcp'],
        'column_aliases': {}
    },
    'quality': {
        'precipitation_policy': 'keep',
        'temperature_floor': {
            'tmax': 40.0,
            'tmin': None
        },
        'max_gap_days': 1
    },
    'seasons': {
        'winter': [12, 1, 2],
        'spring': [3, 4, 5],
        'summer': [6, 7, 8],
        'fall': [9, 10, 11]
    },
    'analysis': {
        'statistics': {
            'confidence_level': 0.95,
            'min_observations_mk': 4
        },
        'trend_metrics': ['mean_tmax', 'mean_tmin', 'total_precip'],
        'year_ranges': {},
        'comparisons': [],
        'seasonal_trends': [],
        'extremes': [],
        'hottest_day': {'column': 'tmax'},
        'return_periods': []
    },
    'output': {
        'base_path': 'outputs',
        'save_plots': True
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file': 'climate_analysis.log'
    },
    'visualization': {
        'figure_size': [10, 6],
        'dpi': 150
    }
}


def load_config(config_path: str) -> Dict[str, Any]:
    """Load YAML configuration file and fill in defaults for missing keys."""
    try:
        with open(config_path, 'r') as file:
            config = yaml.safe_load(file) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    return merge_config(config)


def merge_config(overrides: Optional[Dict[str, Any]] = None,
                 base: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Recursively merge ``overrides`` on top of ``base`` (defaults when omitted)."""
    merged = copy.deepcopy(DEFAULT_CONFIG if base is None else base)

    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(value, merged[key])
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def setup_logging(config: Dict[str, Any]) -> None:
    """Set up logging configuration."""
    log_config = config.get('logging', {})
    level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)
    format_str = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')

    handlers = [logging.StreamHandler()]
    log_file = log_config.get('file', 'climate_analysis.log')
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            ensure_directory_exists(log_dir)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=handlers,
        force=True
    )


def ensure_directory_exists(path: str) -> None:
    """Create directory if it doesn't exist."""
    os.makedirs(path, exist_ok=True)


def validate_file_exists(file_path: str) -> bool:
    """Check if file exists."""
    return os.path.isfile(file_path)


def filter_by_year_range(data: pd.DataFrame,
                         year_range: Optional[Tuple[int, int]] = None,
                         year_column: str = 'year') -> pd.DataFrame:
    """Restrict a table to an inclusive ``(start, end)`` year range.

    Either bound may be None to leave that side open.
    """
    if year_range is None:
        return data.copy()

    if year_column not in data.columns:
        raise KeyError(f"Column '{year_column}' not found")

    start, end = year_range
    mask = pd.Series(True, index=data.index)

    if start is not None:
        mask &= data[year_column] >= int(start)

    if end is not None:
        mask &= data[year_column] <= int(end)

    return data[mask].copy()


def save_results(data: pd.DataFrame, file_path: str, format: str = 'csv') -> None:
    """Save results to file in specified format."""
    directory = os.path.dirname(file_path)
    if directory:
        ensure_directory_exists(directory)

    if format.lower() == 'csv':
        data.to_csv(file_path, index=False)
    elif format.lower() == 'pickle':
        data.to_pickle(file_path)
    else:
        raise ValueError(f"Unsupported format: {format}")


def get_timestamp() -> str:
    """Get current timestamp as string."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")
