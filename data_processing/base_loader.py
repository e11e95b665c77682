from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Union, IO
from pathlib import Path
import re
import pandas as pd
import logging

logger = logging.getLogger(__name__)

DataSource = Union[str, Path, IO[str]]


class BaseDataLoader(ABC):
    """Abstract base class for all data loaders."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.data: Optional[pd.DataFrame] = None

    @abstractmethod
    def load_data(self, source: DataSource, **kwargs) -> pd.DataFrame:
        """Load data from a path or text stream and return standardized DataFrame."""
        pass

    @abstractmethod
    def validate_data(self, data: pd.DataFrame) -> bool:
        """Validate loaded data structure and content."""
        pass

    @abstractmethod
    def get_required_columns(self) -> List[str]:
        """Return list of required columns for this data type."""
        pass

    @staticmethod
    def normalize_column_name(name: Any) -> str:
        """Lower-case a header name and collapse whitespace to underscores."""
        return re.sub(r'\s+', '_', str(name).strip().lower())

    def normalize_columns(self, data: pd.DataFrame) -> pd.DataFrame:
        """Apply header normalization and the configured column aliases."""
        aliases = {
            self.normalize_column_name(source): target
            for source, target in self.config.get('data', {}).get('column_aliases', {}).items()
        }

        renamed = {}
        for column in data.columns:
            normalized = self.normalize_column_name(column)
            renamed[column] = aliases.get(normalized, normalized)

        return data.rename(columns=renamed)

    def get_data(self) -> Optional[pd.DataFrame]:
        """Return loaded and processed data."""
        return self.data

    def has_data(self) -> bool:
        """Check if data has been loaded."""
        return self.data is not None and not self.data.empty
