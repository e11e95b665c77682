"""Station record loaders."""

from .station_loader import StationDataLoader, load_station_data

__all__ = ['StationDataLoader', 'load_station_data']
