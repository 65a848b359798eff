"""
Adapters layer - External data sources (JSON file, hosted REST backend).
"""

from pathlib import Path

from ..config import DataSourceConfig
from .json_store import JsonDataStore
from .rest_store import RestDataStore


def build_data_source(config: DataSourceConfig) -> JsonDataStore | RestDataStore:
    """Create the data store selected in the configuration."""
    if config.kind == "rest":
        return RestDataStore(
            base_url=config.url,
            api_key=config.api_key,
            timeout=config.timeout_seconds,
        )
    return JsonDataStore(data_file=Path(config.path))


__all__ = ["JsonDataStore", "RestDataStore", "build_data_source"]
