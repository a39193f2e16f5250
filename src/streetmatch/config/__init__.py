"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .matching import MatchingConfig, get_matching_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MatchingConfig",
    "StorageConfig",
    "get_database_config",
    "get_matching_config",
    "get_storage_config",
]
