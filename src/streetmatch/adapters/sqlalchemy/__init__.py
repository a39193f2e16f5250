"""SQLAlchemy adapter package for streetmatch."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, source_id_mapping_table, start_mappers
from .repositories import SqlAlchemyIdMappingRepository
from .unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyIdMappingRepository",
    "SqlAlchemyMappingUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "source_id_mapping_table",
    "start_mappers",
    "startup",
]
