"""Static catalog inputs: pydantic schemas and file loaders."""

from __future__ import annotations

from .loader import (
    CatalogLoadError,
    load_complexes,
    load_geos,
    load_id_mappings,
    load_renames,
    load_source_complexes,
    load_source_streets,
    load_streets,
    load_usage,
)

__all__ = [
    "CatalogLoadError",
    "load_complexes",
    "load_geos",
    "load_id_mappings",
    "load_renames",
    "load_source_complexes",
    "load_source_streets",
    "load_streets",
    "load_usage",
]
