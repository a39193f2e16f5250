"""Public domain model surface."""

from __future__ import annotations

from streetmatch.domain.model.enums import (
    CITY_LEVEL_TYPES,
    LISTING_GEO_TYPES,
    EntityType,
    GeoType,
    Language,
    MatchMethod,
    SkipReason,
)
from streetmatch.domain.model.geo import (
    CanonicalGeo,
    GeoTree,
    LngLat,
    Ring,
    preferred_name,
)
from streetmatch.domain.model.mapping import IdMapping
from streetmatch.domain.model.street import ApartmentComplex, CanonicalStreet, Polyline

__all__ = [  # noqa: RUF022
    "CITY_LEVEL_TYPES",
    "LISTING_GEO_TYPES",
    "ApartmentComplex",
    "CanonicalGeo",
    "CanonicalStreet",
    "EntityType",
    "GeoTree",
    "GeoType",
    "IdMapping",
    "Language",
    "LngLat",
    "MatchMethod",
    "Polyline",
    "Ring",
    "SkipReason",
    "preferred_name",
]
