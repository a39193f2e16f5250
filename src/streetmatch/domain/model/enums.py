"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Language(StrEnum):
    UK = "uk"
    RU = "ru"
    EN = "en"


class GeoType(StrEnum):
    COUNTRY = "country"
    REGION = "region"
    REGION_DISTRICT = "region_district"
    CITY = "city"
    CITY_DISTRICT = "city_district"
    VILLAGE = "village"


class EntityType(StrEnum):
    """Discriminator for the kind of entity an id mapping points at."""

    GEO = "geo"
    STREET = "street"
    COMPLEX = "complex"
    TOPZONE = "topzone"


class MatchMethod(StrEnum):
    """Provenance tag recorded with every resolution."""

    EXACT_NAME = "exact_name"
    RENAMED = "renamed"
    FUZZY_CITY = "fuzzy_city"
    FUZZY_REGION = "fuzzy_region"
    TEXT_PARSED = "text_parsed"
    TEXT_FOUND = "text_found"
    NEAREST = "nearest"
    COORDINATES = "coordinates"
    MANUAL = "manual"


class SkipReason(StrEnum):
    NO_GEO_MAPPING = "no_geo_mapping"
    NO_REGION = "no_region"


CITY_LEVEL_TYPES: frozenset[GeoType] = frozenset({GeoType.CITY, GeoType.VILLAGE})
LISTING_GEO_TYPES: frozenset[GeoType] = frozenset(
    {GeoType.CITY, GeoType.VILLAGE, GeoType.CITY_DISTRICT}
)
