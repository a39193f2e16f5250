"""Ports onto the external geospatial store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from streetmatch.domain.model import ApartmentComplex, CanonicalGeo, CanonicalStreet, GeoType


@dataclass(frozen=True, slots=True)
class NearbyStreet:
    street: CanonicalStreet
    distance_meters: float


@dataclass(frozen=True, slots=True)
class NearbyComplex:
    complex: ApartmentComplex
    distance_meters: float


@runtime_checkable
class StreetLocator(Protocol):
    """Nearest-line-within-radius queries over canonical streets."""

    def find_nearest_streets(
        self,
        lng: float,
        lat: float,
        *,
        geo_id: int | None = None,
        limit: int = 5,
        max_distance_meters: float = 500.0,
    ) -> list[NearbyStreet]: ...


@runtime_checkable
class SpatialIndex(StreetLocator, Protocol):
    """Full read contract of the geometry/catalog collaborator."""

    def find_geo_containing_point(
        self,
        lng: float,
        lat: float,
        types: Collection[GeoType] | None = None,
    ) -> CanonicalGeo | None: ...

    def find_nearest_geo(
        self,
        lng: float,
        lat: float,
        types: Collection[GeoType],
        max_distance_meters: float,
    ) -> CanonicalGeo | None: ...

    def find_street_by_exact_name(self, geo_id: int, name: str) -> CanonicalStreet | None: ...


@runtime_checkable
class ComplexLocator(Protocol):
    """Point-in-polygon and proximity queries over named developments."""

    def find_complex_containing_point(self, lng: float, lat: float) -> ApartmentComplex | None: ...

    def find_nearest_complex(
        self,
        lng: float,
        lat: float,
        max_distance_meters: float,
    ) -> NearbyComplex | None: ...
