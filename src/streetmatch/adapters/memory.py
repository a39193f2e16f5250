"""In-memory spatial index over loaded catalogs.

Serves the geometry queries of the matching engine from plain Python data:
ray casting for point-in-polygon, a local equirectangular projection to find
the closest point on a segment, and geodesic distances in metres.
"""

from __future__ import annotations

import math
from itertools import pairwise
from logging import getLogger
from typing import TYPE_CHECKING

from geopy.distance import geodesic

from streetmatch.domain.ports.spatial import NearbyComplex, NearbyStreet

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

    from streetmatch.domain.model import (
        ApartmentComplex,
        CanonicalGeo,
        CanonicalStreet,
        GeoTree,
        GeoType,
        LngLat,
    )

log = getLogger(__name__)


def distance_meters(a: LngLat, b: LngLat) -> float:
    """Geodesic distance between two ``(lng, lat)`` points."""

    return geodesic((a[1], a[0]), (b[1], b[0])).meters


def point_in_ring(point: LngLat, ring: Sequence[LngLat]) -> bool:
    if len(ring) < 3:
        return False
    lng, lat = point
    inside = False
    previous = ring[-1]
    for current in ring:
        (x1, y1), (x2, y2) = previous, current
        if (y1 > lat) != (y2 > lat):
            crossing = x1 + (lat - y1) * (x2 - x1) / (y2 - y1)
            if lng < crossing:
                inside = not inside
        previous = current
    return inside


def _closest_on_segment(point: LngLat, start: LngLat, end: LngLat) -> LngLat:
    scale = math.cos(math.radians(point[1]))
    ax, ay = (start[0] - point[0]) * scale, start[1] - point[1]
    bx, by = (end[0] - point[0]) * scale, end[1] - point[1]
    dx, dy = bx - ax, by - ay
    length = dx * dx + dy * dy
    if length == 0:
        return start
    t = max(0.0, min(1.0, -(ax * dx + ay * dy) / length))
    return (start[0] + t * (end[0] - start[0]), start[1] + t * (end[1] - start[1]))


def distance_to_polyline(point: LngLat, line: Sequence[LngLat]) -> float | None:
    if not line:
        return None
    if len(line) == 1:
        return distance_meters(point, line[0])
    return min(
        distance_meters(point, _closest_on_segment(point, start, end))
        for start, end in pairwise(line)
    )


def distance_to_ring(point: LngLat, ring: Sequence[LngLat]) -> float | None:
    """Zero inside the ring, else the distance to its boundary."""

    if not ring:
        return None
    if point_in_ring(point, ring):
        return 0.0
    return distance_to_polyline(point, [*ring, ring[0]])


class InMemorySpatialIndex:
    """Spatial queries over canonical geos, streets and developments held in memory."""

    def __init__(
        self,
        tree: GeoTree,
        streets: Iterable[CanonicalStreet] = (),
        complexes: Iterable[ApartmentComplex] = (),
    ) -> None:
        self.tree = tree
        self.streets = sorted(streets, key=lambda street: street.id)
        self.complexes = sorted(complexes, key=lambda complex_: complex_.id)
        self._scopes: dict[int, frozenset[int]] = {}
        log.debug(
            "Spatial index holds %s geos, %s streets and %s developments",
            len(tree),
            len(self.streets),
            len(self.complexes),
        )

    def _scope(self, geo_id: int) -> frozenset[int]:
        """Ids of every geo whose lineage passes through ``geo_id`` (itself included)."""

        scope = self._scopes.get(geo_id)
        if scope is None:
            scope = frozenset(
                geo.id
                for geo in self.tree
                if any(parent.id == geo_id for parent in self.tree.lineage(geo.id))
            )
            self._scopes[geo_id] = scope
        return scope

    def _depth(self, geo: CanonicalGeo) -> tuple[int, int]:
        return (geo.lvl, len(self.tree.lineage(geo.id)))

    def find_geo_containing_point(
        self,
        lng: float,
        lat: float,
        types: Collection[GeoType] | None = None,
    ) -> CanonicalGeo | None:
        containing = [
            geo
            for geo in self.tree
            if (types is None or geo.type in types) and point_in_ring((lng, lat), geo.polygon)
        ]
        if not containing:
            return None
        return max(containing, key=lambda geo: (*self._depth(geo), -geo.id))

    def find_nearest_geo(
        self,
        lng: float,
        lat: float,
        types: Collection[GeoType],
        max_distance_meters: float,
    ) -> CanonicalGeo | None:
        best: tuple[float, int, CanonicalGeo] | None = None
        for geo in self.tree:
            if geo.type not in types:
                continue
            distance = distance_to_ring((lng, lat), geo.polygon)
            if distance is None or distance > max_distance_meters:
                continue
            if best is None or (distance, geo.id) < best[:2]:
                best = (distance, geo.id, geo)
        return best[2] if best else None

    def find_nearest_streets(
        self,
        lng: float,
        lat: float,
        *,
        geo_id: int | None = None,
        limit: int = 5,
        max_distance_meters: float = 500.0,
    ) -> list[NearbyStreet]:
        scope = self._scope(geo_id) if geo_id is not None else None
        found: list[NearbyStreet] = []
        for street in self.streets:
            if scope is not None and street.geo_id not in scope:
                continue
            distances = [distance_to_polyline((lng, lat), line) for line in street.lines]
            known = [distance for distance in distances if distance is not None]
            if not known:
                continue
            distance = min(known)
            if distance <= max_distance_meters:
                found.append(NearbyStreet(street=street, distance_meters=distance))
        found.sort(key=lambda nearby: (nearby.distance_meters, nearby.street.id))
        return found[:limit]

    def find_street_by_exact_name(self, geo_id: int, name: str) -> CanonicalStreet | None:
        wanted = name.strip().casefold()
        if not wanted:
            return None
        scope = self._scope(geo_id)
        for street in self.streets:
            if street.geo_id not in scope:
                continue
            if any(known.casefold() == wanted for known in street.display_names()):
                return street
        return None

    def find_complex_containing_point(self, lng: float, lat: float) -> ApartmentComplex | None:
        for complex_ in self.complexes:
            if point_in_ring((lng, lat), complex_.polygon):
                return complex_
        return None

    def find_nearest_complex(
        self,
        lng: float,
        lat: float,
        max_distance_meters: float,
    ) -> NearbyComplex | None:
        best: NearbyComplex | None = None
        for complex_ in self.complexes:
            if not complex_.has_location:
                continue
            distances = [
                distance
                for distance in (
                    distance_to_ring((lng, lat), complex_.polygon),
                    distance_meters((lng, lat), complex_.point) if complex_.point else None,
                )
                if distance is not None
            ]
            if not distances:
                continue
            distance = min(distances)
            if distance > max_distance_meters:
                continue
            if best is None or distance < best.distance_meters:
                best = NearbyComplex(complex=complex_, distance_meters=distance)
        return best


if TYPE_CHECKING:
    from streetmatch.domain.ports.spatial import ComplexLocator, SpatialIndex

    _spatial_check: SpatialIndex = InMemorySpatialIndex(GeoTree(()))
    _complex_check: ComplexLocator = InMemorySpatialIndex(GeoTree(()))
