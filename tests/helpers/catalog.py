"""Canonical catalog builders and mapping fakes shared across tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from streetmatch.domain.matching import SourceStreetRecord
from streetmatch.domain.model import (
    ApartmentComplex,
    CanonicalGeo,
    CanonicalStreet,
    GeoTree,
    GeoType,
    IdMapping,
    Language,
)
from streetmatch.domain.ports.persistence import PersistenceError
from streetmatch.domain.ports.spatial import NearbyStreet
from streetmatch.domain.ports.unit_of_work import MappingRepositories

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from streetmatch.domain.model import EntityType, LngLat, Polyline, Ring

COUNTRY_ID = 1
REGION_ID = 2
CITY_ID = 10
DISTRICT_WEST_ID = 11
DISTRICT_EAST_ID = 12
TOWN_ID = 20
VILLAGE_ID = 30
OTHER_REGION_ID = 3
OTHER_CITY_ID = 40


def box(west: float, south: float, east: float, north: float) -> Ring:
    return ((west, south), (east, south), (east, north), (west, north))


def make_geo(
    geo_id: int,
    geo_type: GeoType,
    name: str,
    *,
    parent_id: int | None = None,
    lft: int = 0,
    rgt: int = 0,
    lvl: int = 0,
    polygon: Ring = (),
) -> CanonicalGeo:
    return CanonicalGeo(
        id=geo_id,
        type=geo_type,
        names={Language.UK: name},
        parent_id=parent_id,
        lft=lft,
        rgt=rgt,
        lvl=lvl,
        polygon=polygon,
    )


def make_geos() -> list[CanonicalGeo]:
    """Country and two regions; the first holds a city (two districts), a town and a village."""

    return [
        make_geo(COUNTRY_ID, GeoType.COUNTRY, "Україна", lft=1, rgt=18, lvl=0),
        make_geo(
            REGION_ID,
            GeoType.REGION,
            "Київська область",
            parent_id=COUNTRY_ID,
            lft=2,
            rgt=13,
            lvl=1,
            polygon=box(29.5, 49.5, 31.5, 50.5),
        ),
        make_geo(
            CITY_ID,
            GeoType.CITY,
            "Київ",
            parent_id=REGION_ID,
            lft=3,
            rgt=8,
            lvl=2,
            polygon=box(30.0, 50.0, 30.2, 50.2),
        ),
        make_geo(
            DISTRICT_WEST_ID,
            GeoType.CITY_DISTRICT,
            "Шевченківський",
            parent_id=CITY_ID,
            lft=4,
            rgt=5,
            lvl=3,
            polygon=box(30.0, 50.0, 30.1, 50.2),
        ),
        make_geo(
            DISTRICT_EAST_ID,
            GeoType.CITY_DISTRICT,
            "Печерський",
            parent_id=CITY_ID,
            lft=6,
            rgt=7,
            lvl=3,
            polygon=box(30.1, 50.0, 30.2, 50.2),
        ),
        make_geo(
            TOWN_ID,
            GeoType.CITY,
            "Бровари",
            parent_id=REGION_ID,
            lft=9,
            rgt=10,
            lvl=2,
            polygon=box(31.0, 50.0, 31.1, 50.1),
        ),
        make_geo(VILLAGE_ID, GeoType.VILLAGE, "Гора", parent_id=REGION_ID, lft=11, rgt=12, lvl=2),
        make_geo(
            OTHER_REGION_ID,
            GeoType.REGION,
            "Львівська область",
            parent_id=COUNTRY_ID,
            lft=14,
            rgt=17,
            lvl=1,
        ),
        make_geo(
            OTHER_CITY_ID, GeoType.CITY, "Львів", parent_id=OTHER_REGION_ID, lft=15, rgt=16, lvl=2
        ),
    ]


def make_tree(geos: Iterable[CanonicalGeo] | None = None) -> GeoTree:
    return GeoTree(make_geos() if geos is None else geos)


def make_street(
    street_id: int,
    geo_id: int,
    name: str,
    *,
    ru: str | None = None,
    en: str | None = None,
    alias: str | None = None,
    lines: Sequence[Polyline] = (),
) -> CanonicalStreet:
    names = {Language.UK: name}
    if ru:
        names[Language.RU] = ru
    if en:
        names[Language.EN] = en
    return CanonicalStreet(
        id=street_id,
        geo_id=geo_id,
        names=names,
        alias=alias,
        lines=tuple(lines),
    )


def make_complex(
    complex_id: int,
    name: str,
    *,
    geo_id: int | None = CITY_ID,
    ru: str | None = None,
    street_id: int | None = None,
    point: LngLat | None = None,
    polygon: Ring = (),
) -> ApartmentComplex:
    names = {Language.UK: name}
    if ru:
        names[Language.RU] = ru
    return ApartmentComplex(
        id=complex_id,
        geo_id=geo_id,
        names=names,
        street_id=street_id,
        lng=point[0] if point else None,
        lat=point[1] if point else None,
        polygon=polygon,
    )


def make_record(
    record_id: int,
    *names: str,
    source_geo_id: int | None = 100,
    usage_count: int = 0,
) -> SourceStreetRecord:
    return SourceStreetRecord(
        id=record_id,
        names=tuple(names),
        source_geo_id=source_geo_id,
        usage_count=usage_count,
    )


class FakeIdMappingRepository:
    """In-memory id-mapping store keyed by ``(source, entity_type, source_id)``."""

    def __init__(
        self,
        initial: Iterable[IdMapping] = (),
        *,
        fail_source_ids: Iterable[int] = (),
    ) -> None:
        self.rows: dict[tuple[str, EntityType, int], IdMapping] = {
            mapping.key: mapping for mapping in initial
        }
        self.fail_source_ids = frozenset(fail_source_ids)
        self.add_calls: list[int] = []

    def delete_for(self, source: str, entity_type: EntityType) -> int:
        doomed = [key for key in self.rows if key[:2] == (source, entity_type)]
        for key in doomed:
            del self.rows[key]
        return len(doomed)

    def add_all(self, mappings: Sequence[IdMapping]) -> None:
        self.add_calls.append(len(mappings))
        if any(mapping.source_id in self.fail_source_ids for mapping in mappings):
            raise PersistenceError("simulated insert failure")
        for mapping in mappings:
            if mapping.key in self.rows:
                raise PersistenceError(f"duplicate key {mapping.key}")
            self.rows[mapping.key] = mapping

    def list_for(self, source: str, entity_type: EntityType) -> list[IdMapping]:
        found = [row for key, row in self.rows.items() if key[:2] == (source, entity_type)]
        return sorted(found, key=lambda row: row.source_id)

    def local_ids(self, source: str, entity_type: EntityType) -> dict[int, int]:
        return {row.source_id: row.local_id for row in self.list_for(source, entity_type)}


class FakeMappingUnitOfWork:
    """Unit of work over a shared :class:`FakeIdMappingRepository`."""

    def __init__(self, repository: FakeIdMappingRepository) -> None:
        self.repositories = MappingRepositories(id_mappings=repository)
        self.committed = False
        self.rollback_called = False

    def __enter__(self) -> FakeMappingUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: object | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rollback_called = True


if TYPE_CHECKING:
    from streetmatch.domain.ports.persistence import IdMappingRepository

    _check_repo: IdMappingRepository = FakeIdMappingRepository()


class FakeStreetLocator:
    """Returns canned nearby streets, optionally per geo scope, and records each query."""

    def __init__(
        self,
        nearby: Iterable[tuple[CanonicalStreet, float]] = (),
        *,
        scoped: Mapping[int, Iterable[tuple[CanonicalStreet, float]]] | None = None,
    ) -> None:
        self.nearby = [NearbyStreet(street, distance) for street, distance in nearby]
        self.scoped = {
            geo_id: [NearbyStreet(street, distance) for street, distance in found]
            for geo_id, found in (scoped or {}).items()
        }
        self.calls: list[int | None] = []

    def find_nearest_streets(
        self,
        lng: float,
        lat: float,
        *,
        geo_id: int | None = None,
        limit: int = 5,
        max_distance_meters: float = 500.0,
    ) -> list[NearbyStreet]:
        _ = (lng, lat)
        self.calls.append(geo_id)
        source = self.nearby if geo_id is None else self.scoped.get(geo_id, [])
        within = [found for found in source if found.distance_meters <= max_distance_meters]
        return within[:limit]


if TYPE_CHECKING:
    from streetmatch.domain.ports.spatial import StreetLocator

    _check_locator: StreetLocator = FakeStreetLocator()
