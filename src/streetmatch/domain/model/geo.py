"""Canonical geo hierarchy (countries down to villages and city districts)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import CITY_LEVEL_TYPES, GeoType, Language

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

type LngLat = tuple[float, float]
type Ring = tuple[LngLat, ...]

NAME_LANGUAGE_ORDER: tuple[Language, ...] = (Language.UK, Language.RU, Language.EN)


def preferred_name(names: Mapping[Language, str]) -> str:
    """Return the first non-blank name in Ukrainian, Russian, English order."""

    for language in NAME_LANGUAGE_ORDER:
        value = names.get(language)
        if value and value.strip():
            return value.strip()
    return ""


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalGeo:
    """Authoritative locality record with nested-set coordinates."""

    id: int
    type: GeoType
    names: Mapping[Language, str] = field(default_factory=dict["Language", str])
    parent_id: int | None = None
    lft: int = 0
    rgt: int = 0
    lvl: int = 0
    polygon: Ring = ()

    @property
    def name(self) -> str:
        return preferred_name(self.names)

    @property
    def has_nested_set(self) -> bool:
        return self.rgt > self.lft

    def contains(self, other: CanonicalGeo) -> bool:
        """Return whether ``other`` is a strict descendant in the nested-set encoding."""

        if not (self.has_nested_set and other.has_nested_set):
            return False
        return self.lft < other.lft and other.rgt < self.rgt


class GeoTree:
    """Read-only index over canonical geos.

    Parent-chain walks answer "which region/city owns this geo"; the nested-set
    ranges answer ancestor/descendant queries without recursion.
    """

    def __init__(self, geos: Iterable[CanonicalGeo]) -> None:
        self._by_id: dict[int, CanonicalGeo] = {geo.id: geo for geo in geos}
        self._region_by_geo: dict[int, int | None] = {}
        self._city_by_geo: dict[int, int | None] = {}

    def __contains__(self, geo_id: object) -> bool:
        return geo_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[CanonicalGeo]:
        return iter(self._by_id.values())

    def get(self, geo_id: int | None) -> CanonicalGeo | None:
        if geo_id is None:
            return None
        return self._by_id.get(geo_id)

    def lineage(self, geo_id: int) -> list[CanonicalGeo]:
        """Return the geo followed by its parents, innermost first."""

        chain: list[CanonicalGeo] = []
        seen: set[int] = set()
        current = self._by_id.get(geo_id)
        while current is not None and current.id not in seen:
            chain.append(current)
            seen.add(current.id)
            current = self.get(current.parent_id)
        return chain

    def region_of(self, geo_id: int) -> int | None:
        """Return the owning region id.

        A city without a region ancestor is treated as its own region.
        """

        if geo_id in self._region_by_geo:
            return self._region_by_geo[geo_id]
        chain = self.lineage(geo_id)
        region_id: int | None = None
        for geo in chain:
            if geo.type is GeoType.REGION:
                region_id = geo.id
                break
        if region_id is None:
            cities = [geo for geo in chain if geo.type is GeoType.CITY]
            region_id = cities[-1].id if cities else None
        self._region_by_geo[geo_id] = region_id
        return region_id

    def city_of(self, geo_id: int) -> int | None:
        """Return the nearest city or village on the parent chain, the geo included."""

        if geo_id in self._city_by_geo:
            return self._city_by_geo[geo_id]
        city_id = next(
            (geo.id for geo in self.lineage(geo_id) if geo.type in CITY_LEVEL_TYPES),
            None,
        )
        self._city_by_geo[geo_id] = city_id
        return city_id

    def ancestors(self, geo_id: int) -> list[CanonicalGeo]:
        """Return nested-set ancestors, outermost first."""

        geo = self._by_id.get(geo_id)
        if geo is None:
            return []
        found = [candidate for candidate in self._by_id.values() if candidate.contains(geo)]
        return sorted(found, key=lambda candidate: (candidate.lvl, candidate.lft))

    def descendants(self, geo_id: int) -> list[CanonicalGeo]:
        """Return descendants ordered by left boundary.

        Geos loaded without nested-set ranges fall back to parent-chain walks.
        """

        geo = self._by_id.get(geo_id)
        if geo is None:
            return []
        if geo.has_nested_set:
            found = [candidate for candidate in self._by_id.values() if geo.contains(candidate)]
        else:
            found = [
                candidate
                for candidate in self._by_id.values()
                if any(parent.id == geo_id for parent in self.lineage(candidate.id)[1:])
            ]
        return sorted(found, key=lambda candidate: (candidate.lft, candidate.id))

    def subtree_ids(self, geo_id: int) -> frozenset[int]:
        if geo_id not in self._by_id:
            return frozenset()
        return frozenset({geo_id, *(geo.id for geo in self.descendants(geo_id))})
