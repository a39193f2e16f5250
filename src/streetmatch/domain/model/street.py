"""Canonical streets and named developments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .geo import NAME_LANGUAGE_ORDER, LngLat, Ring, preferred_name

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .enums import Language

type Polyline = tuple[LngLat, ...]


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalStreet:
    id: int
    geo_id: int
    names: Mapping[Language, str] = field(default_factory=dict["Language", str])
    alias: str | None = None
    lines: tuple[Polyline, ...] = ()

    @property
    def name(self) -> str:
        return preferred_name(self.names)

    def display_names(self) -> tuple[str, ...]:
        """Every distinct raw name the street is known by, alias last."""

        raw = [self.names.get(language) for language in NAME_LANGUAGE_ORDER]
        raw.append(self.alias)
        seen: dict[str, None] = {}
        for value in raw:
            if value and value.strip():
                seen.setdefault(value.strip(), None)
        return tuple(seen)


@dataclass(frozen=True, slots=True, kw_only=True)
class ApartmentComplex:
    """A named residential development, optionally anchored to a street."""

    id: int
    geo_id: int | None = None
    names: Mapping[Language, str] = field(default_factory=dict["Language", str])
    street_id: int | None = None
    lng: float | None = None
    lat: float | None = None
    polygon: Ring = ()

    @property
    def name(self) -> str:
        return preferred_name(self.names)

    @property
    def point(self) -> LngLat | None:
        if self.lng is None or self.lat is None:
            return None
        return (self.lng, self.lat)

    @property
    def has_location(self) -> bool:
        return bool(self.polygon) or self.point is not None

    def display_names(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for language in NAME_LANGUAGE_ORDER:
            value = self.names.get(language)
            if value and value.strip():
                seen.setdefault(value.strip(), None)
        return tuple(seen)
