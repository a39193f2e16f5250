"""Explicit process-lifetime caches used by the real-time resolvers.

Both caches are populated at start-up (or lazily) and only change through
``reload()``/``clear()``. Readers never lock: lookups and inserts are plain
dict operations, and a lost race recomputes an identical value.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .normalize import sorted_variants

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

    from streetmatch.domain.model import CanonicalStreet

COORDINATE_PRECISION: Final[int] = 5

type ResolutionKey = tuple[float, float, Hashable]


def street_name_variants(street: CanonicalStreet) -> tuple[str, ...]:
    """Sorted normalized variants of every name a canonical street carries."""

    return sorted_variants(street.display_names())


class StreetNameCache:
    """Normalized name variants per canonical street id."""

    def __init__(self, streets: Iterable[CanonicalStreet] = ()) -> None:
        self._variants: dict[int, tuple[str, ...]] = {}
        self.reload(streets)

    def reload(self, streets: Iterable[CanonicalStreet]) -> None:
        self._variants = {street.id: street_name_variants(street) for street in streets}

    def clear(self) -> None:
        self._variants = {}

    def variants(self, street: CanonicalStreet) -> tuple[str, ...]:
        cached = self._variants.get(street.id)
        if cached is None:
            cached = street_name_variants(street)
            self._variants[street.id] = cached
        return cached

    def __contains__(self, street_id: object) -> bool:
        return street_id in self._variants

    def __len__(self) -> int:
        return len(self._variants)


class ResolutionCache[TValue]:
    """Memoized resolutions keyed by coordinates rounded to about a metre.

    Grows without bound; call :meth:`clear` between batch runs.
    """

    def __init__(self, *, precision: int = COORDINATE_PRECISION) -> None:
        self.precision = precision
        self._entries: dict[ResolutionKey, TValue] = {}

    def key(self, lng: float, lat: float, context: Hashable = None) -> ResolutionKey:
        return (round(lng, self.precision), round(lat, self.precision), context)

    def get(self, key: ResolutionKey) -> TValue | None:
        return self._entries.get(key)

    def put(self, key: ResolutionKey, value: TValue) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
