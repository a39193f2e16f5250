"""Per-source ranking of location evidence (listing text vs. coordinates)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class Evidence(StrEnum):
    TEXT = "text"
    COORDINATES = "coordinates"


DEFAULT_EVIDENCE_ORDER: Final[tuple[Evidence, ...]] = (Evidence.COORDINATES, Evidence.TEXT)
TEXT_FIRST_ORDER: Final[tuple[Evidence, ...]] = (Evidence.TEXT, Evidence.COORDINATES)


@dataclass(frozen=True, slots=True)
class SourceTrustPolicy:
    """Which evidence a source platform is trusted on first.

    Sources without an override use :data:`DEFAULT_EVIDENCE_ORDER`. A source
    that ranks text above coordinates gets no coordinate-only street: when text
    matching fails the nearest-street fallback is dropped.
    """

    overrides: Mapping[str, tuple[Evidence, ...]] = field(
        default_factory=dict["str", "tuple[Evidence, ...]"]
    )
    default: tuple[Evidence, ...] = DEFAULT_EVIDENCE_ORDER

    @classmethod
    def text_first(cls, sources: Iterable[str]) -> SourceTrustPolicy:
        return cls(overrides={source: TEXT_FIRST_ORDER for source in sources})

    def evidence_order(self, source: str | None) -> tuple[Evidence, ...]:
        if source is None:
            return self.default
        return self.overrides.get(source, self.default)

    def trusts_text_over_coordinates(self, source: str | None) -> bool:
        order = self.evidence_order(source)
        if Evidence.TEXT not in order:
            return False
        if Evidence.COORDINATES not in order:
            return True
        return order.index(Evidence.TEXT) < order.index(Evidence.COORDINATES)
