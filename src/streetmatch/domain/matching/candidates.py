"""Scored match candidates and their total ordering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from functools import cmp_to_key
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streetmatch.domain.model import MatchMethod


class GeoPriority(IntEnum):
    """Locality closeness between a record and a candidate; lower is closer."""

    SAME_GEO = 1
    SAME_CITY = 2
    SAME_REGION = 3

    @property
    def is_local(self) -> bool:
        return self <= GeoPriority.SAME_CITY


def geo_priority(
    *,
    record_geo_id: int,
    record_city_id: int | None,
    candidate_geo_id: int,
    candidate_city_id: int | None,
) -> GeoPriority:
    if candidate_geo_id == record_geo_id:
        return GeoPriority.SAME_GEO
    if candidate_city_id is not None and candidate_city_id in {record_city_id, record_geo_id}:
        return GeoPriority.SAME_CITY
    return GeoPriority.SAME_REGION


@dataclass(frozen=True, kw_only=True)
class MatchCandidate[TEntity]:
    entity: TEntity
    entity_id: int
    priority: GeoPriority
    confidence: float
    method: MatchMethod
    distance_meters: float | None = None


def compare_candidates(left: MatchCandidate[object], right: MatchCandidate[object]) -> int:
    """Order candidates: lower priority, then higher confidence, then lower id.

    Returns a negative number when ``left`` is the better match.
    """

    if left.priority != right.priority:
        return -1 if left.priority < right.priority else 1
    if left.confidence != right.confidence:
        return -1 if left.confidence > right.confidence else 1
    if left.entity_id != right.entity_id:
        return -1 if left.entity_id < right.entity_id else 1
    return 0


candidate_sort_key = cmp_to_key(compare_candidates)


def is_better[TEntity](
    candidate: MatchCandidate[TEntity],
    incumbent: MatchCandidate[TEntity] | None,
) -> bool:
    return incumbent is None or compare_candidates(candidate, incumbent) < 0


def best_candidate[TEntity](
    candidates: Iterable[MatchCandidate[TEntity]],
) -> MatchCandidate[TEntity] | None:
    best: MatchCandidate[TEntity] | None = None
    for candidate in candidates:
        if is_better(candidate, best):
            best = candidate
    return best
