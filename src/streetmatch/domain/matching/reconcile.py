"""Offline reconciliation of an external street catalog against canonical streets.

Each external record is matched inside its canonical region through four tiers,
stopping at the first tier that yields a candidate:

1. exact normalized name (``exact_name``)
2. exact name after a historical rename (``renamed``)
3. fuzzy name among streets of the same city (``fuzzy_city``)
4. fuzzy name across the whole region (``fuzzy_region``)

Within a tier candidates are ranked by :func:`compare_candidates`.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from streetmatch.domain.model import EntityType, IdMapping, MatchMethod, SkipReason

from .cache import street_name_variants
from .candidates import GeoPriority, MatchCandidate, geo_priority, is_better
from .fuzzy import edit_similarity, within_length_tolerance
from .normalize import SurnamePolicy, sorted_variants
from .renames import RenameTable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from streetmatch.domain.model import CanonicalStreet, GeoTree

log = getLogger(__name__)

PROGRESS_EVERY: Final[int] = 1000


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceStreetRecord:
    """A street as an external catalog knows it."""

    id: int
    names: tuple[str, ...]
    source_geo_id: int | None
    usage_count: int = 0

    def variants(self) -> tuple[str, ...]:
        return sorted_variants(self.names, surnames=SurnamePolicy.ALWAYS)


@dataclass(frozen=True, slots=True, kw_only=True)
class IndexedStreet:
    street_id: int
    geo_id: int
    city_id: int | None
    name: str
    variants: tuple[str, ...]


class CanonicalStreetIndex:
    """Canonical streets grouped by region, by exact variant and as a flat list."""

    def __init__(self, streets: Iterable[CanonicalStreet], tree: GeoTree) -> None:
        self._by_name: dict[int, dict[str, list[IndexedStreet]]] = {}
        self._by_region: dict[int, list[IndexedStreet]] = {}
        self.unplaced = 0
        for street in sorted(streets, key=lambda item: item.id):
            region_id = tree.region_of(street.geo_id)
            variants = street_name_variants(street)
            if region_id is None or not variants:
                self.unplaced += 1
                continue
            indexed = IndexedStreet(
                street_id=street.id,
                geo_id=street.geo_id,
                city_id=tree.city_of(street.geo_id),
                name=street.name,
                variants=variants,
            )
            self._by_region.setdefault(region_id, []).append(indexed)
            by_name = self._by_name.setdefault(region_id, {})
            for variant in variants:
                by_name.setdefault(variant, []).append(indexed)
        if self.unplaced:
            log.warning("%s canonical streets have no region or usable name", self.unplaced)

    def exact(self, region_id: int, variant: str) -> Sequence[IndexedStreet]:
        return self._by_name.get(region_id, {}).get(variant, ())

    def region_streets(self, region_id: int) -> Sequence[IndexedStreet]:
        return self._by_region.get(region_id, ())

    def __len__(self) -> int:
        return sum(len(streets) for streets in self._by_region.values())


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconcilerSettings:
    exact_local_confidence: float = 1.0
    exact_regional_confidence: float = 0.90
    renamed_local_confidence: float = 0.95
    renamed_regional_confidence: float = 0.85
    city_min_length: int = 4
    city_max_length_difference: float = 0.30
    city_threshold: float = 0.90
    region_min_length: int = 5
    region_max_length_difference: float = 0.25
    region_threshold: float = 0.92


@dataclass(frozen=True, slots=True, kw_only=True)
class StreetMatch:
    source_id: int
    canonical_id: int
    method: MatchMethod
    confidence: float
    priority: GeoPriority
    usage_count: int = 0

    @property
    def tier_label(self) -> str:
        locality = "local" if self.priority.is_local else "cross"
        return f"{self.method}_{locality}"


@dataclass(frozen=True, slots=True, kw_only=True)
class UnmatchedRecord:
    record: SourceStreetRecord
    geo_id: int
    geo_name: str | None


@dataclass(frozen=True, slots=True, kw_only=True)
class SkippedRecord:
    record: SourceStreetRecord
    reason: SkipReason


@dataclass(frozen=True, slots=True, kw_only=True)
class ReviewItem:
    """One row of the manual-review artifact."""

    source_id: int
    names: tuple[str, ...]
    geo_name: str | None
    usage_count: int

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.source_id,
            "names": list(self.names),
            "geoName": self.geo_name,
            "objects": self.usage_count,
        }


@dataclass(slots=True)
class ReconciliationReport:
    matches: list[StreetMatch] = field(default_factory=list["StreetMatch"])
    unmatched: list[UnmatchedRecord] = field(default_factory=list["UnmatchedRecord"])
    skipped: list[SkippedRecord] = field(default_factory=list["SkippedRecord"])
    method_counts: Counter[str] = field(default_factory=Counter[str])
    tier_counts: Counter[str] = field(default_factory=Counter[str])

    @property
    def total(self) -> int:
        return len(self.matches) + len(self.unmatched) + len(self.skipped)

    @property
    def matched_usage(self) -> int:
        return sum(match.usage_count for match in self.matches)

    def add_match(self, match: StreetMatch) -> None:
        self.matches.append(match)
        self.method_counts[match.method.value] += 1
        self.tier_counts[match.tier_label] += 1

    def add_unmatched(self, unmatched: UnmatchedRecord) -> None:
        self.unmatched.append(unmatched)
        self.method_counts["unmatched"] += 1

    def add_skipped(self, skipped: SkippedRecord) -> None:
        self.skipped.append(skipped)
        self.method_counts[f"skipped_{skipped.reason}"] += 1

    def review_items(self) -> list[ReviewItem]:
        """Unmatched records with usage, most used first."""

        items = [
            ReviewItem(
                source_id=entry.record.id,
                names=entry.record.names,
                geo_name=entry.geo_name,
                usage_count=entry.record.usage_count,
            )
            for entry in self.unmatched
            if entry.record.usage_count > 0
        ]
        return sorted(items, key=lambda item: (-item.usage_count, item.source_id))

    def to_id_mappings(
        self,
        *,
        source: str,
        entity_type: EntityType = EntityType.STREET,
    ) -> list[IdMapping]:
        ordered = sorted(self.matches, key=lambda match: match.source_id)
        return [
            IdMapping(
                source=source,
                entity_type=entity_type,
                source_id=match.source_id,
                local_id=match.canonical_id,
                confidence=match.confidence,
                match_method=match.method,
            )
            for match in ordered
        ]

    def summary(self) -> dict[str, int]:
        counters: dict[str, int] = {
            "total": self.total,
            "matched": len(self.matches),
            "unmatched": len(self.unmatched),
            "skipped": len(self.skipped),
            "matched_usage": self.matched_usage,
        }
        counters.update(sorted(self.method_counts.items()))
        counters.update(sorted(self.tier_counts.items()))
        return counters


@dataclass(frozen=True, slots=True)
class _RecordScope:
    geo_id: int
    city_id: int | None
    region_id: int


class BatchReconciler:
    """Tiered, geo-priority-aware matcher over in-memory regional indices."""

    def __init__(
        self,
        *,
        tree: GeoTree,
        index: CanonicalStreetIndex,
        renames: RenameTable | None = None,
        settings: ReconcilerSettings | None = None,
    ) -> None:
        self.tree = tree
        self.index = index
        self.renames = renames or RenameTable()
        self.settings = settings or ReconcilerSettings()

    def reconcile(
        self,
        records: Iterable[SourceStreetRecord],
        geo_mapping: Mapping[int, int],
    ) -> ReconciliationReport:
        """Match every record; records are visited by usage descending, then id."""

        report = ReconciliationReport()
        ordered = sorted(records, key=lambda record: (-record.usage_count, record.id))
        log.info(
            "Reconciling %s source streets against %s canonical streets",
            len(ordered),
            len(self.index),
        )

        for position, record in enumerate(ordered, start=1):
            self._reconcile_record(record, geo_mapping, report)
            if position % PROGRESS_EVERY == 0:
                log.debug(
                    "Progress %s/%s: matched=%s unmatched=%s skipped=%s",
                    position,
                    len(ordered),
                    len(report.matches),
                    len(report.unmatched),
                    len(report.skipped),
                )

        log.info(
            "Reconciliation finished: matched=%s, unmatched=%s, skipped=%s",
            len(report.matches),
            len(report.unmatched),
            len(report.skipped),
        )
        for label, count in sorted(report.tier_counts.items()):
            log.info("  %s: %s", label, count)
        return report

    def _reconcile_record(
        self,
        record: SourceStreetRecord,
        geo_mapping: Mapping[int, int],
        report: ReconciliationReport,
    ) -> None:
        geo_id = None if record.source_geo_id is None else geo_mapping.get(record.source_geo_id)
        if geo_id is None:
            log.debug("Skipping source street %s: no geo mapping", record.id)
            report.add_skipped(SkippedRecord(record=record, reason=SkipReason.NO_GEO_MAPPING))
            return
        region_id = self.tree.region_of(geo_id)
        if region_id is None:
            log.debug("Skipping source street %s: geo %s has no region", record.id, geo_id)
            report.add_skipped(SkippedRecord(record=record, reason=SkipReason.NO_REGION))
            return

        match = self.match_record(record, geo_id, region_id=region_id)
        if match is not None:
            report.add_match(match)
            return
        geo = self.tree.get(geo_id)
        report.add_unmatched(
            UnmatchedRecord(record=record, geo_id=geo_id, geo_name=geo.name if geo else None)
        )

    def match_record(
        self,
        record: SourceStreetRecord,
        geo_id: int,
        *,
        region_id: int | None = None,
    ) -> StreetMatch | None:
        """Run the tiers for one record already placed in canonical geo ``geo_id``."""

        resolved_region = region_id if region_id is not None else self.tree.region_of(geo_id)
        if resolved_region is None:
            return None
        scope = _RecordScope(
            geo_id=geo_id, city_id=self.tree.city_of(geo_id), region_id=resolved_region
        )
        variants = record.variants()
        settings = self.settings

        best = self._scan_exact(
            scope,
            variants,
            method=MatchMethod.EXACT_NAME,
            local_confidence=settings.exact_local_confidence,
            regional_confidence=settings.exact_regional_confidence,
        )
        if best is None:
            best = self._scan_exact(
                scope,
                self._renamed_variants(variants),
                method=MatchMethod.RENAMED,
                local_confidence=settings.renamed_local_confidence,
                regional_confidence=settings.renamed_regional_confidence,
            )
        if best is None:
            city_streets = [
                street
                for street in self.index.region_streets(scope.region_id)
                if street.geo_id == scope.geo_id
                or (scope.city_id is not None and street.city_id == scope.city_id)
            ]
            best = self._scan_fuzzy(
                scope,
                variants,
                city_streets,
                method=MatchMethod.FUZZY_CITY,
                min_length=settings.city_min_length,
                max_length_difference=settings.city_max_length_difference,
                threshold=settings.city_threshold,
            )
        if best is None:
            best = self._scan_fuzzy(
                scope,
                variants,
                self.index.region_streets(scope.region_id),
                method=MatchMethod.FUZZY_REGION,
                min_length=settings.region_min_length,
                max_length_difference=settings.region_max_length_difference,
                threshold=settings.region_threshold,
            )
        if best is None:
            return None
        return StreetMatch(
            source_id=record.id,
            canonical_id=best.entity_id,
            method=best.method,
            confidence=best.confidence,
            priority=best.priority,
            usage_count=record.usage_count,
        )

    def _renamed_variants(self, variants: Iterable[str]) -> list[str]:
        renamed: dict[str, None] = {}
        for variant in variants:
            for new_variant in self.renames.lookup(variant):
                renamed.setdefault(new_variant, None)
        return list(renamed)

    def _priority(self, scope: _RecordScope, street: IndexedStreet) -> GeoPriority:
        return geo_priority(
            record_geo_id=scope.geo_id,
            record_city_id=scope.city_id,
            candidate_geo_id=street.geo_id,
            candidate_city_id=street.city_id,
        )

    def _scan_exact(
        self,
        scope: _RecordScope,
        variants: Iterable[str],
        *,
        method: MatchMethod,
        local_confidence: float,
        regional_confidence: float,
    ) -> MatchCandidate[IndexedStreet] | None:
        best: MatchCandidate[IndexedStreet] | None = None
        for variant in variants:
            for street in self.index.exact(scope.region_id, variant):
                priority = self._priority(scope, street)
                candidate = MatchCandidate(
                    entity=street,
                    entity_id=street.street_id,
                    priority=priority,
                    confidence=local_confidence if priority.is_local else regional_confidence,
                    method=method,
                )
                if is_better(candidate, best):
                    best = candidate
            if best is not None and best.priority is GeoPriority.SAME_GEO:
                break
        return best

    def _scan_fuzzy(
        self,
        scope: _RecordScope,
        variants: Sequence[str],
        streets: Iterable[IndexedStreet],
        *,
        method: MatchMethod,
        min_length: int,
        max_length_difference: float,
        threshold: float,
    ) -> MatchCandidate[IndexedStreet] | None:
        queries = [variant for variant in variants if len(variant) >= min_length]
        if not queries:
            return None
        best: MatchCandidate[IndexedStreet] | None = None
        for street in streets:
            score = 0.0
            for query in queries:
                for name in street.variants:
                    if len(name) < min_length:
                        continue
                    if not within_length_tolerance(query, name, max_length_difference):
                        continue
                    score = max(score, edit_similarity(query, name))
            if score < threshold:
                continue
            candidate = MatchCandidate(
                entity=street,
                entity_id=street.street_id,
                priority=self._priority(scope, street),
                confidence=round(score, 2),
                method=method,
            )
            if is_better(candidate, best):
                best = candidate
        return best
