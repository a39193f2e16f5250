"""Offline reconciliation of an external development catalog."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from streetmatch.domain.model import EntityType, IdMapping, MatchMethod, SkipReason

from .complexes import clean_complex_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from streetmatch.domain.model import ApartmentComplex, GeoTree

log = getLogger(__name__)

EXACT_CONFIDENCE: Final[float] = 1.0
CONTAINMENT_CONFIDENCE: Final[float] = 0.7
AMBIGUOUS_CONFIDENCE_CAP: Final[float] = 0.6
MIN_CONTAINMENT_LENGTH: Final[int] = 4


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceComplexRecord:
    id: int
    name: str
    source_geo_id: int | None


@dataclass(frozen=True, slots=True, kw_only=True)
class ComplexCatalogMatch:
    source_id: int
    complex_id: int
    method: MatchMethod
    confidence: float
    ambiguous: bool = False


@dataclass(slots=True)
class ComplexCatalogReport:
    matches: list[ComplexCatalogMatch] = field(default_factory=list["ComplexCatalogMatch"])
    unmatched: list[SourceComplexRecord] = field(default_factory=list["SourceComplexRecord"])
    skipped: list[tuple[SourceComplexRecord, SkipReason]] = field(
        default_factory=list["tuple[SourceComplexRecord, SkipReason]"]
    )
    method_counts: Counter[str] = field(default_factory=Counter[str])

    def summary(self) -> dict[str, int]:
        counters: dict[str, int] = {
            "total": len(self.matches) + len(self.unmatched) + len(self.skipped),
            "matched": len(self.matches),
            "unmatched": len(self.unmatched),
            "skipped": len(self.skipped),
        }
        counters.update(sorted(self.method_counts.items()))
        return counters

    def to_id_mappings(self, *, source: str) -> list[IdMapping]:
        return [
            IdMapping(
                source=source,
                entity_type=EntityType.COMPLEX,
                source_id=match.source_id,
                local_id=match.complex_id,
                confidence=match.confidence,
                match_method=match.method,
            )
            for match in sorted(self.matches, key=lambda match: match.source_id)
        ]


class ComplexCatalogReconciler:
    """Matches external developments by cleaned name within the mapped region."""

    def __init__(self, *, tree: GeoTree, complexes: Iterable[ApartmentComplex]) -> None:
        self.tree = tree
        self._names: list[tuple[int, int | None, tuple[str, ...]]] = []
        for complex_ in sorted(complexes, key=lambda item: item.id):
            names = tuple(
                dict.fromkeys(
                    cleaned
                    for cleaned in map(clean_complex_name, complex_.display_names())
                    if cleaned
                )
            )
            if names:
                self._names.append((complex_.id, complex_.geo_id, names))

    def reconcile(
        self,
        records: Iterable[SourceComplexRecord],
        geo_mapping: Mapping[int, int],
    ) -> ComplexCatalogReport:
        report = ComplexCatalogReport()
        ordered = sorted(records, key=lambda record: record.id)
        log.info("Reconciling %s source developments", len(ordered))
        for record in ordered:
            geo_id = None if record.source_geo_id is None else geo_mapping.get(record.source_geo_id)
            if geo_id is None:
                report.skipped.append((record, SkipReason.NO_GEO_MAPPING))
                report.method_counts[f"skipped_{SkipReason.NO_GEO_MAPPING}"] += 1
                continue
            region_id = self.tree.region_of(geo_id)
            if region_id is None:
                report.skipped.append((record, SkipReason.NO_REGION))
                report.method_counts[f"skipped_{SkipReason.NO_REGION}"] += 1
                continue
            match = self.match_record(record, region_id)
            if match is None:
                report.unmatched.append(record)
                report.method_counts["unmatched"] += 1
            else:
                report.matches.append(match)
                report.method_counts[match.method.value] += 1
        log.info(
            "Development reconciliation finished: matched=%s, unmatched=%s, skipped=%s",
            len(report.matches),
            len(report.unmatched),
            len(report.skipped),
        )
        return report

    def match_record(
        self, record: SourceComplexRecord, region_id: int
    ) -> ComplexCatalogMatch | None:
        name = clean_complex_name(record.name)
        if not name:
            return None
        scope = self.tree.subtree_ids(region_id)
        candidates = [
            (complex_id, names)
            for complex_id, geo_id, names in self._names
            if geo_id is not None and geo_id in scope
        ]

        exact = [complex_id for complex_id, names in candidates if name in names]
        if exact:
            return self._match(record, exact, MatchMethod.EXACT_NAME, EXACT_CONFIDENCE)
        if len(name) < MIN_CONTAINMENT_LENGTH:
            return None
        contained = [
            complex_id
            for complex_id, names in candidates
            if any(
                len(known) >= MIN_CONTAINMENT_LENGTH and (name in known or known in name)
                for known in names
            )
        ]
        if contained:
            return self._match(record, contained, MatchMethod.FUZZY_REGION, CONTAINMENT_CONFIDENCE)
        return None

    @staticmethod
    def _match(
        record: SourceComplexRecord,
        complex_ids: list[int],
        method: MatchMethod,
        confidence: float,
    ) -> ComplexCatalogMatch:
        ambiguous = len(complex_ids) > 1
        if ambiguous:
            log.debug(
                "Source development %s matches %s developments", record.id, len(complex_ids)
            )
            confidence = min(confidence, AMBIGUOUS_CONFIDENCE_CAP)
        return ComplexCatalogMatch(
            source_id=record.id,
            complex_id=min(complex_ids),
            method=method,
            confidence=confidence,
            ambiguous=ambiguous,
        )
