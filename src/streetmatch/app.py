"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from streetmatch.adapters.catalog import (
    load_complexes,
    load_geos,
    load_id_mappings,
    load_renames,
    load_source_complexes,
    load_source_streets,
    load_streets,
)
from streetmatch.adapters.memory import InMemorySpatialIndex
from streetmatch.adapters.reports import write_review_artifact
from streetmatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    is_started,
    startup,
)
from streetmatch.config import get_matching_config
from streetmatch.domain.id_mappings import ApplyResult, replace_id_mappings
from streetmatch.domain.matching import (
    BatchReconciler,
    CanonicalStreetIndex,
    ComplexCatalogReconciler,
    ComplexMatcher,
    ListingLocation,
    ListingResolver,
    RenameTable,
    ResolverSettings,
    SourceTrustPolicy,
    StreetNameCache,
    StreetResolver,
)
from streetmatch.domain.model import EntityType, GeoTree
from streetmatch.domain.ports.unit_of_work import MappingUnitOfWork

if TYPE_CHECKING:
    from pathlib import Path

    from streetmatch.config import MatchingConfig
    from streetmatch.domain.matching import (
        ComplexCatalogReport,
        ListingResolution,
        ReconciliationReport,
    )
    from streetmatch.domain.model import ApartmentComplex, IdMapping

UnitOfWorkFactory = Callable[[], MappingUnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True)
class StreetReconciliationResult:
    report: ReconciliationReport
    mappings: list[IdMapping]
    applied: ApplyResult | None = None
    review_path: Path | None = None


@dataclass(slots=True)
class ComplexReconciliationResult:
    report: ComplexCatalogReport
    mappings: list[IdMapping]
    applied: ApplyResult | None = None


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyMappingUnitOfWork


def load_geo_mapping(
    *,
    source: str,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> dict[int, int]:
    """Stored ``source geo id -> canonical geo id`` mapping for one source."""

    factory = _unit_of_work_factory(unit_of_work_factory)
    with factory() as uow:
        mapping = uow.repositories.id_mappings.local_ids(source, EntityType.GEO)
    log.info("Loaded %s geo mappings for source %s", len(mapping), source)
    return mapping


def reconcile_street_catalog(
    *,
    source: str,
    source_streets_path: Path,
    geos_path: Path,
    streets_path: Path,
    usage_path: Path | None = None,
    renames_path: Path | None = None,
    review_path: Path | None = None,
    dry_run: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: MatchingConfig | None = None,
) -> StreetReconciliationResult:
    """Reconcile an external street catalog and replace its stored street mappings."""

    settings = config or get_matching_config()
    factory = _unit_of_work_factory(unit_of_work_factory)
    tree = GeoTree(load_geos(geos_path))
    index = CanonicalStreetIndex(load_streets(streets_path), tree)
    renames = RenameTable.from_pairs(load_renames(renames_path)) if renames_path else None
    records = load_source_streets(source_streets_path, usage_path)
    geo_mapping = load_geo_mapping(source=source, unit_of_work_factory=factory)

    reconciler = BatchReconciler(tree=tree, index=index, renames=renames)
    report = reconciler.reconcile(records, geo_mapping)
    result = StreetReconciliationResult(
        report=report,
        mappings=report.to_id_mappings(source=source, entity_type=EntityType.STREET),
    )

    if review_path is not None:
        result.review_path = write_review_artifact(review_path, report.review_items())
    if dry_run:
        log.info("Dry run: %s street mappings not applied", len(result.mappings))
        return result

    result.applied = replace_id_mappings(
        unit_of_work_factory=factory,
        source=source,
        entity_type=EntityType.STREET,
        mappings=result.mappings,
        chunk_size=settings.apply_chunk_size,
    )
    return result


def reconcile_complex_catalog(
    *,
    source: str,
    source_complexes_path: Path,
    geos_path: Path,
    complexes_path: Path,
    dry_run: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: MatchingConfig | None = None,
) -> ComplexReconciliationResult:
    """Reconcile an external development catalog and replace its stored mappings."""

    settings = config or get_matching_config()
    factory = _unit_of_work_factory(unit_of_work_factory)
    tree = GeoTree(load_geos(geos_path))
    reconciler = ComplexCatalogReconciler(tree=tree, complexes=load_complexes(complexes_path))
    geo_mapping = load_geo_mapping(source=source, unit_of_work_factory=factory)

    report = reconciler.reconcile(load_source_complexes(source_complexes_path), geo_mapping)
    result = ComplexReconciliationResult(
        report=report,
        mappings=report.to_id_mappings(source=source),
    )
    if dry_run:
        log.info("Dry run: %s development mappings not applied", len(result.mappings))
        return result

    result.applied = replace_id_mappings(
        unit_of_work_factory=factory,
        source=source,
        entity_type=EntityType.COMPLEX,
        mappings=result.mappings,
        chunk_size=settings.apply_chunk_size,
    )
    return result


def import_id_mappings(
    *,
    source: str,
    entity_type: EntityType,
    path: Path,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: MatchingConfig | None = None,
) -> ApplyResult:
    """Replace the stored mappings of one source and entity type with a curated CSV."""

    settings = config or get_matching_config()
    mappings = load_id_mappings(path, source=source, entity_type=entity_type)
    log.info("Importing %s %s mappings for source %s", len(mappings), entity_type, source)
    return replace_id_mappings(
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        source=source,
        entity_type=entity_type,
        mappings=mappings,
        chunk_size=settings.apply_chunk_size,
    )


def build_listing_resolver(
    *,
    geos_path: Path,
    streets_path: Path,
    complexes_path: Path | None = None,
    config: MatchingConfig | None = None,
) -> ListingResolver:
    settings = config or get_matching_config()
    tree = GeoTree(load_geos(geos_path))
    streets = load_streets(streets_path)
    complexes = load_complexes(complexes_path) if complexes_path else []
    spatial = InMemorySpatialIndex(tree, streets, complexes)
    trust = SourceTrustPolicy.text_first(settings.text_first_sources)
    resolver = StreetResolver(
        spatial,
        names=StreetNameCache(streets),
        settings=ResolverSettings(
            radius_meters=settings.search_radius_meters,
            limit=settings.nearest_limit,
        ),
    )
    matcher = ComplexMatcher(complexes, locator=spatial, trust=trust) if complexes else None
    return ListingResolver(
        spatial,
        resolver,
        complexes=matcher,
        trust=trust,
        complex_min_score=settings.complex_min_score,
        complex_strong_score=settings.complex_strong_score,
    )


def resolve_street(
    *,
    geos_path: Path,
    streets_path: Path,
    lng: float,
    lat: float,
    text: str | None = None,
    street_name: str | None = None,
    geo_id: int | None = None,
    complexes_path: Path | None = None,
    source: str | None = None,
    config: MatchingConfig | None = None,
) -> ListingResolution:
    """Resolve one listing location against the canonical catalogs."""

    resolver = build_listing_resolver(
        geos_path=geos_path,
        streets_path=streets_path,
        complexes_path=complexes_path,
        config=config,
    )
    return resolver.resolve(
        ListingLocation(
            source=source,
            lng=lng,
            lat=lat,
            title=text,
            street_name=street_name,
            geo_id=geo_id,
        )
    )


def search_complexes(
    *,
    complexes_path: Path,
    query: str,
    limit: int = 10,
) -> list[ApartmentComplex]:
    return ComplexMatcher(load_complexes(complexes_path)).search_by_name(query, limit=limit)
