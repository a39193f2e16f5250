"""Application service that replaces stored id mappings for one source."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from streetmatch.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from streetmatch.domain.model import EntityType, IdMapping
    from streetmatch.domain.ports.unit_of_work import MappingUnitOfWork

log = getLogger(__name__)

MAX_CHUNK_SIZE: Final[int] = 500


@dataclass(frozen=True, slots=True)
class ChunkFailure:
    """Rows ``[start, stop)`` of the sorted input that were not written."""

    start: int
    stop: int
    error: str


@dataclass(slots=True)
class ApplyResult:
    deleted: int = 0
    inserted: int = 0
    failures: list[ChunkFailure] = field(default_factory=list["ChunkFailure"])

    @property
    def complete(self) -> bool:
        return not self.failures


def replace_id_mappings(
    *,
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
    source: str,
    entity_type: EntityType,
    mappings: Iterable[IdMapping],
    chunk_size: int = MAX_CHUNK_SIZE,
) -> ApplyResult:
    """Delete every mapping of ``(source, entity_type)`` and insert ``mappings``.

    The delete commits on its own; each chunk of at most ``chunk_size`` rows is
    then inserted in its own transaction. A failing chunk is rolled back and
    reported, later chunks still run, and a re-run with the same input
    converges to the same table contents.
    """

    if not 0 < chunk_size <= MAX_CHUNK_SIZE:
        raise ValueError(f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}, got {chunk_size}")
    rows = _validated_rows(source, entity_type, mappings)

    result = ApplyResult()
    with unit_of_work_factory() as uow:
        result.deleted = uow.repositories.id_mappings.delete_for(source, entity_type)
        uow.commit()
    log.info("Deleted %s %s mappings for source %s", result.deleted, entity_type, source)

    for start in range(0, len(rows), chunk_size):
        chunk = rows[start : start + chunk_size]
        stop = start + len(chunk)
        try:
            with unit_of_work_factory() as uow:
                uow.repositories.id_mappings.add_all(chunk)
                uow.commit()
        except PersistenceError as exc:
            log.exception("Failed to insert mapping rows %s-%s for source %s", start, stop, source)
            result.failures.append(ChunkFailure(start=start, stop=stop, error=str(exc)))
            continue
        result.inserted += len(chunk)

    log.info(
        "Inserted %s/%s %s mappings for source %s (%s failed chunks)",
        result.inserted,
        len(rows),
        entity_type,
        source,
        len(result.failures),
    )
    return result


def _validated_rows(
    source: str,
    entity_type: EntityType,
    mappings: Iterable[IdMapping],
) -> list[IdMapping]:
    rows = sorted(mappings, key=lambda mapping: mapping.source_id)
    seen: set[int] = set()
    for mapping in rows:
        if mapping.source != source or mapping.entity_type != entity_type:
            raise ValueError(
                f"Mapping {mapping.key} does not belong to ({source}, {entity_type})"
            )
        if mapping.source_id in seen:
            raise ValueError(f"Duplicate source id {mapping.source_id} for source {source}")
        seen.add(mapping.source_id)
    return rows
