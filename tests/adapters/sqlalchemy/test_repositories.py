from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from streetmatch.adapters.sqlalchemy.repositories import SqlAlchemyIdMappingRepository
from streetmatch.domain.model import EntityType, IdMapping, MatchMethod
from streetmatch.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _mapping(
    source_id: int,
    local_id: int,
    *,
    source: str = "olx",
    entity_type: EntityType = EntityType.STREET,
    confidence: float = 1.0,
    match_method: MatchMethod | None = MatchMethod.EXACT_NAME,
) -> IdMapping:
    return IdMapping(
        source=source,
        entity_type=entity_type,
        source_id=source_id,
        local_id=local_id,
        confidence=confidence,
        match_method=match_method,
    )


@pytest.fixture
def repository(sqlite_session: Session) -> SqlAlchemyIdMappingRepository:
    return SqlAlchemyIdMappingRepository(sqlite_session)


def test_add_all_and_list_for(
    repository: SqlAlchemyIdMappingRepository, sqlite_session: Session
) -> None:
    repository.add_all(
        [
            _mapping(7, 70, confidence=0.85, match_method=MatchMethod.FUZZY_CITY),
            _mapping(3, 30, match_method=None),
            _mapping(3, 31, entity_type=EntityType.GEO),
        ]
    )
    sqlite_session.commit()

    rows = repository.list_for("olx", EntityType.STREET)

    assert [(row.source_id, row.local_id) for row in rows] == [(3, 30), (7, 70)]
    assert rows[0].match_method is None
    assert rows[1].match_method is MatchMethod.FUZZY_CITY
    assert rows[1].confidence == pytest.approx(0.85)
    assert rows[1].entity_type is EntityType.STREET
    assert rows[1].id is not None
    assert rows[1].created_at is not None


def test_local_ids_are_scoped_by_source_and_entity_type(
    repository: SqlAlchemyIdMappingRepository, sqlite_session: Session
) -> None:
    repository.add_all(
        [
            _mapping(1, 10),
            _mapping(2, 10),
            _mapping(1, 99, source="lun"),
            _mapping(1, 55, entity_type=EntityType.GEO),
        ]
    )
    sqlite_session.commit()

    assert repository.local_ids("olx", EntityType.STREET) == {1: 10, 2: 10}
    assert repository.local_ids("lun", EntityType.STREET) == {1: 99}
    assert repository.local_ids("olx", EntityType.GEO) == {1: 55}
    assert repository.local_ids("olx", EntityType.COMPLEX) == {}


def test_delete_for_counts_removed_rows(
    repository: SqlAlchemyIdMappingRepository, sqlite_session: Session
) -> None:
    repository.add_all([_mapping(1, 10), _mapping(2, 20), _mapping(1, 10, source="lun")])
    sqlite_session.commit()

    deleted = repository.delete_for("olx", EntityType.STREET)
    sqlite_session.commit()

    assert deleted == 2
    assert repository.local_ids("olx", EntityType.STREET) == {}
    assert repository.local_ids("lun", EntityType.STREET) == {1: 10}


def test_duplicate_key_raises_persistence_error(
    repository: SqlAlchemyIdMappingRepository, sqlite_session: Session
) -> None:
    repository.add_all([_mapping(1, 10)])
    sqlite_session.commit()

    with pytest.raises(PersistenceError):
        repository.add_all([_mapping(1, 11)])
    sqlite_session.rollback()

    assert repository.local_ids("olx", EntityType.STREET) == {1: 10}


def test_add_all_ignores_empty_input(repository: SqlAlchemyIdMappingRepository) -> None:
    repository.add_all([])

    assert repository.list_for("olx", EntityType.STREET) == []
