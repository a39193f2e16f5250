from __future__ import annotations

import pytest

from streetmatch.domain.id_mappings import (
    MAX_CHUNK_SIZE,
    ApplyResult,
    ChunkFailure,
    replace_id_mappings,
)
from streetmatch.domain.model import EntityType, IdMapping, MatchMethod
from tests.helpers.catalog import FakeIdMappingRepository, FakeMappingUnitOfWork


class RecordingFactory:
    def __init__(self, repository: FakeIdMappingRepository) -> None:
        self.repository = repository
        self.created: list[FakeMappingUnitOfWork] = []

    def __call__(self) -> FakeMappingUnitOfWork:
        uow = FakeMappingUnitOfWork(self.repository)
        self.created.append(uow)
        return uow


def _mapping(
    source_id: int,
    local_id: int = 1,
    *,
    source: str = "olx",
    entity_type: EntityType = EntityType.STREET,
) -> IdMapping:
    return IdMapping(
        source=source,
        entity_type=entity_type,
        source_id=source_id,
        local_id=local_id,
        confidence=0.9,
        match_method=MatchMethod.EXACT_NAME,
    )


def _replace(factory: RecordingFactory, mappings: list[IdMapping], **kwargs: int) -> ApplyResult:
    return replace_id_mappings(
        unit_of_work_factory=factory,
        source="olx",
        entity_type=EntityType.STREET,
        mappings=mappings,
        **kwargs,
    )


def test_replaces_only_the_source_and_entity_type() -> None:
    repository = FakeIdMappingRepository(
        [
            _mapping(1, 10),
            _mapping(2, 20),
            _mapping(1, 30, entity_type=EntityType.GEO),
            _mapping(1, 40, source="lun"),
        ]
    )
    factory = RecordingFactory(repository)

    result = _replace(factory, [_mapping(5, 50), _mapping(3, 30)])

    assert (result.deleted, result.inserted, result.complete) == (2, 2, True)
    assert repository.local_ids("olx", EntityType.STREET) == {3: 30, 5: 50}
    assert repository.local_ids("olx", EntityType.GEO) == {1: 30}
    assert repository.local_ids("lun", EntityType.STREET) == {1: 40}
    assert all(uow.committed for uow in factory.created)


def test_inserts_in_chunks_sorted_by_source_id() -> None:
    repository = FakeIdMappingRepository()
    factory = RecordingFactory(repository)

    result = _replace(factory, [_mapping(source_id) for source_id in (5, 4, 3, 2, 1)], chunk_size=2)

    assert result.inserted == 5
    assert repository.add_calls == [2, 2, 1]
    assert len(factory.created) == 4
    assert [row.source_id for row in repository.list_for("olx", EntityType.STREET)] == [
        1,
        2,
        3,
        4,
        5,
    ]


def test_failed_chunk_is_reported_and_later_chunks_still_run() -> None:
    repository = FakeIdMappingRepository(fail_source_ids=[3])
    factory = RecordingFactory(repository)
    mappings = [_mapping(source_id) for source_id in range(1, 6)]

    result = _replace(factory, mappings, chunk_size=2)

    assert result.inserted == 3
    assert result.failures == [ChunkFailure(start=2, stop=4, error="simulated insert failure")]
    assert not result.complete
    assert sorted(repository.local_ids("olx", EntityType.STREET)) == [1, 2, 5]
    assert factory.created[2].rollback_called
    assert not factory.created[2].committed


def test_rerun_converges_after_failure() -> None:
    repository = FakeIdMappingRepository(fail_source_ids=[3])
    mappings = [_mapping(source_id, source_id * 10) for source_id in range(1, 6)]
    _replace(RecordingFactory(repository), mappings, chunk_size=2)
    repository.fail_source_ids = frozenset()

    result = _replace(RecordingFactory(repository), mappings, chunk_size=2)

    assert (result.deleted, result.inserted, result.complete) == (3, 5, True)
    assert repository.local_ids("olx", EntityType.STREET) == {1: 10, 2: 20, 3: 30, 4: 40, 5: 50}


def test_empty_input_only_deletes() -> None:
    repository = FakeIdMappingRepository([_mapping(1)])

    result = _replace(RecordingFactory(repository), [])

    assert (result.deleted, result.inserted) == (1, 0)
    assert repository.add_calls == []


@pytest.mark.parametrize("chunk_size", [0, -1, MAX_CHUNK_SIZE + 1])
def test_rejects_out_of_range_chunk_size(chunk_size: int) -> None:
    factory = RecordingFactory(FakeIdMappingRepository())

    with pytest.raises(ValueError, match="chunk_size"):
        _replace(factory, [_mapping(1)], chunk_size=chunk_size)

    assert factory.created == []


@pytest.mark.parametrize(
    "mapping",
    [
        _mapping(1, source="lun"),
        _mapping(1, entity_type=EntityType.COMPLEX),
    ],
)
def test_rejects_rows_of_another_scope(mapping: IdMapping) -> None:
    factory = RecordingFactory(FakeIdMappingRepository([_mapping(7)]))

    with pytest.raises(ValueError, match="does not belong"):
        _replace(factory, [mapping])

    assert factory.repository.local_ids("olx", EntityType.STREET) == {7: 1}


def test_rejects_duplicate_source_ids() -> None:
    factory = RecordingFactory(FakeIdMappingRepository())

    with pytest.raises(ValueError, match="Duplicate source id 4"):
        _replace(factory, [_mapping(4, 1), _mapping(4, 2)])

    assert factory.created == []
