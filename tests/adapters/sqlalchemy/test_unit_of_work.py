from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from streetmatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from streetmatch.domain.model import EntityType, IdMapping, MatchMethod

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def _mapping(source_id: int, local_id: int) -> IdMapping:
    return IdMapping(
        source="olx",
        entity_type=EntityType.STREET,
        source_id=source_id,
        local_id=local_id,
        confidence=0.95,
        match_method=MatchMethod.RENAMED,
    )


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()

    with pytest.raises(StartupError):
        SqlAlchemyMappingUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_unit_of_work_persists_committed_mappings(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyMappingUnitOfWork() as uow:
        uow.repositories.id_mappings.add_all([_mapping(1, 10), _mapping(2, 20)])
        uow.commit()

    with SqlAlchemyMappingUnitOfWork() as uow:
        assert uow.repositories.id_mappings.local_ids("olx", EntityType.STREET) == {1: 10, 2: 20}


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError, match="boom"), SqlAlchemyMappingUnitOfWork() as uow:
        uow.repositories.id_mappings.add_all([_mapping(1, 10)])
        raise RuntimeError("boom")

    with SqlAlchemyMappingUnitOfWork() as uow:
        assert uow.repositories.id_mappings.local_ids("olx", EntityType.STREET) == {}


def test_repositories_require_an_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyMappingUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories

    with uow:
        assert uow.repositories.id_mappings is not None

    with pytest.raises(StartupError):
        _ = uow.session
