"""Session lifecycle for the id-mapping store.

``startup()`` binds one engine for the process and migrates it to the latest
schema. Each :class:`SqlAlchemyMappingUnitOfWork` then owns a single session
for the duration of its ``with`` block.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from streetmatch.adapters.sqlalchemy.mappings import start_mappers
from streetmatch.adapters.sqlalchemy.migrations import upgrade_head
from streetmatch.adapters.sqlalchemy.repositories import SqlAlchemyIdMappingRepository
from streetmatch.config import get_database_config
from streetmatch.domain.ports.persistence import PersistenceError
from streetmatch.domain.ports.unit_of_work import MappingRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the mapping store is used before ``startup()`` or started twice."""


@dataclass(slots=True)
class _MappingStore:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self.sessions = (
            None if engine is None else sessionmaker(bind=engine, expire_on_commit=False)
        )

    def session_factory(self) -> sessionmaker[Session]:
        if self.sessions is None:
            raise StartupError(
                "Mapping store not started. Call streetmatch.adapters.sqlalchemy.startup() "
                "before opening a unit of work."
            )
        return self.sessions


_STORE = _MappingStore()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the mapping store to ``engine`` (or a new one) and migrate it to head."""

    if _STORE.engine is not None and not force:
        raise StartupError("Mapping store already started. Pass force=True to rebind it.")

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    start_mappers()
    upgrade_head(engine=resolved_engine)
    _STORE.bind(resolved_engine)
    log.debug("Mapping store bound to %s", resolved_engine.url)


def configured_engine() -> Engine | None:
    return _STORE.engine


def is_started() -> bool:
    return _STORE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it."""

    if _STORE.engine is not None:
        _STORE.engine.dispose()
    _STORE.bind(None)


class SqlAlchemyMappingUnitOfWork:
    """One session over the mapping store; the block's changes roll back when it raises."""

    def __init__(self) -> None:
        self._sessions = _STORE.session_factory()
        self._session: Session | None = None
        self._repositories: MappingRepositories | None = None

    def __enter__(self) -> SqlAlchemyMappingUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = MappingRepositories(
            id_mappings=SqlAlchemyIdMappingRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> MappingRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError("Commit of id mappings failed") from exc

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from streetmatch.domain.ports.unit_of_work import MappingUnitOfWork

    _uow_check: MappingUnitOfWork = SqlAlchemyMappingUnitOfWork()
