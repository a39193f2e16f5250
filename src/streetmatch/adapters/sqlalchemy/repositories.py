"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from streetmatch.adapters.sqlalchemy.mappings import source_id_mapping_table
from streetmatch.domain.model import IdMapping
from streetmatch.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session

    from streetmatch.domain.model import EntityType


class SqlAlchemyIdMappingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def delete_for(self, source: str, entity_type: EntityType) -> int:
        table = source_id_mapping_table
        stmt = (
            delete(table)
            .where(table.c.source == source)
            .where(table.c.entity_type == entity_type)
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete {entity_type} mappings for {source}") from exc
        return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]

    def add_all(self, mappings: Sequence[IdMapping]) -> None:
        if not mappings:
            return
        try:
            self.session.execute(
                insert(source_id_mapping_table),
                [mapping.as_row() for mapping in mappings],
            )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to insert {len(mappings)} id mappings") from exc

    def list_for(self, source: str, entity_type: EntityType) -> list[IdMapping]:
        table = source_id_mapping_table
        stmt = (
            select(IdMapping)
            .where(table.c.source == source)
            .where(table.c.entity_type == entity_type)
            .order_by(table.c.source_id)
        )
        return list(self.session.execute(stmt).scalars())

    def local_ids(self, source: str, entity_type: EntityType) -> dict[int, int]:
        table = source_id_mapping_table
        stmt = (
            select(table.c.source_id, table.c.local_id)
            .where(table.c.source == source)
            .where(table.c.entity_type == entity_type)
            .order_by(table.c.source_id)
        )
        return {source_id: local_id for source_id, local_id in self.session.execute(stmt)}
