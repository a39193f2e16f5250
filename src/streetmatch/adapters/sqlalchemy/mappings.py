"""Imperative mapping of :class:`IdMapping` onto ``source_id_mappings``."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import orm

from streetmatch.domain.model import EntityType, IdMapping, MatchMethod

if TYPE_CHECKING:
    from enum import StrEnum

    from sqlalchemy.engine import Dialect, Engine

log = logging.getLogger(__name__)


class AwareDateTime(sa.TypeDecorator[datetime]):
    """Stores UTC; SQLite hands back naive values, which are read as UTC."""

    impl = sa.DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=UTC)


def _value_enum(enum_cls: type[StrEnum], length: int) -> sa.Enum:
    # Persist the lowercase values, not the member names.
    return sa.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "pk": "pk_%(table_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
}

source_id_mapping_table = sa.Table(
    "source_id_mappings",
    mapper_registry.metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("source", sa.String(30), nullable=False),
    sa.Column("entity_type", _value_enum(EntityType, 20), nullable=False),
    sa.Column("source_id", sa.Integer, nullable=False),
    sa.Column("local_id", sa.Integer, nullable=False),
    sa.Column(
        "confidence", sa.Numeric(3, 2, asdecimal=False), nullable=False, server_default="1.0"
    ),
    sa.Column("match_method", _value_enum(MatchMethod, 30), nullable=True),
    sa.Column("created_at", AwareDateTime(), nullable=True, server_default=sa.func.now()),
    sa.UniqueConstraint("source", "entity_type", "source_id"),
    sa.Index("ix_source_id_mappings_local", "source", "entity_type", "local_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Map :class:`IdMapping` once per process; later calls return the same registry."""

    log.debug("Mapping IdMapping onto %s", source_id_mapping_table.name)
    mapper_registry.map_imperatively(IdMapping, source_id_mapping_table)
    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create the schema straight from metadata, bypassing migrations."""

    mapper_registry.metadata.create_all(engine)
