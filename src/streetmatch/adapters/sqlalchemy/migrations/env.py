"""Alembic environment for the streetmatch id-mapping schema.

``upgrade_head(engine=...)`` hands over an open connection through
``config.attributes["connection"]``; otherwise a throwaway engine is built
from ``sqlalchemy.url`` or the configured database URI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from streetmatch.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from streetmatch.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

start_mappers()


def _url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection | None) -> None:
    # Batch mode lets SQLite rebuild tables for ALTER statements.
    context.configure(
        connection=connection,
        url=None if connection is not None else _url(),
        literal_binds=connection is None,
        target_metadata=mapper_registry.metadata,
        render_as_batch=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run() -> None:
    if context.is_offline_mode():
        _migrate(None)
        return

    shared = context.config.attributes.get("connection")
    if shared is not None:
        _migrate(shared)
        return

    engine = create_engine(_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


run()
