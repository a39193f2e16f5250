"""Alembic helpers for the id-mapping schema."""

from __future__ import annotations

import tomllib
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from streetmatch.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent
_PATH_OPTIONS: Final[frozenset[str]] = frozenset({"script_location", "prepend_sys_path"})


def _pyproject_options() -> dict[str, str]:
    """``[tool.alembic]`` values from a source checkout; empty for installed copies."""

    if not PYPROJECT_PATH.is_file():
        return {}
    with PYPROJECT_PATH.open("rb") as pyproject_file:
        document = tomllib.load(pyproject_file)
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def build_config() -> Config:
    """Alembic config pointing at the bundled migration scripts."""

    options = _pyproject_options()
    config = Config(toml_file=str(PYPROJECT_PATH)) if options else Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    for key, value in options.items():
        if key not in _PATH_OPTIONS:
            config.set_main_option(key, value)
    return config


def head_revision() -> str | None:
    return ScriptDirectory.from_config(build_config()).get_current_head()


def current_revision(engine: Engine) -> str | None:
    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""

    config = build_config()
    if engine is not None:
        current, head = current_revision(engine), head_revision()
        if current == head:
            log.debug("Schema already at revision %s", head)
            return
        log.info("Upgrading schema from %s to %s", current or "empty", head)
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return
    config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
    command.upgrade(config, "head")
