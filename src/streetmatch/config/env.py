"""Typed readers for environment variables."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable


def _read(name: str) -> str | None:
    # Blank counts as unset.
    value = (os.getenv(name) or "").strip()
    return value or None


def _parsed[T](name: str, default: T, parse: Callable[[str], T], kind: str) -> T:
    raw = _read(name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be {kind}, got {raw!r}") from exc


def env_int(name: str, default: int) -> int:
    return _parsed(name, default, int, "an integer")


def env_float(name: str, default: float) -> float:
    return _parsed(name, default, float, "a number")


def env_list(name: str) -> tuple[str, ...]:
    """Comma-separated items, stripped, empties dropped."""

    return tuple(item.strip() for item in (_read(name) or "").split(",") if item.strip())
