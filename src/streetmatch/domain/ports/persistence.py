"""Ports for persisting id mappings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from streetmatch.domain.model import EntityType, IdMapping


class PersistenceError(RuntimeError):
    """Raised by persistence adapters when a write or commit fails."""


@runtime_checkable
class IdMappingRepository(Protocol):
    """Persistence contract for external-id mappings."""

    def delete_for(self, source: str, entity_type: EntityType) -> int: ...

    def add_all(self, mappings: Sequence[IdMapping]) -> None: ...

    def list_for(self, source: str, entity_type: EntityType) -> list[IdMapping]: ...

    def local_ids(self, source: str, entity_type: EntityType) -> dict[int, int]: ...
