"""Transaction boundary around the id-mapping repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from streetmatch.domain.ports.persistence import IdMappingRepository


@dataclass(slots=True)
class MappingRepositories:
    id_mappings: IdMappingRepository


@runtime_checkable
class MappingUnitOfWork(Protocol):
    """Changes made through ``repositories`` persist only after ``commit()``."""

    @property
    def repositories(self) -> MappingRepositories: ...

    def __enter__(self) -> MappingUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
