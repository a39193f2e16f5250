"""Persisted external-id to canonical-id mapping rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import EntityType, MatchMethod


@dataclass(eq=False, kw_only=True)
class IdMapping:
    """One external catalog id resolved to a canonical id.

    Unique per ``(source, entity_type, source_id)``; several source ids may
    point at the same ``local_id``.
    """

    source: str
    entity_type: EntityType
    source_id: int
    local_id: int
    confidence: float = 1.0
    match_method: MatchMethod | None = None
    id: int | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")

    @property
    def key(self) -> tuple[str, EntityType, int]:
        return (self.source, self.entity_type, self.source_id)

    def as_row(self) -> dict[str, object]:
        return {
            "source": self.source,
            "entity_type": self.entity_type,
            "source_id": self.source_id,
            "local_id": self.local_id,
            "confidence": self.confidence,
            "match_method": self.match_method,
        }
