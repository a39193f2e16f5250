"""Historical street renames (old official name -> current official name)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .normalize import SurnamePolicy, name_variants

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class RenameEntry:
    old_variants: frozenset[str]
    new_variants: frozenset[str]

    @classmethod
    def from_names(cls, old: str, new: str) -> RenameEntry:
        # full official names only: no bare-surname variants
        return cls(
            old_variants=name_variants(old, surnames=SurnamePolicy.NEVER),
            new_variants=name_variants(new, surnames=SurnamePolicy.NEVER),
        )


class RenameTable:
    """Exact-match map from a normalized old name to normalized new-name variants."""

    def __init__(self, entries: Iterable[RenameEntry] = ()) -> None:
        buckets: dict[str, dict[str, None]] = {}
        for entry in entries:
            for old in sorted(entry.old_variants):
                bucket = buckets.setdefault(old, {})
                for new in sorted(entry.new_variants):
                    if new != old:
                        bucket.setdefault(new, None)
        self._lookup: dict[str, tuple[str, ...]] = {
            old: tuple(bucket) for old, bucket in buckets.items() if bucket
        }

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> RenameTable:
        return cls(RenameEntry.from_names(old, new) for old, new in pairs)

    def lookup(self, normalized_old_name: str) -> list[str]:
        return list(self._lookup.get(normalized_old_name, ()))

    def __contains__(self, normalized_old_name: object) -> bool:
        return normalized_old_name in self._lookup

    def __len__(self) -> int:
        return len(self._lookup)
