"""Levenshtein-based similarity between normalized names."""

from __future__ import annotations

from typing import Final

from rapidfuzz.distance import Levenshtein

CONTAINMENT_SIMILARITY: Final[float] = 0.9


def edit_similarity(a: str | None, b: str | None) -> float:
    """Return ``1 - distance / max(len(a), len(b))`` with unit edit costs."""

    left = a or ""
    right = b or ""
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    longest = max(len(left), len(right))
    distance = Levenshtein.distance(left, right)
    return (longest - distance) / longest


def similarity(a: str | None, b: str | None) -> float:
    """Edit similarity with a containment short-circuit.

    A non-empty string contained in the other scores
    :data:`CONTAINMENT_SIMILARITY` whatever the edit distance.
    """

    left = a or ""
    right = b or ""
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    if left in right or right in left:
        return CONTAINMENT_SIMILARITY
    return edit_similarity(left, right)


def within_length_tolerance(a: str, b: str, max_difference: float) -> bool:
    """Return whether the length gap is at most ``max_difference`` of the longer string."""

    longest = max(len(a), len(b))
    return abs(len(a) - len(b)) <= max_difference * longest
