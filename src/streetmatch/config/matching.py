"""Matching and apply-step tunables read from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_float, env_int, env_list
from .errors import ConfigurationError

DEFAULT_SEARCH_RADIUS_METERS: Final[float] = 500.0
DEFAULT_NEAREST_LIMIT: Final[int] = 5
MAX_APPLY_CHUNK_SIZE: Final[int] = 500
DEFAULT_COMPLEX_MIN_SCORE: Final[float] = 0.5
DEFAULT_COMPLEX_STRONG_SCORE: Final[float] = 0.6


@dataclass(frozen=True, slots=True)
class MatchingConfig:
    search_radius_meters: float = DEFAULT_SEARCH_RADIUS_METERS
    nearest_limit: int = DEFAULT_NEAREST_LIMIT
    apply_chunk_size: int = MAX_APPLY_CHUNK_SIZE
    complex_min_score: float = DEFAULT_COMPLEX_MIN_SCORE
    complex_strong_score: float = DEFAULT_COMPLEX_STRONG_SCORE
    text_first_sources: tuple[str, ...] = ()


def get_matching_config() -> MatchingConfig:
    radius = env_float("STREETMATCH_SEARCH_RADIUS_M", DEFAULT_SEARCH_RADIUS_METERS)
    if radius <= 0:
        raise ConfigurationError(f"STREETMATCH_SEARCH_RADIUS_M must be positive, got {radius}")
    limit = env_int("STREETMATCH_NEAREST_LIMIT", DEFAULT_NEAREST_LIMIT)
    if limit <= 0:
        raise ConfigurationError(f"STREETMATCH_NEAREST_LIMIT must be positive, got {limit}")
    chunk_size = env_int("STREETMATCH_APPLY_CHUNK_SIZE", MAX_APPLY_CHUNK_SIZE)
    if not 0 < chunk_size <= MAX_APPLY_CHUNK_SIZE:
        raise ConfigurationError(
            f"STREETMATCH_APPLY_CHUNK_SIZE must be between 1 and {MAX_APPLY_CHUNK_SIZE}, "
            f"got {chunk_size}"
        )
    min_score = env_float("STREETMATCH_COMPLEX_MIN_SCORE", DEFAULT_COMPLEX_MIN_SCORE)
    strong_score = env_float("STREETMATCH_COMPLEX_STRONG_SCORE", DEFAULT_COMPLEX_STRONG_SCORE)
    for name, score in (
        ("STREETMATCH_COMPLEX_MIN_SCORE", min_score),
        ("STREETMATCH_COMPLEX_STRONG_SCORE", strong_score),
    ):
        if not 0.0 <= score <= 1.0:
            raise ConfigurationError(f"{name} must be within [0, 1], got {score}")
    return MatchingConfig(
        search_radius_meters=radius,
        nearest_limit=limit,
        apply_chunk_size=chunk_size,
        complex_min_score=min_score,
        complex_strong_score=strong_score,
        text_first_sources=env_list("STREETMATCH_TEXT_FIRST_SOURCES"),
    )
