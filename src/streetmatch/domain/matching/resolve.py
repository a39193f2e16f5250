"""Real-time street resolution from coordinates plus optional listing text."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from streetmatch.domain.model import MatchMethod

from .cache import StreetNameCache
from .extract import extract_street
from .fuzzy import similarity
from .normalize import cross_normalize, soft_normalize, text_forms

if TYPE_CHECKING:
    from collections.abc import Sequence

    from streetmatch.domain.ports.spatial import NearbyStreet, StreetLocator

    from .cache import ResolutionCache

log = getLogger(__name__)

DISTANCE_BUCKETS: Final[tuple[tuple[float, float], ...]] = (
    (50.0, 0.9),
    (100.0, 0.7),
    (200.0, 0.5),
    (350.0, 0.3),
)
FAR_CONFIDENCE: Final[float] = 0.1


def distance_confidence(distance_meters: float) -> float:
    """Bucketed confidence for a coordinate-only match."""

    for limit, confidence in DISTANCE_BUCKETS:
        if distance_meters <= limit:
            return confidence
    return FAR_CONFIDENCE


@dataclass(frozen=True, slots=True, kw_only=True)
class StreetResolution:
    street_id: int | None
    method: MatchMethod | None
    confidence: float = 0.0
    distance_meters: float | None = None

    @property
    def matched(self) -> bool:
        return self.street_id is not None

    @classmethod
    def no_match(cls) -> StreetResolution:
        return cls(street_id=None, method=None)


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolverSettings:
    radius_meters: float = 500.0
    limit: int = 5
    text_acceptance: float = 0.7
    distance_bonus: float = 0.1
    substring_min_length: int = 4
    name_length_bonus_cap: float = 0.2
    name_length_bonus_divisor: float = 50.0


class StreetResolver:
    """Fuses nearby canonical streets with text evidence.

    Order of evidence: a street name parsed from the text (``text_parsed``),
    a canonical name found verbatim in the text (``text_found``), then the
    nearest street (``nearest``).
    """

    def __init__(
        self,
        spatial: StreetLocator,
        *,
        names: StreetNameCache | None = None,
        cache: ResolutionCache[StreetResolution] | None = None,
        settings: ResolverSettings | None = None,
    ) -> None:
        self.spatial = spatial
        self.names = names or StreetNameCache()
        self.cache = cache
        self.settings = settings or ResolverSettings()

    def resolve(
        self,
        lng: float,
        lat: float,
        text: str | None = None,
        geo_id_hint: int | None = None,
    ) -> StreetResolution:
        normalized_text = text.strip() if text and text.strip() else None
        if self.cache is None:
            return self._resolve(lng, lat, normalized_text, geo_id_hint)

        key = self.cache.key(lng, lat, (geo_id_hint, normalized_text))
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        resolution = self._resolve(lng, lat, normalized_text, geo_id_hint)
        self.cache.put(key, resolution)
        return resolution

    def nearby(self, lng: float, lat: float, geo_id_hint: int | None = None) -> list[NearbyStreet]:
        """Nearest candidates, scoped to the hint first and unscoped as a fallback."""

        settings = self.settings
        candidates: list[NearbyStreet] = []
        if geo_id_hint is not None:
            candidates = self.spatial.find_nearest_streets(
                lng,
                lat,
                geo_id=geo_id_hint,
                limit=settings.limit,
                max_distance_meters=settings.radius_meters,
            )
        if not candidates:
            candidates = self.spatial.find_nearest_streets(
                lng,
                lat,
                limit=settings.limit,
                max_distance_meters=settings.radius_meters,
            )
        return sorted(
            candidates, key=lambda candidate: (candidate.distance_meters, candidate.street.id)
        )

    def _resolve(
        self,
        lng: float,
        lat: float,
        text: str | None,
        geo_id_hint: int | None,
    ) -> StreetResolution:
        candidates = self.nearby(lng, lat, geo_id_hint)
        if not candidates:
            log.debug("No streets within %sm of (%s, %s)", self.settings.radius_meters, lng, lat)
            return StreetResolution.no_match()

        if text is not None:
            parsed = self._match_parsed_name(text, candidates)
            if parsed is not None:
                return parsed
            found = self._match_name_in_text(text, candidates)
            if found is not None:
                return found

        nearest = candidates[0]
        return StreetResolution(
            street_id=nearest.street.id,
            method=MatchMethod.NEAREST,
            confidence=distance_confidence(nearest.distance_meters),
            distance_meters=nearest.distance_meters,
        )

    def _match_parsed_name(
        self,
        text: str,
        candidates: Sequence[NearbyStreet],
    ) -> StreetResolution | None:
        parsed = extract_street(text)
        if parsed is None:
            return None
        forms = (soft_normalize(parsed.name), cross_normalize(parsed.name))
        queries = sorted({form for form in forms if form})
        if not queries:
            return None

        settings = self.settings
        best: NearbyStreet | None = None
        best_score = 0.0
        for candidate in candidates:
            closeness = 1.0 - candidate.distance_meters / settings.radius_meters
            bonus = max(0.0, settings.distance_bonus * closeness)
            for variant in self.names.variants(candidate.street):
                for query in queries:
                    score = similarity(query, variant) + bonus
                    if score > best_score:
                        best, best_score = candidate, score

        if best is None or best_score <= settings.text_acceptance:
            log.debug("Parsed street %r not accepted (best score %.2f)", parsed.name, best_score)
            return None
        return StreetResolution(
            street_id=best.street.id,
            method=MatchMethod.TEXT_PARSED,
            confidence=round(min(1.0, best_score), 2),
            distance_meters=best.distance_meters,
        )

    def _match_name_in_text(
        self,
        text: str,
        candidates: Sequence[NearbyStreet],
    ) -> StreetResolution | None:
        soft_text, cross_text = text_forms(text)
        if not soft_text:
            return None

        settings = self.settings
        for candidate in candidates:
            variants = sorted(
                (
                    variant
                    for variant in self.names.variants(candidate.street)
                    if len(variant) >= settings.substring_min_length
                ),
                key=lambda variant: (-len(variant), variant),
            )
            for variant in variants:
                if variant in soft_text or variant in cross_text:
                    bonus = min(
                        settings.name_length_bonus_cap,
                        len(variant) / settings.name_length_bonus_divisor,
                    )
                    confidence = distance_confidence(candidate.distance_meters) + bonus
                    return StreetResolution(
                        street_id=candidate.street.id,
                        method=MatchMethod.TEXT_FOUND,
                        confidence=round(min(1.0, confidence), 2),
                        distance_meters=candidate.distance_meters,
                    )
        return None
