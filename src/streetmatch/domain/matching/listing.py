"""Per-listing resolution: locality, development anchor and street."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from streetmatch.domain.model import LISTING_GEO_TYPES, MatchMethod

from .complexes import DEFAULT_MIN_SCORE, DEFAULT_STRONG_SCORE
from .extract import listing_text
from .resolve import StreetResolution
from .trust import SourceTrustPolicy

if TYPE_CHECKING:
    from streetmatch.domain.ports.spatial import SpatialIndex

    from .complexes import ComplexMatch, ComplexMatcher
    from .resolve import StreetResolver

log = getLogger(__name__)

GEO_FALLBACK_RADIUS_METERS: Final[float] = 10_000.0


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingLocation:
    source: str | None = None
    lng: float | None = None
    lat: float | None = None
    title: str | None = None
    description: str | None = None
    street_name: str | None = None
    geo_id: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingResolution:
    geo_id: int | None = None
    complex: ComplexMatch | None = None
    street: StreetResolution = StreetResolution.no_match()

    @property
    def complex_id(self) -> int | None:
        return self.complex.complex.id if self.complex else None


class ListingResolver:
    """Resolves where a single listing is.

    The development match runs first; a development with a known street
    anchors the street directly. Otherwise a structured street name is looked
    up exactly, and the fused :class:`StreetResolver` runs last.
    """

    def __init__(
        self,
        spatial: SpatialIndex,
        streets: StreetResolver,
        *,
        complexes: ComplexMatcher | None = None,
        trust: SourceTrustPolicy | None = None,
        geo_fallback_radius_meters: float = GEO_FALLBACK_RADIUS_METERS,
        complex_min_score: float = DEFAULT_MIN_SCORE,
        complex_strong_score: float = DEFAULT_STRONG_SCORE,
    ) -> None:
        self.spatial = spatial
        self.streets = streets
        self.complexes = complexes
        self.trust = trust or SourceTrustPolicy()
        self.geo_fallback_radius_meters = geo_fallback_radius_meters
        self.complex_min_score = complex_min_score
        self.complex_strong_score = complex_strong_score

    def resolve_geo(self, lng: float, lat: float) -> int | None:
        geo = self.spatial.find_geo_containing_point(lng, lat, LISTING_GEO_TYPES)
        if geo is None:
            geo = self.spatial.find_nearest_geo(
                lng, lat, LISTING_GEO_TYPES, self.geo_fallback_radius_meters
            )
        return geo.id if geo else None

    def resolve(self, listing: ListingLocation) -> ListingResolution:
        geo_id = listing.geo_id
        if geo_id is None and listing.lng is not None and listing.lat is not None:
            geo_id = self.resolve_geo(listing.lng, listing.lat)

        complex_match = None
        if self.complexes is not None:
            complex_match = self.complexes.find_complex(
                listing.title,
                listing.description,
                lng=listing.lng,
                lat=listing.lat,
                source=listing.source,
                min_score=self.complex_min_score,
                strong_score=self.complex_strong_score,
            )
        if complex_match is not None and complex_match.complex.street_id is not None:
            log.debug(
                "Street anchored by development %s (%s)",
                complex_match.complex.id,
                complex_match.method,
            )
            anchored = StreetResolution(
                street_id=complex_match.complex.street_id,
                method=complex_match.method,
                confidence=round(complex_match.score, 2),
                distance_meters=complex_match.distance_meters,
            )
            return ListingResolution(geo_id=geo_id, complex=complex_match, street=anchored)

        street = self._resolve_street(listing, geo_id)
        if street.method is MatchMethod.NEAREST and self.trust.trusts_text_over_coordinates(
            listing.source
        ):
            log.debug("Dropping coordinate-only street for text-first source %s", listing.source)
            street = StreetResolution.no_match()
        return ListingResolution(geo_id=geo_id, complex=complex_match, street=street)

    def _resolve_street(self, listing: ListingLocation, geo_id: int | None) -> StreetResolution:
        if listing.street_name and listing.street_name.strip() and geo_id is not None:
            exact = self.spatial.find_street_by_exact_name(geo_id, listing.street_name.strip())
            if exact is not None:
                return StreetResolution(
                    street_id=exact.id, method=MatchMethod.TEXT_PARSED, confidence=1.0
                )
        if listing.lng is None or listing.lat is None:
            return StreetResolution.no_match()
        text = listing_text(listing.street_name, listing.title, listing.description)
        return self.streets.resolve(listing.lng, listing.lat, text or None, geo_id)
