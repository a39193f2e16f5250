"""Address normalization and street/development matching.

Layers, leaves first:
1) ``normalize``: raw names to folded variant sets
2) ``fuzzy``: Levenshtein similarity with a containment short-circuit
3) ``renames``: historical street names to current ones
4) ``reconcile``: tiered offline matching of whole external catalogs
5) ``extract`` + ``resolve``: real-time street resolution from coordinates and text
6) ``complexes`` + ``listing``: development anchors and per-listing resolution
"""

from __future__ import annotations

from .cache import ResolutionCache, StreetNameCache
from .candidates import GeoPriority, MatchCandidate, best_candidate, compare_candidates
from .complex_catalog import (
    ComplexCatalogMatch,
    ComplexCatalogReconciler,
    ComplexCatalogReport,
    SourceComplexRecord,
)
from .complexes import ComplexMatch, ComplexMatcher, ComplexTextMatch, clean_complex_name
from .extract import ParsedStreet, extract_street, listing_text
from .fuzzy import edit_similarity, similarity
from .listing import ListingLocation, ListingResolution, ListingResolver
from .normalize import (
    SurnamePolicy,
    cross_normalize,
    name_variants,
    soft_normalize,
    street_variants,
)
from .reconcile import (
    BatchReconciler,
    CanonicalStreetIndex,
    ReconcilerSettings,
    ReconciliationReport,
    ReviewItem,
    SourceStreetRecord,
    StreetMatch,
)
from .renames import RenameEntry, RenameTable
from .resolve import ResolverSettings, StreetResolution, StreetResolver, distance_confidence
from .trust import Evidence, SourceTrustPolicy

__all__ = [
    "BatchReconciler",
    "CanonicalStreetIndex",
    "ComplexCatalogMatch",
    "ComplexCatalogReconciler",
    "ComplexCatalogReport",
    "ComplexMatch",
    "ComplexMatcher",
    "ComplexTextMatch",
    "Evidence",
    "GeoPriority",
    "ListingLocation",
    "ListingResolution",
    "ListingResolver",
    "MatchCandidate",
    "ParsedStreet",
    "ReconcilerSettings",
    "ReconciliationReport",
    "RenameEntry",
    "RenameTable",
    "ResolutionCache",
    "ResolverSettings",
    "ReviewItem",
    "SourceComplexRecord",
    "SourceStreetRecord",
    "SourceTrustPolicy",
    "StreetMatch",
    "StreetNameCache",
    "StreetResolution",
    "StreetResolver",
    "SurnamePolicy",
    "best_candidate",
    "clean_complex_name",
    "compare_candidates",
    "cross_normalize",
    "distance_confidence",
    "edit_similarity",
    "extract_street",
    "listing_text",
    "name_variants",
    "similarity",
    "soft_normalize",
    "street_variants",
]
