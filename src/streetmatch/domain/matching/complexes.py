"""Named-development ("ЖК") matching from listing text and coordinates."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from enum import StrEnum
from itertools import pairwise
from logging import getLogger
from typing import TYPE_CHECKING, Final

from streetmatch.domain.model import MatchMethod

from .extract import listing_text
from .resolve import distance_confidence
from .trust import Evidence, SourceTrustPolicy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streetmatch.domain.model import ApartmentComplex
    from streetmatch.domain.ports.spatial import ComplexLocator

log = getLogger(__name__)

NEAREST_COMPLEX_RADIUS_METERS: Final[float] = 100.0
LEADING_WINDOW: Final[int] = 100
KEYWORD_WINDOW: Final[int] = 30
SPAN_WEIGHT: Final[float] = 0.6
LEADING_BONUS: Final[float] = 0.2
KEYWORD_BONUS: Final[float] = 0.2
MIN_BARE_NAME_LENGTH: Final[int] = 4
MIN_PAIR_WORD_LENGTH: Final[int] = 3
DEFAULT_MIN_SCORE: Final[float] = 0.5
DEFAULT_STRONG_SCORE: Final[float] = 0.6

DEVELOPMENT_KEYWORDS: Final[tuple[str, ...]] = (
    "житловий комплекс",
    "жилой комплекс",
    "residential complex",
    "котеджне містечко",
    "коттеджный городок",
    "котеджний городок",
    "жк",
    "кг",
    "км",
)
_KEYWORD_ALTERNATION: Final[str] = "|".join(re.escape(keyword) for keyword in DEVELOPMENT_KEYWORDS)
# "кг" and "км" double as units (kg, km), so only these earn the keyword bonus.
BONUS_KEYWORDS: Final[tuple[str, ...]] = ("житловий комплекс", "жилой комплекс", "жк")
_OPENING_QUOTES: Final[str] = "\"'«“„"

_PREFIX_WORDS: Final[tuple[str, ...]] = (
    *DEVELOPMENT_KEYWORDS,
    "котеджне",
    "коттеджное",
    "містечко",
    "городок",
    "таунхаус[иі]?",
    "дуплекс[иі]?",
    "rc",
)
_NAME_PREFIX: Final = re.compile(
    r"^(?:" + "|".join(_PREFIX_WORDS) + r")(?=[\s.\"'«“„]|$)\.?\s*"
)
_BUILDING_WORDS: Final[str] = "буд|будинок|корп|корпус|секція|секция|черга|очередь|building|bldg"
_BUILDING_SUFFIX: Final = re.compile(rf"(?<!\w)(?:{_BUILDING_WORDS})\.?\s*№?\s*\d+\w*")
_PARENTHETICAL: Final = re.compile(r"\([^)]*\)")
_QUOTES: Final = str.maketrans(dict.fromkeys("\"'`«»“”„ʼ’‘"))
_BONUS_ALTERNATION: Final[str] = "|".join(re.escape(keyword) for keyword in BONUS_KEYWORDS)
_KEYWORD_BEFORE: Final = re.compile(
    rf"(?<!\w)(?:{_BONUS_ALTERNATION})\.?\s*[{re.escape(_OPENING_QUOTES)}]?\s*$"
)


def _fold(text: str) -> str:
    return unicodedata.normalize("NFKC", text).casefold()


def clean_complex_name(name: str | None) -> str:
    """Lowercase a development name and strip type prefixes, quotes and building numbers."""

    if not name or not name.strip():
        return ""
    value = _PARENTHETICAL.sub(" ", _fold(name))
    value = _BUILDING_SUFFIX.sub(" ", value)
    value = value.translate(_QUOTES)
    value = " ".join(value.split())
    previous = None
    while previous != value:
        previous = value
        value = _NAME_PREFIX.sub("", value).strip()
    return value.strip(" ,.;:-")


class PatternKind(StrEnum):
    PREFIXED = "prefixed"
    BARE = "bare"
    WORD_PAIR = "word_pair"


@dataclass(frozen=True, slots=True)
class NamePattern:
    kind: PatternKind
    pattern: re.Pattern[str]
    name_length: int


@dataclass(frozen=True, slots=True)
class CompiledComplex:
    complex: ApartmentComplex
    cleaned_names: tuple[str, ...]
    patterns: tuple[NamePattern, ...]

    @property
    def sort_key(self) -> tuple[int, int]:
        longest = max((len(name) for name in self.cleaned_names), default=0)
        return (-longest, self.complex.id)


def _words_pattern(words: Iterable[str]) -> str:
    return r"\s+".join(re.escape(word) for word in words)


def compile_complex(complex_: ApartmentComplex) -> CompiledComplex:
    """Precompile the prefixed, bare and word-pair patterns for one development."""

    cleaned: dict[str, None] = {}
    for name in complex_.display_names():
        value = clean_complex_name(name)
        if len(value) >= 2:
            cleaned.setdefault(value, None)

    patterns: list[NamePattern] = []
    for name in cleaned:
        body = _words_pattern(name.split())
        quote = f"[{re.escape(_OPENING_QUOTES)}]?"
        patterns.append(
            NamePattern(
                PatternKind.PREFIXED,
                re.compile(
                    rf"(?<!\w)(?:{_KEYWORD_ALTERNATION})\.?\s*{quote}\s*(?P<name>{body})(?!\w)"
                ),
                len(name),
            )
        )
        if len(name) >= MIN_BARE_NAME_LENGTH:
            patterns.append(
                NamePattern(
                    PatternKind.BARE,
                    re.compile(rf"(?<!\w)(?P<name>{body})(?!\w)"),
                    len(name),
                )
            )
        words = [word for word in name.split() if len(word) >= MIN_PAIR_WORD_LENGTH]
        if len(words) >= 2:
            patterns.extend(
                NamePattern(
                    PatternKind.WORD_PAIR,
                    re.compile(rf"(?<!\w)(?P<name>{_words_pattern(pair)})(?!\w)"),
                    len(name),
                )
                for pair in pairwise(words)
            )
    return CompiledComplex(complex=complex_, cleaned_names=tuple(cleaned), patterns=tuple(patterns))


def score_text_match(text: str, match: re.Match[str], name_length: int) -> float:
    """Score a pattern hit by coverage, position and a preceding development keyword."""

    span_length = len(match.group("name"))
    score = SPAN_WEIGHT * min(1.0, span_length / name_length)
    if match.end() <= LEADING_WINDOW:
        score += LEADING_BONUS
    window = text[max(0, match.start("name") - KEYWORD_WINDOW) : match.start("name")]
    if _KEYWORD_BEFORE.search(window):
        score += KEYWORD_BONUS
    return min(1.0, round(score, 4))


@dataclass(frozen=True, slots=True, kw_only=True)
class ComplexTextMatch:
    complex: ApartmentComplex
    matched_text: str
    kind: PatternKind
    score: float


@dataclass(frozen=True, slots=True, kw_only=True)
class ComplexMatch:
    complex: ApartmentComplex
    method: MatchMethod
    score: float
    distance_meters: float | None = None


class ComplexMatcher:
    """Matches listings to named developments.

    Holds the precompiled patterns for the loaded developments; rebuild them
    with :meth:`reload` and drop them with :meth:`clear`.
    """

    def __init__(
        self,
        complexes: Iterable[ApartmentComplex] = (),
        *,
        locator: ComplexLocator | None = None,
        trust: SourceTrustPolicy | None = None,
        nearest_radius_meters: float = NEAREST_COMPLEX_RADIUS_METERS,
    ) -> None:
        self.locator = locator
        self.trust = trust or SourceTrustPolicy()
        self.nearest_radius_meters = nearest_radius_meters
        self._compiled: tuple[CompiledComplex, ...] = ()
        self._by_id: dict[int, CompiledComplex] = {}
        self.reload(complexes)

    def reload(self, complexes: Iterable[ApartmentComplex]) -> None:
        compiled = sorted(
            (compile_complex(complex_) for complex_ in complexes),
            key=lambda item: item.sort_key,
        )
        self._compiled = tuple(item for item in compiled if item.patterns)
        self._by_id = {item.complex.id: item for item in self._compiled}
        log.debug("Compiled name patterns for %s developments", len(self._compiled))

    def clear(self) -> None:
        self._compiled = ()
        self._by_id = {}

    def __len__(self) -> int:
        return len(self._compiled)

    def get(self, complex_id: int) -> ApartmentComplex | None:
        compiled = self._by_id.get(complex_id)
        return compiled.complex if compiled else None

    def find_in_text(
        self,
        title: str | None,
        description: str | None = None,
        *,
        min_score: float = DEFAULT_MIN_SCORE,
    ) -> ComplexTextMatch | None:
        """Best-scoring development mentioned in the listing text, if above ``min_score``."""

        text = _fold(listing_text(title, description))
        if not text:
            return None

        best: ComplexTextMatch | None = None
        for compiled in self._compiled:
            for name_pattern in compiled.patterns:
                match = name_pattern.pattern.search(text)
                if match is None:
                    continue
                score = score_text_match(text, match, name_pattern.name_length)
                if best is None or score > best.score:
                    best = ComplexTextMatch(
                        complex=compiled.complex,
                        matched_text=match.group("name"),
                        kind=name_pattern.kind,
                        score=score,
                    )
        if best is None or best.score < min_score:
            return None
        return best

    def find_by_coordinates(self, lng: float | None, lat: float | None) -> ComplexMatch | None:
        """Development containing the point, else the nearest one within the radius."""

        if self.locator is None or lng is None or lat is None:
            return None
        inside = self.locator.find_complex_containing_point(lng, lat)
        if inside is not None:
            return ComplexMatch(
                complex=inside, method=MatchMethod.COORDINATES, score=1.0, distance_meters=0.0
            )
        nearest = self.locator.find_nearest_complex(lng, lat, self.nearest_radius_meters)
        if nearest is None:
            return None
        return ComplexMatch(
            complex=nearest.complex,
            method=MatchMethod.COORDINATES,
            score=distance_confidence(nearest.distance_meters),
            distance_meters=nearest.distance_meters,
        )

    def find_complex(
        self,
        title: str | None,
        description: str | None = None,
        *,
        lng: float | None = None,
        lat: float | None = None,
        source: str | None = None,
        min_score: float = DEFAULT_MIN_SCORE,
        strong_score: float = DEFAULT_STRONG_SCORE,
    ) -> ComplexMatch | None:
        """Resolve a development following the source's evidence order.

        Text tried before coordinates must reach ``strong_score``; text tried
        last only needs ``min_score``. A text-first source that found nothing
        gets a final lenient text pass after the coordinates.
        """

        order = self.trust.evidence_order(source)
        for position, evidence in enumerate(order):
            if evidence is Evidence.COORDINATES:
                match = self.find_by_coordinates(lng, lat)
            else:
                is_last = position == len(order) - 1
                match = self._text_match(
                    title, description, min_score=min_score if is_last else strong_score
                )
            if match is not None:
                return match
        if Evidence.TEXT in order[:-1]:
            return self._text_match(title, description, min_score=min_score)
        return None

    def _text_match(
        self,
        title: str | None,
        description: str | None,
        *,
        min_score: float,
    ) -> ComplexMatch | None:
        found = self.find_in_text(title, description, min_score=min_score)
        if found is None:
            return None
        return ComplexMatch(complex=found.complex, method=MatchMethod.TEXT_FOUND, score=found.score)

    def search_by_name(self, query: str, limit: int = 10) -> list[ApartmentComplex]:
        """Developments whose cleaned name contains the cleaned query, closest names first."""

        needle = clean_complex_name(query)
        if not needle or limit <= 0:
            return []
        ranked: list[tuple[int, int, int, ApartmentComplex]] = []
        for compiled in self._compiled:
            hits = [name for name in compiled.cleaned_names if needle in name]
            if not hits:
                continue
            if needle in hits:
                rank = 0
            elif any(name.startswith(needle) for name in hits):
                rank = 1
            else:
                rank = 2
            shortest = min(len(name) for name in hits)
            ranked.append((rank, shortest, compiled.complex.id, compiled.complex))
        ranked.sort(key=lambda item: item[:3])
        return [item[3] for item in ranked[:limit]]
