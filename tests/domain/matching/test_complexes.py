from __future__ import annotations

import pytest

from streetmatch.adapters.memory import InMemorySpatialIndex
from streetmatch.domain.matching.complexes import (
    ComplexMatcher,
    PatternKind,
    clean_complex_name,
    compile_complex,
)
from streetmatch.domain.matching.trust import SourceTrustPolicy
from streetmatch.domain.model import GeoTree, MatchMethod
from tests.helpers.catalog import box, make_complex

COMFORT_TOWN = make_complex(1, "ЖК «Комфорт Таун»", street_id=7)
LYPKY = make_complex(2, "Новопечерські Липки", polygon=box(30.10, 50.10, 30.12, 50.12))
SUNNY = make_complex(3, "Сонячний", point=(30.15, 50.15))
QUARTER = make_complex(4, "Великий Київський Квартал")
COMPLEXES = [COMFORT_TOWN, LYPKY, SUNNY, QUARTER]
FILLER = "Простора квартира з ремонтом, меблями та технікою, поруч школа, парк і зупинка. "


@pytest.fixture
def matcher(geo_tree: GeoTree) -> ComplexMatcher:
    locator = InMemorySpatialIndex(geo_tree, complexes=COMPLEXES)
    return ComplexMatcher(COMPLEXES, locator=locator)


@pytest.mark.parametrize(
    ("raw", "cleaned"),
    [
        ("ЖК «Комфорт Таун» (секція 3)", "комфорт таун"),
        ("Новопечерські Липки буд. 5", "новопечерські липки"),
        ("Таунхаус Green Hills", "green hills"),
        ('Житловий комплекс "Сонячний"', "сонячний"),
        ("ЖК", ""),
        (None, ""),
    ],
)
def test_clean_complex_name(raw: str | None, cleaned: str) -> None:
    assert clean_complex_name(raw) == cleaned


def test_compile_complex_builds_three_pattern_kinds() -> None:
    compiled = compile_complex(QUARTER)

    kinds = [pattern.kind for pattern in compiled.patterns]
    assert compiled.cleaned_names == ("великий київський квартал",)
    assert kinds.count(PatternKind.PREFIXED) == 1
    assert kinds.count(PatternKind.BARE) == 1
    assert kinds.count(PatternKind.WORD_PAIR) == 2


def test_short_names_get_no_bare_pattern() -> None:
    compiled = compile_complex(make_complex(9, "ЖК Ок"))

    assert [pattern.kind for pattern in compiled.patterns] == [PatternKind.PREFIXED]


def test_prefixed_mention_near_start_scores_full(matcher: ComplexMatcher) -> None:
    found = matcher.find_in_text("Продаж 1к квартири в ЖК «Комфорт Таун», 5 поверх")

    assert found is not None
    assert found.complex.id == COMFORT_TOWN.id
    assert found.kind is PatternKind.PREFIXED
    assert found.score == 1.0


def test_bare_mention_far_from_start_scores_span_only(matcher: ComplexMatcher) -> None:
    text = FILLER * 2 + "Новопечерські Липки"

    found = matcher.find_in_text(text, min_score=0.5)

    assert found is not None
    assert found.complex.id == LYPKY.id
    assert found.kind is PatternKind.BARE
    assert found.score == pytest.approx(0.6)
    assert matcher.find_in_text(text, min_score=0.7) is None


def test_word_pair_scores_by_coverage(matcher: ComplexMatcher) -> None:
    found = matcher.find_in_text("Новобудова Київський Квартал біля метро")

    assert found is not None
    assert found.complex.id == QUARTER.id
    assert found.kind is PatternKind.WORD_PAIR
    expected = 0.6 * len("київський квартал") / len("великий київський квартал") + 0.2
    assert found.score == pytest.approx(expected, abs=1e-4)


def test_description_is_searched_with_title(matcher: ComplexMatcher) -> None:
    found = matcher.find_in_text("Квартира", "Житловий комплекс Сонячний, 3 поверх")

    assert found is not None
    assert found.complex.id == SUNNY.id


def test_no_mention(matcher: ComplexMatcher) -> None:
    assert matcher.find_in_text("Квартира біля парку") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Будинок за 5 км Сонячний, ділянка 10 соток", 0.8),
        ("Вантаж 20 кг Сонячний, самовивіз", 0.8),
        ("Квартира у ЖК Сонячний, ділянка 10 соток", 1.0),
        ("Квартира, жилой комплекс «Сонячний»", 1.0),
    ],
)
def test_only_residential_complex_words_earn_keyword_bonus(
    matcher: ComplexMatcher, text: str, expected: float
) -> None:
    found = matcher.find_in_text(text)

    assert found is not None
    assert found.complex.id == SUNNY.id
    assert found.score == pytest.approx(expected)
    assert matcher.find_in_text(None) is None


def test_coordinates_inside_polygon(matcher: ComplexMatcher) -> None:
    match = matcher.find_by_coordinates(30.11, 50.11)

    assert match is not None
    assert match.complex.id == LYPKY.id
    assert match.method is MatchMethod.COORDINATES
    assert match.score == 1.0
    assert match.distance_meters == 0.0


def test_coordinates_near_point(matcher: ComplexMatcher) -> None:
    match = matcher.find_by_coordinates(30.1501, 50.15)

    assert match is not None
    assert match.complex.id == SUNNY.id
    assert match.score == 0.9
    assert match.distance_meters is not None
    assert match.distance_meters < 50


def test_coordinates_too_far(matcher: ComplexMatcher) -> None:
    assert matcher.find_by_coordinates(30.16, 50.16) is None
    assert matcher.find_by_coordinates(None, 50.16) is None
    assert ComplexMatcher(COMPLEXES).find_by_coordinates(30.11, 50.11) is None


def test_coordinates_preferred_over_text_by_default(matcher: ComplexMatcher) -> None:
    match = matcher.find_complex("Квартира в ЖК Комфорт Таун", lng=30.11, lat=50.11)

    assert match is not None
    assert match.complex.id == LYPKY.id
    assert match.method is MatchMethod.COORDINATES


def test_text_is_the_fallback_without_coordinates(matcher: ComplexMatcher) -> None:
    match = matcher.find_complex("Квартира в ЖК Комфорт Таун", lng=30.3, lat=50.3)

    assert match is not None
    assert match.complex.id == COMFORT_TOWN.id
    assert match.method is MatchMethod.TEXT_FOUND


def test_text_first_source_needs_strong_text_before_coordinates(geo_tree: GeoTree) -> None:
    locator = InMemorySpatialIndex(geo_tree, complexes=COMPLEXES)
    matcher = ComplexMatcher(
        COMPLEXES, locator=locator, trust=SourceTrustPolicy.text_first(["dom_ria"])
    )
    weak_text = FILLER * 2 + "Новопечерські Липки"

    strong = matcher.find_complex(
        "Квартира в ЖК Комфорт Таун", lng=30.11, lat=50.11, source="dom_ria"
    )
    weak_with_coordinates = matcher.find_complex(
        weak_text, lng=30.1501, lat=50.15, source="dom_ria", strong_score=0.7
    )
    weak_without_coordinates = matcher.find_complex(
        weak_text, source="dom_ria", strong_score=0.7
    )

    assert strong is not None
    assert (strong.complex.id, strong.method) == (COMFORT_TOWN.id, MatchMethod.TEXT_FOUND)
    assert weak_with_coordinates is not None
    assert weak_with_coordinates.complex.id == SUNNY.id
    assert weak_without_coordinates is not None
    assert weak_without_coordinates.complex.id == LYPKY.id


def test_reload_clear_and_lookup() -> None:
    matcher = ComplexMatcher([COMFORT_TOWN, make_complex(8, "ЖК")])

    assert len(matcher) == 1
    assert matcher.get(COMFORT_TOWN.id) is COMFORT_TOWN
    assert matcher.get(8) is None

    matcher.clear()
    assert len(matcher) == 0
    assert matcher.find_in_text("ЖК Комфорт Таун") is None

    matcher.reload(COMPLEXES)
    assert len(matcher) == len(COMPLEXES)


def test_search_by_name_ranks_exact_then_prefix_then_substring() -> None:
    matcher = ComplexMatcher(
        [
            make_complex(1, "Липки Парк"),
            make_complex(2, "Новопечерські Липки"),
            make_complex(3, "Липки"),
        ]
    )

    assert [found.id for found in matcher.search_by_name("ЖК Липки")] == [3, 1, 2]
    assert [found.id for found in matcher.search_by_name("липки", limit=1)] == [3]
    assert matcher.search_by_name("ЖК") == []
