from __future__ import annotations

import pytest

from streetmatch.domain.model import (
    CanonicalGeo,
    EntityType,
    GeoTree,
    GeoType,
    IdMapping,
    Language,
    preferred_name,
)
from tests.helpers.catalog import (
    CITY_ID,
    COUNTRY_ID,
    DISTRICT_EAST_ID,
    DISTRICT_WEST_ID,
    OTHER_CITY_ID,
    OTHER_REGION_ID,
    REGION_ID,
    TOWN_ID,
    VILLAGE_ID,
    make_geo,
    make_street,
)


def test_preferred_name_falls_back_through_languages() -> None:
    assert preferred_name({Language.UK: "Київ", Language.RU: "Киев"}) == "Київ"
    assert preferred_name({Language.UK: "  ", Language.RU: "Киев"}) == "Киев"
    assert preferred_name({Language.EN: " Kyiv "}) == "Kyiv"
    assert preferred_name({}) == ""


def test_lineage_walks_parents_innermost_first(geo_tree: GeoTree) -> None:
    chain = [geo.id for geo in geo_tree.lineage(DISTRICT_EAST_ID)]

    assert chain == [DISTRICT_EAST_ID, CITY_ID, REGION_ID, COUNTRY_ID]
    assert geo_tree.lineage(999) == []


def test_lineage_stops_on_parent_cycle() -> None:
    tree = GeoTree(
        [
            make_geo(1, GeoType.CITY, "A", parent_id=2),
            make_geo(2, GeoType.REGION, "B", parent_id=1),
        ]
    )

    assert [geo.id for geo in tree.lineage(1)] == [1, 2]


def test_region_and_city_lookups(geo_tree: GeoTree) -> None:
    assert geo_tree.region_of(DISTRICT_WEST_ID) == REGION_ID
    assert geo_tree.region_of(OTHER_CITY_ID) == OTHER_REGION_ID
    assert geo_tree.region_of(COUNTRY_ID) is None
    assert geo_tree.city_of(DISTRICT_WEST_ID) == CITY_ID
    assert geo_tree.city_of(VILLAGE_ID) == VILLAGE_ID
    assert geo_tree.city_of(REGION_ID) is None


def test_city_without_region_is_its_own_region() -> None:
    tree = GeoTree(
        [
            make_geo(1, GeoType.COUNTRY, "Country"),
            make_geo(5, GeoType.CITY, "Capital", parent_id=1),
            make_geo(6, GeoType.CITY_DISTRICT, "Centre", parent_id=5),
        ]
    )

    assert tree.region_of(6) == 5
    assert tree.region_of(5) == 5


def test_nested_set_ancestors_and_descendants(geo_tree: GeoTree) -> None:
    assert [geo.id for geo in geo_tree.ancestors(DISTRICT_EAST_ID)] == [
        COUNTRY_ID,
        REGION_ID,
        CITY_ID,
    ]
    assert [geo.id for geo in geo_tree.descendants(CITY_ID)] == [
        DISTRICT_WEST_ID,
        DISTRICT_EAST_ID,
    ]
    assert geo_tree.subtree_ids(REGION_ID) == frozenset(
        {REGION_ID, CITY_ID, DISTRICT_WEST_ID, DISTRICT_EAST_ID, TOWN_ID, VILLAGE_ID}
    )
    assert geo_tree.subtree_ids(999) == frozenset()


def test_descendants_fall_back_to_parent_chain_without_nested_set() -> None:
    tree = GeoTree(
        [
            make_geo(1, GeoType.REGION, "Region"),
            make_geo(2, GeoType.CITY, "City", parent_id=1),
            make_geo(3, GeoType.CITY_DISTRICT, "District", parent_id=2),
            make_geo(4, GeoType.CITY, "Elsewhere"),
        ]
    )

    assert [geo.id for geo in tree.descendants(1)] == [2, 3]
    assert tree.ancestors(3) == []


def test_contains_requires_nested_set_on_both_sides() -> None:
    outer = CanonicalGeo(id=1, type=GeoType.REGION, lft=1, rgt=10)
    inner = CanonicalGeo(id=2, type=GeoType.CITY, lft=2, rgt=3)
    unplaced = CanonicalGeo(id=3, type=GeoType.CITY)

    assert outer.contains(inner)
    assert not inner.contains(outer)
    assert not outer.contains(unplaced)


def test_street_display_names_are_distinct_and_alias_last() -> None:
    street = make_street(
        1, CITY_ID, "вул. Хрещатик", ru="ул. Крещатик", en="вул. Хрещатик", alias="Хрещатик"
    )

    assert street.display_names() == ("вул. Хрещатик", "ул. Крещатик", "Хрещатик")
    assert street.name == "вул. Хрещатик"


def test_id_mapping_rejects_confidence_outside_unit_interval() -> None:
    with pytest.raises(ValueError, match="Confidence"):
        IdMapping(
            source="rieltor",
            entity_type=EntityType.STREET,
            source_id=1,
            local_id=2,
            confidence=1.5,
        )
