"""Pydantic models describing the static catalog inputs."""

from __future__ import annotations

from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from streetmatch.domain.matching.complex_catalog import SourceComplexRecord
from streetmatch.domain.matching.reconcile import SourceStreetRecord
from streetmatch.domain.model import (
    ApartmentComplex,
    CanonicalGeo,
    CanonicalStreet,
    EntityType,
    GeoType,
    IdMapping,
    Language,
    MatchMethod,
)

Point = tuple[float, float]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class CatalogBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LocalizedNamePayload(CatalogBaseModel):
    uk: str | None = None
    ru: str | None = None
    en: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_plain_string(cls, value: object) -> object:
        if isinstance(value, str):
            return {"uk": value}
        return value

    _normalize_names = field_validator("uk", "ru", "en", mode="before")(_blank_to_none)

    def to_names(self) -> dict[Language, str]:
        names: dict[Language, str] = {}
        for language in Language:
            value = cast(str | None, getattr(self, language.value))
            if value:
                names[language] = value
        return names


class GeoPayload(CatalogBaseModel):
    id: int
    name: LocalizedNamePayload = Field(default_factory=LocalizedNamePayload)
    type: GeoType
    parent_id: int | None = None
    lft: int = 0
    rgt: int = 0
    lvl: int = 0
    polygon: list[Point] = Field(default_factory=list[Point])

    _normalize_parent = field_validator("parent_id", mode="before")(_blank_to_none)

    def to_domain(self) -> CanonicalGeo:
        return CanonicalGeo(
            id=self.id,
            type=self.type,
            names=self.name.to_names(),
            parent_id=self.parent_id,
            lft=self.lft,
            rgt=self.rgt,
            lvl=self.lvl,
            polygon=tuple(self.polygon),
        )


class StreetPayload(CatalogBaseModel):
    id: int
    geo_id: int
    name: LocalizedNamePayload = Field(default_factory=LocalizedNamePayload)
    alias: str | None = None
    line: list[list[Point]] = Field(default_factory=list[list[Point]])

    _normalize_alias = field_validator("alias", mode="before")(_blank_to_none)

    def to_domain(self) -> CanonicalStreet:
        return CanonicalStreet(
            id=self.id,
            geo_id=self.geo_id,
            names=self.name.to_names(),
            alias=self.alias,
            lines=tuple(tuple(segment) for segment in self.line if segment),
        )


class ComplexPayload(CatalogBaseModel):
    id: int
    geo_id: int | None = None
    street_id: int | None = None
    name: LocalizedNamePayload = Field(default_factory=LocalizedNamePayload)
    lng: float | None = None
    lat: float | None = None
    polygon: list[Point] = Field(default_factory=list[Point])

    _normalize_ids = field_validator("geo_id", "street_id", "lng", "lat", mode="before")(
        _blank_to_none
    )

    def to_domain(self) -> ApartmentComplex:
        return ApartmentComplex(
            id=self.id,
            geo_id=self.geo_id,
            names=self.name.to_names(),
            street_id=self.street_id,
            lng=self.lng,
            lat=self.lat,
            polygon=tuple(self.polygon),
        )


class RenamePayload(CatalogBaseModel):
    old: str
    new: str

    @field_validator("old", "new", mode="before")
    @classmethod
    def _require_text(cls, value: object) -> object:
        cleaned = _blank_to_none(value)
        if cleaned is None:
            raise ValueError("rename names must not be blank")
        return cleaned

    def as_pair(self) -> tuple[str, str]:
        return (self.old, self.new)


class SourceStreetRow(CatalogBaseModel):
    """One row of an external street catalog export."""

    id: int = Field(alias="kod")
    name_ru: str | None = None
    name_ua: str | None = None
    source_geo_id: int | None = Field(default=None, alias="fk_geoid")
    alias: str | None = None

    _normalize_text = field_validator(
        "name_ru", "name_ua", "source_geo_id", "alias", mode="before"
    )(_blank_to_none)

    def to_record(self, usage_count: int = 0) -> SourceStreetRecord:
        names = tuple(
            dict.fromkeys(name for name in (self.name_ua, self.name_ru, self.alias) if name)
        )
        return SourceStreetRecord(
            id=self.id,
            names=names,
            source_geo_id=self.source_geo_id,
            usage_count=usage_count,
        )


class UsageRow(CatalogBaseModel):
    street_id: int = Field(alias="geo_street")
    count: int = Field(default=0, alias="cnt", ge=0)


class SourceComplexPayload(CatalogBaseModel):
    id: int
    name: str
    source_geo_id: int | None = Field(default=None, alias="geo_id")

    _normalize_geo = field_validator("source_geo_id", mode="before")(_blank_to_none)

    def to_record(self) -> SourceComplexRecord:
        return SourceComplexRecord(id=self.id, name=self.name, source_geo_id=self.source_geo_id)


class MappingRow(CatalogBaseModel):
    """One manually curated id mapping."""

    source_id: int
    local_id: int
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    match_method: MatchMethod | None = MatchMethod.MANUAL

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: object) -> object:
        cleaned = _blank_to_none(value)
        return 1.0 if cleaned is None else cleaned

    @field_validator("match_method", mode="before")
    @classmethod
    def _default_method(cls, value: object) -> object:
        cleaned = _blank_to_none(value)
        return MatchMethod.MANUAL if cleaned is None else cleaned

    def to_domain(self, *, source: str, entity_type: EntityType) -> IdMapping:
        return IdMapping(
            source=source,
            entity_type=entity_type,
            source_id=self.source_id,
            local_id=self.local_id,
            confidence=self.confidence,
            match_method=self.match_method,
        )

