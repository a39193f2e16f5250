"""Load static catalogs (JSON and CSV exports) into domain objects."""

from __future__ import annotations

import csv
import json
from collections.abc import Mapping, Sequence
from logging import getLogger
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ValidationError

from .schema import (
    ComplexPayload,
    GeoPayload,
    MappingRow,
    RenamePayload,
    SourceComplexPayload,
    SourceStreetRow,
    StreetPayload,
    UsageRow,
)

if TYPE_CHECKING:
    from pathlib import Path

    from streetmatch.domain.matching.complex_catalog import SourceComplexRecord
    from streetmatch.domain.matching.reconcile import SourceStreetRecord
    from streetmatch.domain.model import (
        ApartmentComplex,
        CanonicalGeo,
        CanonicalStreet,
        EntityType,
        IdMapping,
    )

log = getLogger(__name__)


class CatalogLoadError(ValueError):
    """Raised when a catalog file cannot be read or a row fails validation."""

    def __init__(self, message: str, *, path: Path, row: int | None = None) -> None:
        location = f"{path}" if row is None else f"{path} (row {row})"
        super().__init__(f"{location}: {message}")
        self.path = path
        self.row = row


def _read_json(path: Path) -> object:
    try:
        with path.open(encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(str(exc), path=path) from exc


def _read_json_list(path: Path, *, key: str | None = None) -> list[object]:
    document = _read_json(path)
    if key is not None and isinstance(document, Mapping):
        document = cast(Mapping[str, object], document).get(key)
    if not isinstance(document, list):
        expected = "a JSON list" if key is None else f'a JSON list or an object with "{key}"'
        raise CatalogLoadError(f"expected {expected}", path=path)
    return cast(list[object], document)


def _read_csv(path: Path) -> list[dict[str, str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as handle:
            return list(csv.DictReader(handle))
    except (OSError, csv.Error, UnicodeDecodeError) as exc:
        raise CatalogLoadError(str(exc), path=path) from exc


def _validate_rows[TModel: BaseModel](
    model: type[TModel],
    rows: Sequence[object],
    path: Path,
) -> list[TModel]:
    validated: list[TModel] = []
    for index, row in enumerate(rows, start=1):
        try:
            validated.append(model.model_validate(row))
        except ValidationError as exc:
            raise CatalogLoadError(str(exc), path=path, row=index) from exc
    log.debug("Loaded %s %s rows from %s", len(validated), model.__name__, path)
    return validated


def load_geos(path: Path) -> list[CanonicalGeo]:
    return [
        payload.to_domain()
        for payload in _validate_rows(GeoPayload, _read_json_list(path), path)
    ]


def load_streets(path: Path) -> list[CanonicalStreet]:
    return [
        payload.to_domain()
        for payload in _validate_rows(StreetPayload, _read_json_list(path), path)
    ]


def load_complexes(path: Path) -> list[ApartmentComplex]:
    return [
        payload.to_domain()
        for payload in _validate_rows(ComplexPayload, _read_json_list(path), path)
    ]


def load_renames(path: Path) -> list[tuple[str, str]]:
    """Rename pairs from ``{"renames": [...]}`` or a bare list of ``{old, new}`` objects."""

    rows = _read_json_list(path, key="renames")
    return [payload.as_pair() for payload in _validate_rows(RenamePayload, rows, path)]


def load_usage(path: Path) -> dict[int, int]:
    """Listing counts per source street id; repeated ids are summed."""

    usage: dict[int, int] = {}
    for row in _validate_rows(UsageRow, _read_csv(path), path):
        usage[row.street_id] = usage.get(row.street_id, 0) + row.count
    return usage


def load_source_streets(path: Path, usage_path: Path | None = None) -> list[SourceStreetRecord]:
    usage = load_usage(usage_path) if usage_path is not None else {}
    rows = _validate_rows(SourceStreetRow, _read_csv(path), path)
    return [row.to_record(usage.get(row.id, 0)) for row in rows]


def load_source_complexes(path: Path) -> list[SourceComplexRecord]:
    return [
        payload.to_record()
        for payload in _validate_rows(SourceComplexPayload, _read_json_list(path), path)
    ]


def load_id_mappings(path: Path, *, source: str, entity_type: EntityType) -> list[IdMapping]:
    """Curated mappings from a CSV with ``source_id, local_id[, confidence, match_method]``."""

    return [
        row.to_domain(source=source, entity_type=entity_type)
        for row in _validate_rows(MappingRow, _read_csv(path), path)
    ]
