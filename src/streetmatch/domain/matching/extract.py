"""Best-effort extraction of a single street mention from listing text."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, NamedTuple, cast

if TYPE_CHECKING:
    from collections.abc import Sequence

MIN_STREET_NAME_LENGTH: Final[int] = 3
TEXT_LANGUAGE_KEYS: Final[tuple[str, ...]] = ("uk", "ru", "en")

_CYRILLIC_UPPER: Final[str] = "А-ЯЁІЇЄҐ"
_CYRILLIC_LOWER: Final[str] = "а-яёіїєґ"
_APOSTROPHES: Final[str] = "'’ʼ"
_CYRILLIC_WORD: Final[str] = (
    f"[{_CYRILLIC_UPPER}][{_CYRILLIC_UPPER}{_CYRILLIC_LOWER}{_APOSTROPHES}-]*"
)
_LATIN_WORD: Final[str] = f"[A-Z][A-Za-z{_APOSTROPHES}-]*"
# Leading initials ("Т. Шевченка") are skipped; the name starts at the surname.
_CYRILLIC_NAME: Final[str] = (
    rf"(?:[{_CYRILLIC_UPPER}]\.\s*)*(?P<name>{_CYRILLIC_WORD}(?:\s+{_CYRILLIC_WORD})*)"
)
_LATIN_NAME: Final[str] = rf"(?:[A-Z]\.\s*)*(?P<name>{_LATIN_WORD}(?:\s+{_LATIN_WORD})*)"

_TRIM_AT: Final = re.compile(r",|\d|[.;:!?\n]")


@dataclass(frozen=True, slots=True)
class ParsedStreet:
    name: str
    type_label: str


class StreetPattern(NamedTuple):
    type_label: str
    pattern: re.Pattern[str]


def _prefixed(type_label: str, keywords: str, name: str = _CYRILLIC_NAME) -> StreetPattern:
    return StreetPattern(type_label, re.compile(rf"(?<!\w)(?i:{keywords})(?:\.\s*|\s+){name}"))


def _suffixed(type_label: str, keywords: str) -> StreetPattern:
    return StreetPattern(type_label, re.compile(rf"{_LATIN_NAME}\s+(?i:{keywords})(?!\w)"))


STREET_PATTERNS: Final[tuple[StreetPattern, ...]] = (
    # uk
    _prefixed("вулиця", "вулиця|вулиці|вул"),
    _prefixed("проспект", "проспект|просп|пр-т"),
    _prefixed("провулок", "провулок|пров"),
    _prefixed("бульвар", "бульвар|бульв|б-р"),
    _prefixed("площа", "площа|пл"),
    _prefixed("набережна", "набережна|наб"),
    _prefixed("узвіз", "узвіз"),
    _prefixed("шосе", "шосе"),
    # ru
    _prefixed("улица", "улица|улице|ул"),
    _prefixed("проспект", "проспект|просп|пр"),
    _prefixed("переулок", "переулок|пер"),
    _prefixed("бульвар", "бульвар|бульв"),
    _prefixed("площадь", "площадь|пл"),
    _prefixed("набережная", "набережная|наб"),
    _prefixed("спуск", "спуск"),
    _prefixed("шоссе", "шоссе"),
    # transliterated
    _prefixed("vulytsia", "vulytsia|vul|ulitsa|ul", _LATIN_NAME),
    _suffixed("street", "street|st|avenue|ave|lane|boulevard|blvd|square"),
)


def _trim_span(span: str) -> str:
    cut = _TRIM_AT.search(span)
    if cut is not None:
        span = span[: cut.start()]
    return " ".join(span.split()).strip(" -")


def extract_street(
    text: str | None,
    patterns: Sequence[StreetPattern] = STREET_PATTERNS,
) -> ParsedStreet | None:
    """Return the first street mention found, trying ``patterns`` in order."""

    if not text or not text.strip():
        return None
    for street_pattern in patterns:
        for match in street_pattern.pattern.finditer(text):
            name = _trim_span(match.group("name"))
            if len(name) >= MIN_STREET_NAME_LENGTH:
                return ParsedStreet(name=name, type_label=street_pattern.type_label)
    return None


def listing_text(*parts: str | None) -> str:
    """Join listing text fields into one searchable string.

    A field holding a JSON object of language-tagged strings
    (``{"uk": ..., "ru": ..., "en": ...}``) contributes each translation.
    """

    chunks: list[str] = []
    for part in parts:
        if not part or not part.strip():
            continue
        stripped = part.strip()
        translations = _translations(stripped) if stripped.startswith("{") else None
        if translations is None:
            chunks.append(stripped)
        else:
            chunks.extend(translations)
    return " ".join(chunks)


def _translations(value: str) -> list[str] | None:
    try:
        payload = json.loads(value)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    mapping = cast("dict[str, object]", payload)
    texts: list[str] = []
    for key in TEXT_LANGUAGE_KEYS:
        text = mapping.get(key)
        if isinstance(text, str) and text.strip():
            texts.append(text.strip())
    return texts
