"""Street-name normalization into comparable variant sets.

Two folding stages share :data:`FOLD_TABLE`:

- *soft* strips street-type words, honorific/rank words, quote marks and
  punctuation, then folds letters unique to one language into a neighbour;
- *cross* starts from the soft form and additionally folds the letters that
  diverge between Ukrainian and Russian spelling, turning hyphens into spaces.

:func:`name_variants` combines both stages with derived forms (parenthetical
alternates, word reversals, initials dropped, bare surnames).
"""

from __future__ import annotations

import re
import unicodedata
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Final, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterable


class FoldStage(IntEnum):
    SOFT = 1
    CROSS = 2


class Fold(NamedTuple):
    source: str
    target: str
    stage: FoldStage


FOLD_TABLE: Final[tuple[Fold, ...]] = (
    Fold("ё", "е", FoldStage.SOFT),
    Fold("ї", "і", FoldStage.SOFT),
    Fold("є", "е", FoldStage.SOFT),
    Fold("ґ", "г", FoldStage.SOFT),
    Fold("і", "е", FoldStage.CROSS),
    Fold("ь", "", FoldStage.CROSS),
    Fold("й", "и", FoldStage.CROSS),
    Fold("ы", "и", FoldStage.CROSS),
    Fold("-", " ", FoldStage.CROSS),
)


def fold_translation(stage: FoldStage) -> dict[int, str]:
    """Return a ``str.translate`` table for one stage of the fold table."""

    return str.maketrans({fold.source: fold.target for fold in FOLD_TABLE if fold.stage is stage})


_SOFT_FOLDS: Final = fold_translation(FoldStage.SOFT)
_CROSS_FOLDS: Final = fold_translation(FoldStage.CROSS)

STREET_TYPE_WORDS: Final[frozenset[str]] = frozenset(
    {
        # uk
        "вулиця",
        "вулиці",
        "провулок",
        "проспект",
        "бульвар",
        "набережна",
        "площа",
        "тупік",
        "шосе",
        "дорога",
        "проїзд",
        "алея",
        "лінія",
        "спуск",
        "узвіз",
        "в'їзд",
        "мікрорайон",
        "масив",
        "урочище",
        "шлях",
        "сквер",
        "парк",
        "квартал",
        "роз'їзд",
        # ru
        "улица",
        "переулок",
        "набережная",
        "площадь",
        "тупик",
        "шоссе",
        "проезд",
        "аллея",
        "линия",
        "въезд",
        "микрорайон",
        "массив",
        "разъезд",
        # en
        "street",
        "avenue",
        "lane",
        "square",
        "boulevard",
        "embankment",
        "highway",
        "road",
        "passage",
        "alley",
        "descent",
        "vulytsia",
        "provulok",
        "prospekt",
        "ulitsa",
    }
)

STREET_TYPE_ABBREVIATIONS: Final[frozenset[str]] = frozenset(
    {
        "вул",
        "ул",
        "пров",
        "пер",
        "просп",
        "пр",
        "пр-т",
        "пр-кт",
        "бульв",
        "бул",
        "б-р",
        "наб",
        "пл",
        "дор",
        "мкр",
        "м-н",
        "туп",
        "шос",
        "vul",
        "ul",
        "prov",
        "prosp",
        "str",
        "st",
        "ave",
        "blvd",
        "ln",
        "sq",
    }
)

HONORIFIC_WORDS: Final[frozenset[str]] = frozenset(
    {
        "академіка",
        "академика",
        "генерала",
        "маршала",
        "адмірала",
        "адмирала",
        "капітана",
        "капитана",
        "професора",
        "профессора",
        "атамана",
        "отамана",
        "гетьмана",
        "гетмана",
        "лейтенанта",
        "полковника",
        "сержанта",
        "космонавта",
        "героя",
        "героїв",
        "героев",
        "герои",
        "святого",
        "святої",
        "святой",
        "князя",
        "княгині",
        "княгини",
        "academician",
        "akademika",
        "general",
        "generala",
        "henerala",
        "marshal",
        "marshala",
        "admiral",
        "admirala",
        "captain",
        "kapitana",
        "professor",
        "profesora",
        "ataman",
        "otamana",
        "hetman",
        "hetmana",
        "lieutenant",
        "colonel",
        "polkovnyka",
        "sergeant",
        "cosmonaut",
        "hero",
        "heroes",
        "heroiv",
        "saint",
        "sviatoho",
        "prince",
        "princess",
        "kniazia",
    }
)

HONORIFIC_ABBREVIATIONS: Final[frozenset[str]] = frozenset(
    {
        "ак",
        "акад",
        "ген",
        "марш",
        "адм",
        "гетьм",
        "кап",
        "проф",
        "атам",
        "отам",
        "лейт",
        "сп",
        "св",
        "вице-адм",
        "віце-адм",
        "acad",
        "gen",
        "adm",
        "prof",
        "col",
        "lt",
    }
)

CONJUNCTIONS: Final[frozenset[str]] = frozenset({"и", "та", "і", "and"})

_QUOTE_CHARS: Final[str] = "'\"`´ʼʻ’‘«»“”„‹›"
_QUOTE_REMOVAL: Final = str.maketrans(dict.fromkeys(_QUOTE_CHARS))
_DASHES: Final = str.maketrans(dict.fromkeys("‐‑‒–—―−", "-"))
_PARENTHETICAL: Final = re.compile(r"\(([^)]*)\)")
_WHITESPACE: Final = re.compile(r"\s+")
_ALTERNATE_SEPARATOR: Final = re.compile(r"[,;/]")
_DUAL_PERSON: Final = re.compile(r"\s(?:та|і|и|and)\s")


def _fold_word(word: str) -> str:
    return unicodedata.normalize("NFKC", word).casefold().translate(_QUOTE_REMOVAL).translate(
        _SOFT_FOLDS
    )


_SOFT_STOP_TOKENS: Final[frozenset[str]] = frozenset(
    _fold_word(word)
    for word in (
        STREET_TYPE_WORDS | STREET_TYPE_ABBREVIATIONS | HONORIFIC_WORDS | HONORIFIC_ABBREVIATIONS
    )
    | CONJUNCTIONS
)


def _cross_stop_tokens() -> frozenset[str]:
    tokens = set(_SOFT_STOP_TOKENS)
    for token in _SOFT_STOP_TOKENS:
        folded = token.translate(_CROSS_FOLDS)
        # hyphenated abbreviations split into fragments that are not words
        if " " not in folded:
            tokens.add(folded)
    return frozenset(tokens)


_CROSS_STOP_TOKENS: Final[frozenset[str]] = _cross_stop_tokens()

_DOTTED_ABBREVIATION: Final = re.compile(
    r"(?<!\w)(?:"
    + "|".join(
        re.escape(abbreviation)
        for abbreviation in sorted(
            STREET_TYPE_ABBREVIATIONS | HONORIFIC_ABBREVIATIONS, key=len, reverse=True
        )
    )
    + r")\."
)


def _strip_punctuation(value: str) -> str:
    chars: list[str] = []
    for char in value:
        if char == "-":
            chars.append(char)
            continue
        category = unicodedata.category(char)
        chars.append(" " if category[0] in {"P", "S"} else char)
    return "".join(chars)


def _drop_tokens(value: str, stop_tokens: frozenset[str]) -> str:
    tokens = (token.strip("-") for token in value.split())
    return " ".join(token for token in tokens if token and token not in stop_tokens)


def soft_normalize(name: str | None) -> str:
    """Lowercase, strip type/rank words and punctuation, fold language-unique letters.

    Parenthetical content is dropped; :func:`name_variants` treats it as an
    alternate name of its own.
    """

    if not name or not name.strip():
        return ""
    value = unicodedata.normalize("NFKC", name).casefold()
    value = _PARENTHETICAL.sub(" ", value)
    value = value.translate(_DASHES)
    value = _DOTTED_ABBREVIATION.sub(" ", value)
    value = value.translate(_QUOTE_REMOVAL)
    value = _strip_punctuation(value)
    value = value.translate(_SOFT_FOLDS)
    return _drop_tokens(value, _SOFT_STOP_TOKENS)


def cross_normalize(name: str | None) -> str:
    """Soft-normalize, then fold letters that diverge between Ukrainian and Russian."""

    softened = soft_normalize(name)
    if not softened:
        return ""
    return _drop_tokens(softened.translate(_CROSS_FOLDS), _CROSS_STOP_TOKENS)


def text_forms(text: str | None) -> tuple[str, str]:
    """Return the soft and cross forms of free text, keeping parenthesised words."""

    if not text:
        return ("", "")
    opened = text.replace("(", " ").replace(")", " ")
    return (soft_normalize(opened), cross_normalize(opened))


class SurnamePolicy(StrEnum):
    """Whether single words of a multi-word name become standalone variants."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


def has_dual_person_conjunction(name: str) -> bool:
    """Return whether the name joins two people ("Кирила та Мефодія")."""

    return _DUAL_PERSON.search(f" {name.casefold()} ") is not None


def _parenthetical_alternates(name: str) -> list[str]:
    alternates: list[str] = []
    for match in _PARENTHETICAL.finditer(name):
        alternates.extend(
            part.strip() for part in _ALTERNATE_SEPARATOR.split(match.group(1)) if part.strip()
        )
    return alternates


def _derived_word_variants(form: str) -> list[str]:
    derived: list[str] = []
    words = form.split()
    meaningful = [word for word in words if len(word) >= 2]
    if len(meaningful) == 2:
        derived.append(f"{meaningful[1]} {meaningful[0]}")
    without_initials = [word for word in words if len(word) >= 3]
    if without_initials and len(without_initials) < len(words):
        derived.append(" ".join(without_initials))
        if len(without_initials) == 2:
            derived.append(f"{without_initials[1]} {without_initials[0]}")
    return derived


def _surname_variants(form: str) -> list[str]:
    long_words = [word for word in form.split() if len(word) >= 4]
    if len(long_words) < 2:
        return []
    return [word for word in long_words if len(word) >= 5]


def name_variants(
    name: str | None,
    *,
    surnames: SurnamePolicy = SurnamePolicy.AUTO,
) -> frozenset[str]:
    """Return every normalized variant (length >= 2) of one raw display name."""

    if not name or not name.strip():
        return frozenset()

    found: set[str] = set()
    soft = soft_normalize(name)
    cross = cross_normalize(name)
    found.update((soft, cross))

    # soft/cross already drop the parenthetical, so only the alternates remain
    for alternate in _parenthetical_alternates(name):
        found.update((soft_normalize(alternate), cross_normalize(alternate)))

    for form in (soft, cross):
        found.update(_derived_word_variants(form))

    add_surnames = surnames is SurnamePolicy.ALWAYS or (
        surnames is SurnamePolicy.AUTO and not has_dual_person_conjunction(name)
    )
    if add_surnames:
        for form in (soft, cross):
            found.update(_surname_variants(form))

    return frozenset(variant for variant in found if len(variant) >= 2)


def street_variants(
    names: Iterable[str | None],
    *,
    surnames: SurnamePolicy = SurnamePolicy.AUTO,
) -> frozenset[str]:
    """Union of :func:`name_variants` over several raw names of one street."""

    found: set[str] = set()
    for name in names:
        found.update(name_variants(name, surnames=surnames))
    return frozenset(found)


def sorted_variants(
    names: Iterable[str | None],
    *,
    surnames: SurnamePolicy = SurnamePolicy.AUTO,
) -> tuple[str, ...]:
    return tuple(sorted(street_variants(names, surnames=surnames)))
