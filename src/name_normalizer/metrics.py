"""String similarity metrics for name fragments."""

from __future__ import annotations

import unicodedata

from rapidfuzz.distance import Jaro, Levenshtein
from unidecode import unidecode


_FOLD_MAP = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ł": "l",
    "ß": "ss",
}

_PREFIX_SCALE = 0.1
_MAX_PREFIX = 4


def distance(a: str, b: str, max_distance: int | None = None) -> int:
    """Return the edit distance between `a` and `b`.

    When `max_distance` is given the result is capped at ``max_distance + 1``
    once the bound is exceeded.
    """

    return Levenshtein.distance(a, b, score_cutoff=max_distance)


def similarity(a: str, b: str) -> float:
    """Return the Jaro-Winkler similarity of `a` and `b` in [0, 1].

    The common-prefix bonus applies at every Jaro score, not only above 0.7.
    """

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    jaro = Jaro.similarity(a, b)
    if jaro == 0.0:
        return 0.0

    prefix = 0
    for char_a, char_b in zip(a[:_MAX_PREFIX], b[:_MAX_PREFIX]):
        if char_a != char_b:
            break
        prefix += 1

    return jaro + prefix * _PREFIX_SCALE * (1 - jaro)


def normalized_edit_similarity(a: str, b: str, threshold: float = 0.0) -> float:
    """Return ``1 - distance / max_len``, or 0 when the lengths are too far apart."""

    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    longest = max(len(a), len(b))
    shortest = min(len(a), len(b))
    if shortest / longest < threshold:
        return 0.0

    bound = int(longest * (1 - threshold))
    dist = distance(a, b, bound)
    if dist > bound:
        return 0.0
    return 1 - dist / longest


def fold_diacritics(value: str) -> str:
    """Return a lowercase, accent-free comparison form of `value`."""

    if not value:
        return ""
    folded = "".join(_FOLD_MAP.get(char, char) for char in value.casefold())
    decomposed = unicodedata.normalize("NFD", folded)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    if stripped.isascii():
        return stripped
    return unidecode(stripped).lower()


def is_diacritic_only_variant(a: str, b: str) -> bool:
    """Return True when `a` and `b` differ only in accents or case."""

    if not a or not b:
        return False
    return fold_diacritics(a) == fold_diacritics(b)


__all__ = [
    "distance",
    "similarity",
    "normalized_edit_similarity",
    "fold_diacritics",
    "is_diacritic_only_variant",
]
