"""Name key and display helpers."""

from __future__ import annotations

import re

from .metrics import fold_diacritics
from .nicknames import canonical_given_name


INITIAL_KEY_PREFIX = "init:"

_TOKEN_SPLIT = re.compile(r"[\s-]+")
_TITLE_BOUNDARY = re.compile(r"(^|['`\-])([^\W\d_])")
_VOWELS = set("AEIOUY")


def title_case(value: str) -> str:
    """Capitalize each word, including letters after apostrophes and hyphens."""

    if not value:
        return ""
    parts = []
    for part in value.split():
        parts.append(_TITLE_BOUNDARY.sub(lambda m: m.group(1) + m.group(2).upper(), part.lower()))
    return " ".join(parts)


def letters_only(token: str) -> str:
    return "".join(char for char in token if char.isalpha())


def is_likely_initial_sequence(cleaned: str, original: str = "") -> bool:
    """Return True for runs such as "JA" or "J.A." that abbreviate several names."""

    if not cleaned or not 2 <= len(cleaned) <= 4:
        return False
    if not cleaned.isupper():
        return False
    if "." in original:
        return True
    return not any(char in _VOWELS for char in fold_diacritics(cleaned).upper())


def split_given_name(value: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT.split((value or "").strip()) if token]


def given_name_key(first_name: str) -> str:
    """Return the bucket key for a given name.

    Names made only of initials map to ``init:<LETTERS>``; anything else maps to
    its first word, folded and passed through the nickname table.
    """

    raw_tokens = split_given_name(first_name)
    cleaned = [(letters_only(token), token) for token in raw_tokens]
    cleaned = [(value, token) for value, token in cleaned if value]
    if not cleaned:
        return ""

    if all(len(value) == 1 for value, _ in cleaned):
        return INITIAL_KEY_PREFIX + "".join(value for value, _ in cleaned).upper()
    if len(cleaned) == 1 and is_likely_initial_sequence(*cleaned[0]):
        return INITIAL_KEY_PREFIX + cleaned[0][0].upper()

    for value, _ in cleaned:
        if len(value) > 1:
            return canonical_given_name(fold_diacritics(value))
    return canonical_given_name(fold_diacritics(cleaned[0][0]))


def is_initial_key(key: str) -> bool:
    return key.startswith(INITIAL_KEY_PREFIX)


def surname_key(last_name: str) -> str:
    return fold_diacritics((last_name or "").strip())


__all__ = [
    "INITIAL_KEY_PREFIX",
    "given_name_key",
    "is_initial_key",
    "is_likely_initial_sequence",
    "letters_only",
    "split_given_name",
    "surname_key",
    "title_case",
]
