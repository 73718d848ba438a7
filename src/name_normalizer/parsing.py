"""Decomposition of raw author strings into name parts."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import ftfy

from .cache import BoundedCache


NAME_PREFIXES: Tuple[str, ...] = (
    "van", "de", "la", "von", "del", "di", "du", "le", "lo", "da", "des", "dos",
    "das", "el", "al", "do", "d", "O'", "Mac", "Mc", "Saint", "St", "San", "Santa",
)
NAME_SUFFIXES: Tuple[str, ...] = ("Jr", "Sr", "II", "III", "IV", "PhD", "MD")

# particles that absorb a following capitalized word ("del Carmen")
_PREFIXES_TAKING_NAME = frozenset({"del", "de", "da", "das", "dos", "do", "du", "des", "di"})

_PREFIX_SET = frozenset(prefix.lower() for prefix in NAME_PREFIXES)
# "Jr"/"Sr" match in any case; numerals and degrees only as written
_GENERATIONAL_SUFFIXES = frozenset({"jr", "sr"})
_EXACT_SUFFIXES = frozenset(NAME_SUFFIXES) - {"Jr", "Sr"}
_CAPITALIZED_WORD = re.compile(r"^[A-Z][a-zA-Z]+$")
_VOWEL = re.compile(r"[AEIOUYaeiouy]")


@dataclass(frozen=True)
class ParsedName:
    """Structured view of a single author string."""

    prefix: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    suffix: str = ""
    original: str = ""

    @property
    def given_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.middle_name) if part)

    def is_empty(self) -> bool:
        return not (self.prefix or self.first_name or self.middle_name or self.last_name or self.suffix)


def is_prefix(token: str) -> bool:
    return token.lower() in _PREFIX_SET


def is_suffix(token: str) -> bool:
    core = token[:-1] if token.endswith(".") else token
    return core.lower() in _GENERATIONAL_SUFFIXES or core in _EXACT_SUFFIXES


def strip_trailing_period(token: str) -> str:
    """Drop a trailing period that ends a real word, leaving initials alone."""

    if not token.endswith("."):
        return token
    core = token[:-1]
    if len(core) < 2 or "." in core:
        return token
    if not any(char.isalpha() for char in core):
        return token
    if not _VOWEL.search(core):
        return token
    return core


def _strip_tokens(tokens: Sequence[str]) -> str:
    return " ".join(strip_trailing_period(token) for token in tokens)


def _has_letters(value: str) -> bool:
    return any(char.isalpha() for char in value)


def _tokenize(value: str) -> List[str]:
    return [token for token in value.strip().rstrip(", ").split() if token]


class NameParser:
    """Parse raw author strings, memoizing results by exact input."""

    def __init__(self, cache_size: int = 5000) -> None:
        self._cache: BoundedCache[str, ParsedName] = BoundedCache(cache_size)

    def parse(self, raw: str) -> ParsedName:
        original = str(raw or "")
        cached = self._cache.get(original)
        if cached is not None:
            return cached
        parsed = self._parse(original)
        self._cache.put(original, parsed)
        return parsed

    def clear_cache(self) -> None:
        self._cache.clear()

    def _parse(self, original: str) -> ParsedName:
        working = ftfy.fix_text(original).strip()
        if not working:
            return ParsedName(original=original)

        if "," in working:
            head, tail = working.split(",", 1)
            tail_tokens = [token.strip(",") for token in _tokenize(tail)]
            tail_tokens = [token for token in tail_tokens if token]
            if _has_letters(head) and _has_letters(tail):
                if all(is_suffix(token) and len(token.rstrip(".")) > 1 for token in tail_tokens):
                    # "John Smith, Jr." carries a suffix, not an inversion
                    parsed = self._parse_ordered(_tokenize(head), original)
                    suffix = " ".join(part for part in (parsed.suffix, " ".join(tail_tokens)) if part)
                    return ParsedName(
                        prefix=parsed.prefix,
                        first_name=parsed.first_name,
                        middle_name=parsed.middle_name,
                        last_name=parsed.last_name,
                        suffix=suffix,
                        original=original,
                    )
                return self._parse_inverted(head.strip(), tail_tokens, original)

        return self._parse_ordered(_tokenize(working), original)

    @staticmethod
    def _parse_inverted(last: str, given_tokens: List[str], original: str) -> ParsedName:
        end = len(given_tokens)
        while end > 1 and is_suffix(given_tokens[end - 1]):
            end -= 1
        first = given_tokens[0] if given_tokens else ""
        return ParsedName(
            first_name=strip_trailing_period(first),
            middle_name=_strip_tokens(given_tokens[1:end]),
            last_name=strip_trailing_period(last),
            suffix=" ".join(given_tokens[end:]),
            original=original,
        )

    @staticmethod
    def _parse_ordered(tokens: List[str], original: str) -> ParsedName:
        if not tokens:
            return ParsedName(original=original)

        if len(tokens) == 1:
            token = tokens[0]
            if is_prefix(token):
                return ParsedName(prefix=token, original=original)
            return ParsedName(last_name=strip_trailing_period(token), original=original)

        first = tokens[0]
        idx = 1
        prefix_parts: List[str] = []
        while idx < len(tokens) - 1 and is_prefix(tokens[idx]):
            prefix_parts.append(tokens[idx])
            idx += 1
        if (
            prefix_parts
            and prefix_parts[-1].lower() in _PREFIXES_TAKING_NAME
            and idx < len(tokens) - 1
            and _CAPITALIZED_WORD.match(tokens[idx])
        ):
            prefix_parts.append(tokens[idx])
            idx += 1

        end = len(tokens)
        while end - 1 > idx and is_suffix(tokens[end - 1]):
            end -= 1

        gap = tokens[idx:end]
        return ParsedName(
            prefix=" ".join(prefix_parts),
            first_name=strip_trailing_period(first),
            middle_name=_strip_tokens(gap[:-1]),
            last_name=strip_trailing_period(gap[-1]) if gap else "",
            suffix=" ".join(tokens[end:]),
            original=original,
        )


__all__ = [
    "NAME_PREFIXES",
    "NAME_SUFFIXES",
    "NameParser",
    "ParsedName",
    "is_prefix",
    "is_suffix",
    "strip_trailing_period",
]
