"""Given-name token analysis used to decide which spellings may merge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .models import TokenSignature
from .normalization import is_likely_initial_sequence, letters_only, split_given_name, title_case

WORD = "word"
INITIAL = "initial"


@dataclass(frozen=True)
class GivenToken:
    kind: str
    value: str


def given_name_tokens(name: str) -> List[GivenToken]:
    """Split a given name into ordered word and initial tokens.

    "J.A." and "JA" expand to two initials; single letters are initials and
    everything else is a title-cased word.
    """

    tokens: List[GivenToken] = []
    for raw in split_given_name(name):
        cleaned = letters_only(raw)
        if not cleaned:
            continue
        if is_likely_initial_sequence(cleaned, raw):
            tokens.extend(GivenToken(INITIAL, letter) for letter in cleaned.upper())
        elif len(cleaned) == 1:
            tokens.append(GivenToken(INITIAL, cleaned.upper()))
        else:
            tokens.append(GivenToken(WORD, title_case(cleaned)))
    return tokens


def has_word(tokens: Sequence[GivenToken]) -> bool:
    return any(token.kind == WORD for token in tokens)


def base_token_index(tokens: Sequence[GivenToken]) -> int:
    """Index of the token standing for the principal given name, or -1."""

    for index, token in enumerate(tokens):
        if token.kind == WORD:
            return index
    return 0 if tokens else -1


def token_signature(tokens: Sequence[GivenToken]) -> TokenSignature:
    """Return the initials and secondary words beyond the principal given name."""

    base = base_token_index(tokens)
    initials = set()
    words = set()
    for index, token in enumerate(tokens):
        if index == base:
            continue
        if token.kind == WORD:
            words.add(token.value.lower())
        else:
            initials.add(token.value.upper())
    return TokenSignature(frozenset(initials), frozenset(words))


def signatures_overlap(left: TokenSignature, right: TokenSignature) -> bool:
    if left.is_empty() or right.is_empty():
        return False
    return left.overlaps(right)


__all__ = [
    "GivenToken",
    "INITIAL",
    "WORD",
    "base_token_index",
    "given_name_tokens",
    "has_word",
    "signatures_overlap",
    "token_signature",
]
