"""Recommended spelling selection for variant clusters."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .comparison import WORD, base_token_index, given_name_tokens, has_word
from .models import VariantEntry
from .normalization import title_case


def recommend_surname(variants: Sequence[VariantEntry]) -> str:
    """Return the most frequent spelling, earliest seen on ties."""

    if not variants:
        return ""
    best = max(range(len(variants)), key=lambda index: (variants[index].frequency, -index))
    return variants[best].last_name or variants[best].name


def recommend_given_name(variants: Sequence[VariantEntry]) -> str:
    """Compose the fullest given name supported by a cluster of variants.

    The principal name comes from the best-weighted variant; secondary words
    and initials are the union across the cluster, minus the principal's own
    initial and any initial already spelled out by a secondary word.
    """

    tokenized = [given_name_tokens(variant.first_name) for variant in variants]
    candidates = [index for index, tokens in enumerate(tokenized) if tokens]
    if not candidates:
        return ""

    def weight(index: int) -> tuple[int, int]:
        tokens = tokenized[index]
        score = variants[index].frequency + len(tokens)
        if has_word(tokens):
            score += 1000
        return score, -index

    best_tokens = tokenized[max(candidates, key=weight)]
    base_token = best_tokens[base_token_index(best_tokens)]
    if base_token.kind == WORD:
        base = base_token.value
    else:
        base = f"{base_token.value}."
    base_initial = base[:1].upper()

    extra_words: List[str] = []
    initials: List[str] = []
    for tokens in tokenized:
        base_index = base_token_index(tokens)
        for index, token in enumerate(tokens):
            if index == base_index:
                continue
            if token.kind == WORD:
                if token.value.lower() != base.lower() and token.value not in extra_words:
                    extra_words.append(token.value)
            elif token.value not in initials:
                initials.append(token.value)

    spelled_out = {word[:1].upper() for word in extra_words}
    initials = [letter for letter in initials if letter != base_initial and letter not in spelled_out]

    parts = [base] + extra_words + [f"{letter}." for letter in initials]
    return " ".join(parts)


def compose_full_name(first_name: str, surname: str) -> str:
    return f"{first_name} {surname}".strip()


def display_surname(spellings: Iterable[str]) -> str:
    """Title-case the first spelling when every spelling is upper or lower case."""

    values = [value for value in spellings if value]
    if not values:
        return ""
    first = values[0]
    if first.isupper() or first.islower():
        return title_case(first)
    return first


__all__ = [
    "compose_full_name",
    "display_surname",
    "recommend_given_name",
    "recommend_surname",
]
