"""Presentation variants of a parsed name."""

from __future__ import annotations

import re
from typing import Callable, List, Optional

from .parsing import ParsedName


_REPEATED_DOTS = re.compile(r"\.{2,}")


def _initial(part: str) -> str:
    return part[:1].upper() + "."


def _middle_parts(parsed: ParsedName) -> List[str]:
    return parsed.middle_name.split() if parsed.middle_name else []


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part).strip()


def full_form(parsed: ParsedName) -> Optional[str]:
    return _join(parsed.first_name, parsed.middle_name, parsed.prefix, parsed.last_name) or None


def initials_form(parsed: ParsedName) -> Optional[str]:
    if not parsed.first_name or not parsed.last_name:
        return None
    middle = " ".join(_initial(part) for part in _middle_parts(parsed))
    return _join(_initial(parsed.first_name), middle, parsed.prefix, parsed.last_name)


def last_only_form(parsed: ParsedName) -> Optional[str]:
    return parsed.last_name.strip() or None


def first_initial_last_form(parsed: ParsedName) -> Optional[str]:
    if not parsed.first_name or not parsed.last_name:
        return None
    return _join(_initial(parsed.first_name), parsed.prefix, parsed.last_name)


def first_initials_last_form(parsed: ParsedName) -> Optional[str]:
    if not parsed.first_name or not parsed.last_name:
        return None
    leading = _initial(parsed.first_name) + "".join(_initial(part) for part in _middle_parts(parsed))
    return _REPEATED_DOTS.sub(".", _join(leading, parsed.prefix, parsed.last_name))


_FORMS: List[Callable[[ParsedName], Optional[str]]] = [
    full_form,
    initials_form,
    last_only_form,
    first_initial_last_form,
    first_initials_last_form,
]


def generate(parsed: ParsedName) -> List[str]:
    """Return the distinct display variants of `parsed`, original last."""

    variants: List[str] = []
    for form in _FORMS:
        variant = form(parsed)
        if variant and variant not in variants:
            variants.append(variant)
    if parsed.original not in variants:
        variants.append(parsed.original)
    return variants


def canonical(parsed: ParsedName) -> str:
    """Return the uppercase "LAST FIRST MIDDLE" comparison form."""

    parts = [parsed.last_name.upper(), parsed.first_name.upper()]
    parts.extend(part.upper() for part in _middle_parts(parsed))
    return _join(*parts)


__all__ = [
    "canonical",
    "generate",
    "full_form",
    "initials_form",
    "last_only_form",
    "first_initial_last_form",
    "first_initials_last_form",
]
