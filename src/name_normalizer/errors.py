"""Exceptions raised by the name normalizer."""

from __future__ import annotations


class NameNormalizerError(Exception):
    """Base class for name normalizer failures."""


class AnalysisCancelled(NameNormalizerError):
    """Raised when the host cancels an analysis pass."""

    def __init__(self, message: str = "Analysis cancelled") -> None:
        super().__init__(message)


class HostUnavailableError(NameNormalizerError):
    """Raised when the host record source is missing."""


class StorageError(NameNormalizerError):
    """Raised by a key-value store that cannot read or write."""


__all__ = [
    "NameNormalizerError",
    "AnalysisCancelled",
    "HostUnavailableError",
    "StorageError",
]
