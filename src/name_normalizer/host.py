"""Interfaces the host application provides to the normalizer."""

from __future__ import annotations

from typing import Iterable, List, Protocol

from .models import CreatorRecord


class CreatorSource(Protocol):
    def list_creator_records(self) -> List[CreatorRecord]: ...


class StaticCreatorSource:
    """Serve a fixed list of records, e.g. loaded from a spreadsheet."""

    def __init__(self, records: Iterable[CreatorRecord]) -> None:
        self.records = list(records)

    def list_creator_records(self) -> List[CreatorRecord]:
        return list(self.records)


__all__ = ["CreatorSource", "StaticCreatorSource"]
