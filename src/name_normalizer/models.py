"""Value types shared by the clustering and suggestion stages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

MAX_ITEM_SUMMARIES = 25

_YEAR_PATTERN = re.compile(r"(\d{4})")


@dataclass(frozen=True)
class ItemSummary:
    """Compact description of a publication a creator appears on."""

    id: Any = None
    key: Optional[str] = None
    title: str = "Untitled"
    date: str = ""
    year: str = ""
    item_type: str = ""

    @classmethod
    def build(
        cls,
        id: Any = None,
        key: Optional[str] = None,
        title: str = "",
        date: str = "",
        item_type: str = "",
    ) -> "ItemSummary":
        date = str(date or "")
        match = _YEAR_PATTERN.search(date)
        return cls(
            id=id,
            key=key,
            title=title or "Untitled",
            date=date,
            year=match.group(1) if match else "",
            item_type=item_type or "",
        )

    @property
    def identity(self) -> Any:
        return self.key or self.id or (self.title, self.date)


def merge_item_summaries(
    existing: Iterable[ItemSummary],
    incoming: Iterable[ItemSummary],
    limit: int = MAX_ITEM_SUMMARIES,
) -> List[ItemSummary]:
    """Union two summary lists by identity, keeping at most `limit` entries."""

    merged: Dict[Any, ItemSummary] = {}
    for summary in list(existing) + list(incoming):
        if len(merged) >= limit:
            break
        if summary is None:
            continue
        merged.setdefault(summary.identity, summary)
    return list(merged.values())


@dataclass(eq=False)
class CreatorRecord:
    """One distinct (first, last, field mode) creator with its occurrence count."""

    first_name: str = ""
    last_name: str = ""
    field_mode: int = 0
    count: int = 1
    items: List[ItemSummary] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.first_name}|{self.last_name}|{self.field_mode}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_single_field(self) -> bool:
        return self.field_mode == 1


def collapse_creators(rows: Iterable[Mapping[str, Any]]) -> List[CreatorRecord]:
    """Collapse raw creator occurrences into counted :class:CreatorRecord objects.

    Each row needs ``first_name``/``last_name`` and may carry ``field_mode`` and
    item fields (``item_id``, ``item_key``, ``title``, ``date``, ``item_type``).
    Rows without any name are ignored.
    """

    records: Dict[Tuple[str, str, int], CreatorRecord] = {}
    for row in rows:
        first = _clean(row.get("first_name"))
        last = _clean(row.get("last_name"))
        if not first and not last:
            continue
        mode = int(row.get("field_mode") or 0)
        key = (first, last, mode)
        record = records.get(key)
        if record is None:
            record = CreatorRecord(first_name=first, last_name=last, field_mode=mode, count=0)
            records[key] = record
        record.count += 1

        if any(row.get(name) for name in ("item_id", "item_key", "title")):
            summary = ItemSummary.build(
                id=row.get("item_id"),
                key=row.get("item_key"),
                title=_clean(row.get("title")),
                date=_clean(row.get("date")),
                item_type=_clean(row.get("item_type")),
            )
            if len(record.items) < MAX_ITEM_SUMMARIES:
                record.items.append(summary)
    return list(records.values())


def _clean(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    if text.lower() == "nan":
        return ""
    return text.strip()


@dataclass(frozen=True)
class TokenSignature:
    """Initials and secondary words that distinguish a given-name spelling."""

    initials: frozenset = frozenset()
    extra_words: frozenset = frozenset()

    def is_empty(self) -> bool:
        return not self.initials and not self.extra_words

    def overlaps(self, other: "TokenSignature") -> bool:
        return bool(self.initials & other.initials) or bool(self.extra_words & other.extra_words)


@dataclass
class VariantEntry:
    """A distinct spelling inside a cluster, with the records that use it."""

    name: str
    first_name: str = ""
    last_name: str = ""
    frequency: int = 0
    items: List[ItemSummary] = field(default_factory=list)
    records: List[CreatorRecord] = field(default_factory=list)

    def absorb(self, record: CreatorRecord) -> None:
        self.frequency += record.count or 1
        self.items = merge_item_summaries(self.items, record.items)
        if all(existing is not record for existing in self.records):
            self.records.append(record)

    def merge(self, other: "VariantEntry") -> None:
        self.frequency += other.frequency
        self.items = merge_item_summaries(self.items, other.items)
        for record in other.records:
            if all(existing is not record for existing in self.records):
                self.records.append(record)


@dataclass
class VariantCluster:
    """Spellings believed to denote one person (given-name) or one surname."""

    kind: str
    surname: str
    surname_key: str
    variants: List[VariantEntry]
    given_key: str = ""
    recommended_first_name: str = ""
    recommended_full_name: str = ""

    @property
    def total_frequency(self) -> int:
        return sum(variant.frequency for variant in self.variants)


@dataclass
class Suggestion:
    """A proposed normalization handed to the host for review."""

    type: str
    primary: str
    variants: List[VariantEntry]
    similarity: float = 1.0
    surname: str = ""
    surname_key: str = ""
    given_key: str = ""
    recommended_first_name: str = ""
    related_clusters: List[VariantCluster] = field(default_factory=list)

    @property
    def first_name_pattern(self) -> str:
        return self.given_key if self.type == "given-name" else ""

    @property
    def total_frequency(self) -> int:
        return sum(variant.frequency for variant in self.variants)

    @property
    def is_combined(self) -> bool:
        return bool(self.related_clusters)

    def variant_names(self) -> List[str]:
        return [variant.name for variant in self.variants]


@dataclass
class ProgressEvent:
    stage: str
    processed: int
    total: int

    @property
    def percent(self) -> int:
        if not self.total:
            return 100
        return round(self.processed / self.total * 100)


@dataclass
class AnalysisStats:
    """Summary metrics for an analysis pass."""

    total_records: int = 0
    surname_clusters: int = 0
    given_name_clusters: int = 0
    suppressed_distinct: int = 0
    suppressed_skipped: int = 0
    records_failed: int = 0
    runtime_seconds: float = 0.0


@dataclass
class AnalysisResult:
    suggestions: List[Suggestion]
    surname_frequencies: Dict[str, int]
    stats: AnalysisStats

    @property
    def total_unique_surnames(self) -> int:
        return len(self.surname_frequencies)

    @property
    def total_variant_groups(self) -> int:
        return len(self.suggestions)


@dataclass
class RecordUpdate:
    """New name values the host should write back to `record`."""

    record: CreatorRecord
    first_name: str
    last_name: str


@dataclass
class ApplyResult:
    applied: int = 0
    updated_records: List[RecordUpdate] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    declined_recorded: int = 0
    skipped_recorded: int = 0


__all__ = [
    "AnalysisResult",
    "AnalysisStats",
    "ApplyResult",
    "CreatorRecord",
    "ItemSummary",
    "ProgressEvent",
    "RecordUpdate",
    "Suggestion",
    "TokenSignature",
    "VariantCluster",
    "VariantEntry",
    "collapse_creators",
    "merge_item_summaries",
]
