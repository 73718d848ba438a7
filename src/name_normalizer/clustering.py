"""Surname and given-name variant clustering."""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .canonical import compose_full_name, display_surname, recommend_given_name, recommend_surname
from .comparison import given_name_tokens, signatures_overlap, token_signature
from .errors import AnalysisCancelled
from .models import CreatorRecord, ProgressEvent, TokenSignature, VariantCluster, VariantEntry
from .normalization import INITIAL_KEY_PREFIX, given_name_key, is_initial_key, surname_key
from .parsing import NameParser
from .structures import DisjointSet

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]
CancelCheck = Callable[[], bool]


class StageTracker:
    """Report progress and poll for cancellation while walking one stage."""

    def __init__(
        self,
        stage: str,
        total: int,
        progress: Optional[ProgressSink] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> None:
        self.stage = stage
        self.total = total
        self.progress = progress
        self.should_cancel = should_cancel
        self.interval = max(50, math.ceil(total * 0.05))
        self.failed = 0
        self.check_cancel()

    def check_cancel(self) -> None:
        if self.should_cancel is not None and self.should_cancel():
            raise AnalysisCancelled()

    def step(self, processed: int) -> None:
        if processed in (1, self.total) or processed % self.interval == 0:
            self.check_cancel()
            if self.progress is not None:
                self.progress(ProgressEvent(self.stage, processed, self.total))


# -- Pass A: diacritic surname variants per author ----------------------


def find_surname_clusters(
    records: Sequence[CreatorRecord],
    tracker: Optional[StageTracker] = None,
) -> List[VariantCluster]:
    """Group each author's surname spellings that differ only by accents or case."""

    buckets: Dict[Tuple[str, str], Dict[str, VariantEntry]] = {}
    for position, record in enumerate(records, start=1):
        try:
            last = record.last_name.strip()
            folded = surname_key(last)
            if folded:
                author_key = (given_name_key(record.first_name), folded)
                spellings = buckets.setdefault(author_key, {})
                entry = spellings.get(last)
                if entry is None:
                    entry = VariantEntry(name=last, last_name=last)
                    spellings[last] = entry
                entry.absorb(record)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Skipping creator record %r: %s", record, exc)
            if tracker is not None:
                tracker.failed += 1
        if tracker is not None:
            tracker.step(position)

    clusters: List[VariantCluster] = []
    for (given_key, folded), spellings in buckets.items():
        if len(spellings) < 2:
            continue
        variants = list(spellings.values())
        primary = recommend_surname(variants)
        clusters.append(
            VariantCluster(
                kind="surname",
                surname=primary,
                surname_key=folded,
                given_key=given_key,
                variants=variants,
            )
        )
    return clusters


# -- Pass B: given-name variants per surname ----------------------------


def effective_given_name(record: CreatorRecord, parser: NameParser) -> str:
    """Given name of `record` with suffixes dropped and mojibake repaired.

    The full name is re-parsed only when the parse reproduces the stored
    surname; compound surnames otherwise keep the raw first name.
    """

    first = record.first_name.strip()
    last = record.last_name.strip()
    if not first:
        return ""
    parsed = parser.parse(f"{first} {last}")
    reparsed_last = " ".join(part for part in (parsed.prefix, parsed.last_name) if part)
    if parsed.given_name and reparsed_last == last:
        return parsed.given_name
    return " ".join(first.split())


def merge_initial_buckets(buckets: Dict[str, list]) -> Dict[str, list]:
    """Fold ``init:`` buckets into a full-name bucket that can expand them."""

    full_keys = [key for key in buckets if not is_initial_key(key)]
    if not full_keys:
        return buckets

    for key in [key for key in buckets if is_initial_key(key)]:
        letters = key[len(INITIAL_KEY_PREFIX):].lower()
        if not letters:
            continue
        destination = None
        if len(letters) > 1:
            destination = next((candidate for candidate in full_keys if candidate.startswith(letters)), None)
        if destination is None:
            destination = next((candidate for candidate in full_keys if candidate[:1] == letters[0]), None)
        if destination is not None:
            buckets[destination].extend(buckets.pop(key))
    return buckets


def partition_by_signature(
    signatures: Sequence[TokenSignature],
    frequencies: Sequence[int],
    label: Callable[[List[int]], str],
) -> List[List[int]]:
    """Split variant indices into components joined by overlapping signatures.

    Indices without a signature join the component with the highest total
    frequency (ties go to the smallest `label`). With no signatures at all every
    index lands in one component.
    """

    size = len(signatures)
    connected = [index for index in range(size) if not signatures[index].is_empty()]
    if not connected:
        return [list(range(size))] if size else []

    sets = DisjointSet(size)
    for offset, left in enumerate(connected):
        for right in connected[offset + 1:]:
            if signatures_overlap(signatures[left], signatures[right]):
                sets.union(left, right)

    components = [members for members in sets.components() if not signatures[members[0]].is_empty()]
    bare = [index for index in range(size) if signatures[index].is_empty()]
    if bare:
        target = min(
            range(len(components)),
            key=lambda idx: (-sum(frequencies[i] for i in components[idx]), label(components[idx])),
        )
        components[target] = sorted(components[target] + bare)
    return components


def _component_label(variants: Sequence[VariantEntry], members: Sequence[int], surname: str) -> str:
    return compose_full_name(recommend_given_name([variants[index] for index in members]), surname)


def cluster_given_names_for_surname(
    surname_lower: str,
    records: Sequence[CreatorRecord],
    parser: NameParser,
) -> List[VariantCluster]:
    surname = display_surname(record.last_name.strip() for record in records)
    buckets: Dict[str, List[Tuple[CreatorRecord, str]]] = {}
    for record in records:
        given = effective_given_name(record, parser)
        if not given:
            continue
        key = given_name_key(given) or given.lower()
        buckets.setdefault(key, []).append((record, given))
    merge_initial_buckets(buckets)

    clusters: List[VariantCluster] = []
    for key, members in buckets.items():
        entries: Dict[str, VariantEntry] = {}
        for record, given in members:
            entry = entries.get(given.lower())
            if entry is None:
                entry = VariantEntry(
                    name=compose_full_name(given, surname),
                    first_name=given,
                    last_name=surname,
                )
                entries[given.lower()] = entry
            entry.absorb(record)
        if len(entries) < 2:
            continue

        variants = list(entries.values())
        signatures = [token_signature(given_name_tokens(variant.first_name)) for variant in variants]
        frequencies = [variant.frequency for variant in variants]
        components = partition_by_signature(
            signatures,
            frequencies,
            lambda members: _component_label(variants, members, surname),
        )
        for component in components:
            if len(component) < 2:
                continue
            cluster_variants = [variants[index] for index in component]
            first_name = recommend_given_name(cluster_variants)
            clusters.append(
                VariantCluster(
                    kind="given-name",
                    surname=surname,
                    surname_key=surname_lower,
                    given_key=key,
                    variants=cluster_variants,
                    recommended_first_name=first_name,
                    recommended_full_name=compose_full_name(first_name, surname),
                )
            )
    return clusters


def find_given_name_clusters(
    records: Sequence[CreatorRecord],
    parser: NameParser,
    tracker_factory: Optional[Callable[[int], StageTracker]] = None,
) -> List[VariantCluster]:
    """Cluster given-name spellings within each surname, keeping different people apart."""

    by_surname: Dict[str, List[CreatorRecord]] = {}
    for record in records:
        if record.is_single_field or not record.last_name.strip():
            continue
        by_surname.setdefault(record.last_name.strip().lower(), []).append(record)

    tracker = tracker_factory(len(by_surname)) if tracker_factory is not None else None
    clusters: List[VariantCluster] = []
    for position, (surname_lower, group) in enumerate(by_surname.items(), start=1):
        if len(group) >= 2:
            try:
                clusters.extend(cluster_given_names_for_surname(surname_lower, group, parser))
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning("Skipping surname group %r: %s", surname_lower, exc)
                if tracker is not None:
                    tracker.failed += 1
        if tracker is not None:
            tracker.step(position)
    return clusters


__all__ = [
    "StageTracker",
    "cluster_given_names_for_surname",
    "effective_given_name",
    "find_given_name_clusters",
    "find_surname_clusters",
    "merge_initial_buckets",
    "partition_by_signature",
]
