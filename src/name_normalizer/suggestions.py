"""Turn clusters into reviewable suggestions and plan their application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .canonical import compose_full_name, recommend_surname
from .learning import LearningEngine
from .metrics import fold_diacritics, similarity
from .models import RecordUpdate, Suggestion, VariantCluster, VariantEntry
from .normalization import title_case

SURNAME = "surname"
GIVEN_NAME = "given-name"


@dataclass(frozen=True)
class VariantPair:
    name_a: str
    name_b: str
    scope: str


def _copy_entry(entry: VariantEntry) -> VariantEntry:
    return VariantEntry(
        name=entry.name,
        first_name=entry.first_name,
        last_name=entry.last_name,
        frequency=entry.frequency,
        items=list(entry.items),
        records=list(entry.records),
    )


def _min_similarity(primary: str, names: Iterable[str]) -> float:
    scores = [similarity(primary.lower(), name.lower()) for name in names if name != primary]
    return round(min(scores), 4) if scores else 1.0


def given_scope(surname_key: str) -> str:
    return f"given:{surname_key}"


def build_suggestions(
    surname_clusters: Sequence[VariantCluster],
    given_clusters: Sequence[VariantCluster],
) -> List[Suggestion]:
    """Merge per-author surname clusters and attach given-name clusters.

    Surname clusters that fold to the same key become one surname suggestion.
    A given-name cluster whose surname folds to that key rides along in
    ``related_clusters``; the rest stand alone as given-name suggestions.
    """

    merged: Dict[str, Dict[str, VariantEntry]] = {}
    for cluster in surname_clusters:
        spellings = merged.setdefault(cluster.surname_key, {})
        for variant in cluster.variants:
            existing = spellings.get(variant.name)
            if existing is None:
                spellings[variant.name] = _copy_entry(variant)
            else:
                existing.merge(variant)

    suggestions: List[Suggestion] = []
    by_surname_key: Dict[str, Suggestion] = {}
    for folded, spellings in merged.items():
        variants = sorted(spellings.values(), key=lambda variant: -variant.frequency)
        primary = recommend_surname(list(spellings.values()))
        suggestion = Suggestion(
            type=SURNAME,
            primary=primary,
            variants=variants,
            similarity=_min_similarity(primary, (variant.name for variant in variants)),
            surname=primary,
            surname_key=folded,
        )
        suggestions.append(suggestion)
        by_surname_key[folded] = suggestion

    for cluster in given_clusters:
        target = by_surname_key.get(fold_diacritics(cluster.surname_key))
        if target is not None:
            cluster.recommended_full_name = compose_full_name(cluster.recommended_first_name, target.primary)
            target.related_clusters.append(cluster)
            continue
        suggestions.append(
            Suggestion(
                type=GIVEN_NAME,
                primary=cluster.recommended_full_name,
                variants=list(cluster.variants),
                similarity=_min_similarity(
                    cluster.recommended_full_name,
                    (variant.name for variant in cluster.variants),
                ),
                surname=cluster.surname,
                surname_key=cluster.surname_key,
                given_key=cluster.given_key,
                recommended_first_name=cluster.recommended_first_name,
            )
        )
    return suggestions


def _pairs(names: Sequence[str], scope: str) -> List[VariantPair]:
    pairs = []
    for index, name_a in enumerate(names):
        for name_b in names[index + 1:]:
            if name_a and name_b:
                pairs.append(VariantPair(name_a, name_b, scope))
    return pairs


def variant_pairs(suggestion: Suggestion) -> List[VariantPair]:
    """Every pair of spellings a suggestion would merge, with its decision scope."""

    names = [variant.name.strip() for variant in suggestion.variants]
    if suggestion.type == SURNAME:
        pairs = _pairs(names, SURNAME)
    else:
        pairs = _pairs(names, given_scope(suggestion.surname_key))
    for cluster in suggestion.related_clusters:
        related = [variant.name.strip() for variant in cluster.variants]
        pairs.extend(_pairs(related, given_scope(cluster.surname_key)))
    return pairs


def is_suppressed(suggestion: Suggestion, learning: LearningEngine) -> bool:
    """True when any merged pair was previously declared to be different people."""

    return any(learning.is_distinct_pair(pair.name_a, pair.name_b, pair.scope) for pair in variant_pairs(suggestion))


def _same(left: str, right: str) -> bool:
    return left.strip().lower() == right.strip().lower()


def _given_name_targets(suggestion: Suggestion) -> List[VariantCluster]:
    if suggestion.type == GIVEN_NAME:
        return [
            VariantCluster(
                kind=GIVEN_NAME,
                surname=suggestion.surname,
                surname_key=suggestion.surname_key,
                given_key=suggestion.given_key,
                variants=suggestion.variants,
                recommended_first_name=suggestion.recommended_first_name,
                recommended_full_name=suggestion.primary,
            )
        ]
    return list(suggestion.related_clusters)


def plan_record_updates(suggestion: Suggestion) -> List[RecordUpdate]:
    """Compute the new (first, last) pair for each record the suggestion touches."""

    updates: Dict[int, RecordUpdate] = {}

    def update_for(record) -> RecordUpdate:
        key = id(record)
        if key not in updates:
            updates[key] = RecordUpdate(record=record, first_name=record.first_name, last_name=record.last_name)
        return updates[key]

    if suggestion.type == SURNAME:
        for variant in suggestion.variants:
            if variant.name == suggestion.primary:
                continue
            for record in variant.records:
                update = update_for(record)
                update.last_name = suggestion.primary
                first = record.first_name.strip()
                if first and first.isupper() and len(first) > 2:
                    update.first_name = title_case(first)

    for cluster in _given_name_targets(suggestion):
        target = cluster.recommended_first_name
        for variant in cluster.variants:
            for record in variant.records:
                # attached clusters follow the surname being normalized
                if suggestion.type == SURNAME:
                    update_for(record).last_name = suggestion.primary
                if target and variant.first_name != target:
                    update_for(record).first_name = target

    return [
        update
        for update in updates.values()
        if update.first_name != update.record.first_name or update.last_name != update.record.last_name
    ]


def persist_accepted(suggestion: Suggestion, learning: LearningEngine) -> int:
    """Store variant -> primary mappings and forget any stale distinct pairs."""

    stored = 0
    confidence = suggestion.similarity or 1.0
    if suggestion.type == SURNAME:
        for variant in suggestion.variants:
            if variant.name and not _same(variant.name, suggestion.primary):
                learning.store_mapping(variant.name, suggestion.primary, confidence, {"type": SURNAME})
                stored += 1

    for cluster in _given_name_targets(suggestion):
        normalized = cluster.recommended_full_name
        if not normalized:
            continue
        for variant in cluster.variants:
            if variant.name and not _same(variant.name, normalized):
                learning.store_mapping(
                    variant.name,
                    normalized,
                    confidence,
                    {"type": GIVEN_NAME, "surname": suggestion.surname or cluster.surname},
                )
                stored += 1

    for pair in variant_pairs(suggestion):
        learning.clear_distinct_pair(pair.name_a, pair.name_b, pair.scope)
    return stored


def record_declined(suggestion: Suggestion, learning: LearningEngine) -> int:
    """Remember every pair of a declined suggestion as different people."""

    return sum(
        1 for pair in variant_pairs(suggestion) if learning.record_distinct_pair(pair.name_a, pair.name_b, pair.scope)
    )


__all__ = [
    "GIVEN_NAME",
    "SURNAME",
    "VariantPair",
    "build_suggestions",
    "given_scope",
    "is_suppressed",
    "persist_accepted",
    "plan_record_updates",
    "record_declined",
    "variant_pairs",
]
