"""Persistent memory of accepted and rejected name decisions."""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .cache import BoundedCache
from .errors import StorageError
from .metrics import is_diacritic_only_variant, similarity
from .storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


MAPPINGS_KEY = "name_normalizer_mappings"
DISTINCT_PAIRS_KEY = "name_normalizer_distinct_pairs"
SKIPPED_KEY = "name_normalizer_skipped_suggestions"
SETTINGS_KEY = "name_normalizer_settings"
EXPORT_VERSION = "1.0"

_JARO_WINKLER_WEIGHT = 0.5
_WORD_MATCH_WEIGHT = 0.3
_INITIAL_MATCH_WEIGHT = 0.2
_SINGLE_CHAR_MATCH_SCORE = 0.8
_DIACRITIC_MATCH_SCORE = 0.95

_COMMON_ABBREVIATIONS = {
    "jose": "joseph",
    "joseph": "joe",
    "robert": "rob",
    "charles": "chuck",
    "william": "will",
    "jonathan": "jon",
}

_KEY_PUNCTUATION = re.compile(r"[.,]")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class LearningConfig:
    """Tuning knobs for :class:LearningEngine."""

    confidence_threshold: float = 0.8
    max_suggestions: int = 5
    batching_enabled: bool = True
    batch_size: int | None = None
    save_delay: float | None = None
    canonical_cache_size: int = 10000
    similarity_cache_size: int = 5000

    def __post_init__(self) -> None:
        if self.batch_size is None:
            self.batch_size = int(os.getenv("NAME_NORMALIZER_BATCH_SIZE", "100"))
        if self.save_delay is None:
            self.save_delay = float(os.getenv("NAME_NORMALIZER_SAVE_DELAY", "5"))
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")


@dataclass
class LearningMapping:
    """A remembered raw -> normalized spelling decision."""

    raw: str
    normalized: str
    confidence: float = 1.0
    usage_count: int = 1
    timestamp: float = field(default_factory=time.time)
    last_used: float = field(default_factory=time.time)
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearningMapping":
        return cls(
            raw=str(data.get("raw", "")),
            normalized=str(data.get("normalized", "")),
            confidence=float(data.get("confidence", 1.0)),
            usage_count=int(data.get("usage_count", 1)),
            timestamp=float(data.get("timestamp", time.time())),
            last_used=float(data.get("last_used", time.time())),
            context=dict(data.get("context") or {}),
        )


@dataclass
class DistinctPairRecord:
    """Two names the user declared to be different people."""

    scope: str
    name_a: str
    name_b: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class SimilarMapping:
    mapping: LearningMapping
    similarity: float


def _hash_text(value: str) -> str:
    # 32-bit rolling hash so keys stay stable across interpreter runs
    result = 0
    for char in value:
        result = ((result << 5) - result + ord(char)) & 0xFFFFFFFF
    if result >= 0x80000000:
        result -= 0x100000000
    return format(abs(result), "x")


def skip_key(surname: str, first_name_pattern: str) -> str:
    surname_part = (surname or "").lower().strip()
    pattern_part = (first_name_pattern or "").lower().strip()
    return f"name:skip:{_hash_text(surname_part)}:{_hash_text(pattern_part)}"


class LearningEngine:
    """Remember mappings, distinct pairs and skipped suggestions across sessions."""

    def __init__(self, store: KeyValueStore | None = None, config: LearningConfig | None = None) -> None:
        self.store = store if store is not None else MemoryStore()
        self.config = config or LearningConfig()
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._pending: set[str] = set()
        self._canonical_cache: BoundedCache[str, str] = BoundedCache(self.config.canonical_cache_size)
        self._similarity_cache: BoundedCache[str, float] = BoundedCache(self.config.similarity_cache_size)
        self.mappings: Dict[str, LearningMapping] = {}
        self.distinct_pairs: Dict[str, DistinctPairRecord] = {}
        self.skipped: set[str] = set()
        self.flush_count = 0
        self._load()

    # -- persistence -------------------------------------------------

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.store.get(key)
            if raw is None:
                return None
            return json.loads(raw.decode("utf-8"))
        except (StorageError, OSError, ValueError) as exc:
            logger.warning("Could not load %s, starting empty: %s", key, exc)
            return None

    def _write_json(self, key: str, payload: Any) -> None:
        try:
            self.store.set(key, json.dumps(payload).encode("utf-8"))
        except (StorageError, OSError, TypeError) as exc:
            logger.error("Could not save %s: %s", key, exc)

    def _load(self) -> None:
        settings = self._read_json(SETTINGS_KEY)
        if isinstance(settings, dict):
            self._apply_settings(settings)

        mappings = self._read_json(MAPPINGS_KEY) or []
        try:
            self.mappings = {str(key): LearningMapping.from_dict(value) for key, value in mappings}
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding malformed learned mappings: %s", exc)
            self.mappings = {}

        pairs = self._read_json(DISTINCT_PAIRS_KEY) or []
        try:
            self.distinct_pairs = {
                str(key): DistinctPairRecord(
                    scope=str(value.get("scope", "global")),
                    name_a=str(value.get("name_a", "")),
                    name_b=str(value.get("name_b", "")),
                    timestamp=float(value.get("timestamp", time.time())),
                )
                for key, value in pairs
            }
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Discarding malformed distinct pairs: %s", exc)
            self.distinct_pairs = {}

        skipped = self._read_json(SKIPPED_KEY) or []
        self.skipped = {str(entry) for entry in skipped} if isinstance(skipped, list) else set()

    def _apply_settings(self, settings: Dict[str, Any]) -> None:
        if "confidence_threshold" in settings:
            self.config.confidence_threshold = float(settings["confidence_threshold"])
        if "max_suggestions" in settings:
            self.config.max_suggestions = int(settings["max_suggestions"])

    def save_mappings(self) -> None:
        with self._lock:
            payload = [[key, mapping.to_dict()] for key, mapping in self.mappings.items()]
            self._write_json(MAPPINGS_KEY, payload)
            self.flush_count += 1

    def save_distinct_pairs(self) -> None:
        with self._lock:
            payload = [
                [key, {"scope": rec.scope, "timestamp": rec.timestamp, "name_a": rec.name_a, "name_b": rec.name_b}]
                for key, rec in self.distinct_pairs.items()
            ]
            self._write_json(DISTINCT_PAIRS_KEY, payload)

    def save_skipped(self) -> None:
        with self._lock:
            self._write_json(SKIPPED_KEY, sorted(self.skipped))

    def save_settings(self) -> None:
        with self._lock:
            self._write_json(
                SETTINGS_KEY,
                {
                    "confidence_threshold": self.config.confidence_threshold,
                    "max_suggestions": self.config.max_suggestions,
                },
            )

    def _mark_dirty(self, key: str, allow_batch_flush: bool = True) -> None:
        if not self.config.batching_enabled:
            self.save_mappings()
            return
        self._pending.add(key)
        if allow_batch_flush and len(self._pending) >= self.config.batch_size:
            self._flush_pending()
        else:
            self._schedule_save()

    def _schedule_save(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(self.config.save_delay, self._on_timer)
        self._timer.daemon = True
        self._timer.start()

    def _on_timer(self) -> None:
        with self._lock:
            self._timer = None
            self._flush_pending()

    def _flush_pending(self) -> None:
        with self._lock:
            if not self._pending:
                return
            self._pending.clear()
            self.save_mappings()

    def force_save(self) -> None:
        """Write pending mapping changes now; call before shutdown."""

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._flush_pending()

    def close(self) -> None:
        self.force_save()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # -- keys --------------------------------------------------------

    def canonical_key(self, name: str | None) -> str:
        if name is None:
            return ""
        cached = self._canonical_cache.get(name)
        if cached is not None:
            return cached
        key = _WHITESPACE.sub(" ", _KEY_PUNCTUATION.sub("", name.lower())).strip()
        self._canonical_cache.put(name, key)
        return key

    def pair_key(self, name_a: str, name_b: str, scope: str = "") -> Optional[str]:
        if not name_a or not name_b:
            return None
        key_a = self.canonical_key(name_a)
        key_b = self.canonical_key(name_b)
        if not key_a or not key_b:
            return None
        low, high = sorted((key_a, key_b))
        return f"{scope or 'global'}::{low}|{high}"

    # -- mappings ----------------------------------------------------

    def store_mapping(
        self,
        raw: str,
        normalized: str,
        confidence: float = 1.0,
        context: Optional[Dict[str, Any]] = None,
    ) -> LearningMapping:
        """Insert or update the mapping for `raw`."""

        key = self.canonical_key(raw)
        now = time.time()
        with self._lock:
            existing = self.mappings.get(key)
            if existing is not None:
                existing.normalized = normalized
                existing.confidence = max(existing.confidence, confidence)
                existing.last_used = now
                existing.usage_count += 1
                existing.context.update(context or {})
                mapping = existing
            else:
                mapping = LearningMapping(
                    raw=raw,
                    normalized=normalized,
                    confidence=confidence,
                    timestamp=now,
                    last_used=now,
                    context=dict(context or {}),
                )
                self.mappings[key] = mapping
            self._mark_dirty(key)
        return mapping

    def record_usage(self, raw: str) -> None:
        key = self.canonical_key(raw)
        with self._lock:
            mapping = self.mappings.get(key)
            if mapping is None:
                return
            mapping.last_used = time.time()
            mapping.usage_count += 1
            self._mark_dirty(key, allow_batch_flush=False)

    def get_mapping(self, raw: str) -> Optional[str]:
        mapping = self.mappings.get(self.canonical_key(raw))
        if mapping is None:
            return None
        self.record_usage(raw)
        return mapping.normalized

    def has_mapping(self, raw: str) -> bool:
        return self.canonical_key(raw) in self.mappings

    def get_mapping_details(self, raw: str) -> Optional[LearningMapping]:
        mapping = self.mappings.get(self.canonical_key(raw))
        if mapping is None:
            return None
        self.record_usage(raw)
        return LearningMapping.from_dict(mapping.to_dict())

    def get_all_mappings(self) -> Dict[str, LearningMapping]:
        return dict(self.mappings)

    def remove_mapping(self, raw: str) -> bool:
        with self._lock:
            removed = self.mappings.pop(self.canonical_key(raw), None) is not None
            self.save_mappings()
        return removed

    def clear_all_mappings(self) -> None:
        with self._lock:
            self.mappings.clear()
            self._pending.clear()
            self.save_mappings()

    # -- similarity --------------------------------------------------

    def find_similar(self, name: str) -> List[SimilarMapping]:
        """Return stored mappings whose key resembles `name`, best first."""

        query = self.canonical_key(name)
        threshold = self.config.confidence_threshold
        results: List[SimilarMapping] = []
        for key, mapping in list(self.mappings.items()):
            if query != key and is_diacritic_only_variant(query, key):
                score = _DIACRITIC_MATCH_SCORE
            else:
                score = self.calculate_similarity(query, key)
            if score >= threshold:
                results.append(SimilarMapping(mapping=mapping, similarity=score))
        results.sort(key=lambda item: (-item.similarity, -item.mapping.usage_count))
        return results[: self.config.max_suggestions]

    def calculate_similarity(self, first: str, second: str) -> float:
        if first == second:
            return 1.0
        if not first or not second:
            return 0.0

        cache_key = f"{first}|{second}" if first < second else f"{second}|{first}"
        cached = self._similarity_cache.get(cache_key)
        if cached is not None:
            return cached

        score = self._score(first, second)
        self._similarity_cache.put(cache_key, score)
        return score

    def _score(self, first: str, second: str) -> float:
        if min(len(first), len(second)) / max(len(first), len(second)) < 0.5:
            return 0.0
        jaro_winkler = similarity(first, second)
        if first[0].lower() != second[0].lower() and jaro_winkler < 0.5:
            return jaro_winkler * 0.5
        if jaro_winkler < 0.3:
            return jaro_winkler * 0.5
        return (
            jaro_winkler * _JARO_WINKLER_WEIGHT
            + word_match_similarity(first, second) * _WORD_MATCH_WEIGHT
            + initial_matching_similarity(first, second) * _INITIAL_MATCH_WEIGHT
        )

    # -- distinct pairs ----------------------------------------------

    def record_distinct_pair(self, name_a: str, name_b: str, scope: str = "") -> bool:
        """Remember that `name_a` and `name_b` are different people; True when new."""

        key = self.pair_key(name_a, name_b, scope)
        if key is None:
            return False
        with self._lock:
            if key in self.distinct_pairs:
                return False
            self.distinct_pairs[key] = DistinctPairRecord(scope=scope or "global", name_a=name_a, name_b=name_b)
            self.save_distinct_pairs()
        return True

    def is_distinct_pair(self, name_a: str, name_b: str, scope: str = "") -> bool:
        key = self.pair_key(name_a, name_b, scope)
        return key is not None and key in self.distinct_pairs

    def clear_distinct_pair(self, name_a: str, name_b: str, scope: str = "") -> bool:
        key = self.pair_key(name_a, name_b, scope)
        if key is None:
            return False
        with self._lock:
            if self.distinct_pairs.pop(key, None) is None:
                return False
            self.save_distinct_pairs()
        return True

    # -- skip decisions ----------------------------------------------

    def record_skip_decision(self, surname: str, first_name_pattern: str = "") -> bool:
        key = skip_key(surname, first_name_pattern)
        with self._lock:
            if key in self.skipped:
                return False
            self.skipped.add(key)
            self.save_skipped()
        logger.debug("Recorded skip for %r, %r -> %s", surname, first_name_pattern, key)
        return True

    def should_skip(self, surname: str, first_name_pattern: str = "") -> bool:
        return skip_key(surname, first_name_pattern) in self.skipped

    def should_skip_suggestion(self, suggestion: Any) -> bool:
        surname = getattr(suggestion, "surname", "") or getattr(suggestion, "primary", "") or ""
        pattern = getattr(suggestion, "first_name_pattern", "") or ""
        return self.should_skip(surname, pattern)

    def remove_skip_decision(self, surname: str, first_name_pattern: str = "") -> bool:
        key = skip_key(surname, first_name_pattern)
        with self._lock:
            if key not in self.skipped:
                return False
            self.skipped.discard(key)
            self.save_skipped()
        return True

    def clear_skip_decisions(self) -> None:
        with self._lock:
            self.skipped.clear()
            self.save_skipped()

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def filter_skipped(self, suggestions: Iterable[Any]) -> List[Any]:
        return [suggestion for suggestion in suggestions if not self.should_skip_suggestion(suggestion)]

    # -- import / export ---------------------------------------------

    def export_mappings(self) -> Dict[str, Any]:
        return {
            "version": EXPORT_VERSION,
            "timestamp": time.time(),
            "mappings": [[key, mapping.to_dict()] for key, mapping in self.mappings.items()],
            "settings": {
                "confidence_threshold": self.config.confidence_threshold,
                "max_suggestions": self.config.max_suggestions,
            },
        }

    def import_mappings(self, data: Dict[str, Any]) -> None:
        if data.get("version") != EXPORT_VERSION:
            raise ValueError("Unsupported import data version")
        with self._lock:
            self.mappings = {str(key): LearningMapping.from_dict(value) for key, value in data.get("mappings", [])}
            self._similarity_cache.clear()
            if data.get("settings"):
                self._apply_settings(data["settings"])
                self.save_settings()
            self._pending.clear()
            self.save_mappings()

    def get_statistics(self) -> Dict[str, float]:
        total = len(self.mappings)
        usage = sum(mapping.usage_count for mapping in self.mappings.values())
        confidence = sum(mapping.confidence for mapping in self.mappings.values())
        return {
            "total_mappings": total,
            "total_usage": usage,
            "average_usage": usage / total if total else 0,
            "average_confidence": confidence / total if total else 0,
            "skipped_pairs": len(self.skipped),
            "distinct_pairs": len(self.distinct_pairs),
        }


def _is_similar_word(first: str, second: str) -> bool:
    first = first.replace(".", "")
    second = second.replace(".", "")
    if first == second:
        return True
    if (len(first) == 1 and second.startswith(first)) or (len(second) == 1 and first.startswith(second)):
        return True
    return _COMMON_ABBREVIATIONS.get(first) == second or _COMMON_ABBREVIATIONS.get(second) == first


def word_match_similarity(first: str, second: str) -> float:
    """Share of words in `first` that have a similar word in `second`."""

    if not first or not second:
        return 0.0
    if first == second:
        return 1.0
    words_first = first.split()
    words_second = second.split()
    matches = sum(1 for word in words_first if any(_is_similar_word(word, other) for other in words_second))
    total = max(len(words_first), len(words_second))
    return matches / total if total else 0.0


def _compare_name_parts(first: str, second: str) -> float:
    if not first or not second:
        return 0.0
    if first.lower() == second.lower():
        return 1.0
    clean_first = first.replace(".", "").lower()
    clean_second = second.replace(".", "").lower()
    if len(clean_first) == 1 and clean_second.startswith(clean_first):
        return _SINGLE_CHAR_MATCH_SCORE
    if len(clean_second) == 1 and clean_first.startswith(clean_second):
        return _SINGLE_CHAR_MATCH_SCORE
    return similarity(clean_first, clean_second)


def initial_matching_similarity(first: str, second: str) -> float:
    words_first: Sequence[str] = first.split()
    words_second: Sequence[str] = second.split()
    if not words_first or not words_second:
        return 0.0
    leading = _compare_name_parts(words_first[0], words_second[0])
    trailing = _compare_name_parts(words_first[-1], words_second[-1])
    return (leading + trailing) / 2


__all__ = [
    "LearningConfig",
    "LearningEngine",
    "LearningMapping",
    "DistinctPairRecord",
    "SimilarMapping",
    "skip_key",
    "word_match_similarity",
    "initial_matching_similarity",
]
