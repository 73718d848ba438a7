"""Core pipeline for the Name Normalizer library."""

from __future__ import annotations

import logging
import os
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .clustering import StageTracker, find_given_name_clusters, find_surname_clusters
from .errors import HostUnavailableError
from .host import CreatorSource
from .learning import LearningConfig, LearningEngine
from .models import AnalysisResult, AnalysisStats, ApplyResult, ProgressEvent, Suggestion
from .parsing import NameParser
from .storage import KeyValueStore, MemoryStore, SQLiteStore
from .suggestions import build_suggestions, is_suppressed, persist_accepted, plan_record_updates, record_declined

logger = logging.getLogger(__name__)


@dataclass
class NormalizerConfig:
    """Configuration parameters for :class:NameNormalizer."""

    verbose: bool = False
    parser_cache_size: int = 5000
    state_path: str | None = None
    learning: LearningConfig = field(default_factory=LearningConfig)

    def __post_init__(self) -> None:
        if self.state_path is None:
            self.state_path = os.getenv("NAME_NORMALIZER_STATE") or None


class NameNormalizer:
    """Find spelling variants of creator names and remember the user's verdicts."""

    def __init__(
        self,
        host: CreatorSource,
        config: NormalizerConfig | None = None,
        learning: LearningEngine | None = None,
        parser: NameParser | None = None,
    ) -> None:
        if host is None or not callable(getattr(host, "list_creator_records", None)):
            raise HostUnavailableError("Host does not provide list_creator_records()")
        self.host = host
        self.config = config or NormalizerConfig()
        self.parser = parser or NameParser(self.config.parser_cache_size)
        self._owned_store: SQLiteStore | None = None
        self.learning = learning or LearningEngine(self._open_store(), self.config.learning)

    def _open_store(self) -> KeyValueStore:
        if self.config.state_path:
            self._owned_store = SQLiteStore(self.config.state_path)
            return self._owned_store
        return MemoryStore()

    def analyze(
        self,
        progress: Optional[Callable[[ProgressEvent], None]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> AnalysisResult:
        """Cluster the host's creator records and return the suggestions worth asking about.

        Nothing is persisted; a cancelled pass raises :class:AnalysisCancelled.
        """

        verbose = self.config.verbose
        overall_start_time = time.time()
        if verbose:
            print("--- Name Normalizer Analysis Started ---")
            print("\n1. Loading creator records...")

        t0 = time.time()
        records = list(self.host.list_creator_records())
        surname_frequencies: Dict[str, int] = defaultdict(int)
        for record in records:
            last = (record.last_name or "").strip().lower()
            if last:
                surname_frequencies[last] += record.count or 1
        if verbose:
            print(f"   Loaded {len(records)} creator records, {len(surname_frequencies)} surnames. Done in {time.time() - t0:.2f}s")

        t0 = time.time()
        if verbose:
            print("2. Detecting diacritic surname variants per author...")
        surname_tracker = StageTracker("analyzing_surnames", len(records), progress, should_cancel)
        surname_clusters = find_surname_clusters(records, surname_tracker)
        if verbose:
            print(f"   Found {len(surname_clusters)} surname clusters. Done in {time.time() - t0:.2f}s")

        t0 = time.time()
        if verbose:
            print("3. Clustering given-name variants per surname...")
        given_trackers: List[StageTracker] = []

        def given_tracker(total: int) -> StageTracker:
            tracker = StageTracker("analyzing_given_names", total, progress, should_cancel)
            given_trackers.append(tracker)
            return tracker

        given_clusters = find_given_name_clusters(records, self.parser, given_tracker)
        if verbose:
            print(f"   Found {len(given_clusters)} given-name clusters. Done in {time.time() - t0:.2f}s")

        t0 = time.time()
        if verbose:
            print("4. Building suggestions and applying learned decisions...")
        tracker = StageTracker("generating_suggestions", 1, progress, should_cancel)
        candidates = build_suggestions(surname_clusters, given_clusters)
        stats = AnalysisStats(
            total_records=len(records),
            surname_clusters=len(surname_clusters),
            given_name_clusters=len(given_clusters),
            records_failed=surname_tracker.failed + sum(t.failed for t in given_trackers),
        )
        suggestions: List[Suggestion] = []
        for suggestion in candidates:
            if is_suppressed(suggestion, self.learning):
                stats.suppressed_distinct += 1
                continue
            if self.learning.should_skip_suggestion(suggestion):
                stats.suppressed_skipped += 1
                continue
            suggestions.append(suggestion)
        tracker.step(1)
        if verbose:
            print(
                f"   Kept {len(suggestions)} of {len(candidates)} suggestions "
                f"({stats.suppressed_distinct} declined before, {stats.suppressed_skipped} skipped)."
            )
            print(f"   Done in {time.time() - t0:.2f}s")

        stats.runtime_seconds = time.time() - overall_start_time
        if verbose:
            print("\n--- Results Summary ---")
            for idx, suggestion in enumerate(suggestions[:10]):
                print(f"   Suggestion {idx + 1} ({suggestion.type}): '{suggestion.primary}'")
                for variant in suggestion.variants[:5]:
                    print(f"     - {variant.name} ({variant.frequency})")
                if len(suggestion.variants) > 5:
                    print("     - ...")
            print(f"\n--- Name Normalizer Analysis Finished in {stats.runtime_seconds:.2f} seconds ---")

        return AnalysisResult(
            suggestions=suggestions,
            surname_frequencies=dict(surname_frequencies),
            stats=stats,
        )

    def apply_suggestions(
        self,
        accepted: Iterable[Suggestion],
        declined: Iterable[Suggestion] = (),
        skipped: Iterable[Suggestion] = (),
    ) -> ApplyResult:
        """Plan record updates for accepted suggestions and persist every verdict.

        Host records are not modified; the returned updates say what to write.
        """

        result = ApplyResult()
        for suggestion in accepted:
            try:
                result.updated_records.extend(plan_record_updates(suggestion))
                persist_accepted(suggestion, self.learning)
                result.applied += 1
            except (AttributeError, TypeError, ValueError) as exc:
                logger.error("Could not apply suggestion %r: %s", suggestion.primary, exc)
                result.errors.append(f"{suggestion.primary}: {exc}")

        for suggestion in declined:
            result.declined_recorded += record_declined(suggestion, self.learning)

        for suggestion in skipped:
            if self.learning.record_skip_decision(suggestion.surname or suggestion.primary, suggestion.first_name_pattern):
                result.skipped_recorded += 1

        self.learning.force_save()
        if self.config.verbose:
            print(
                f"Applied {result.applied} suggestions ({len(result.updated_records)} record updates), "
                f"recorded {result.declined_recorded} distinct pairs and {result.skipped_recorded} skips."
            )
        return result

    def close(self) -> None:
        self.learning.close()
        if self._owned_store is not None:
            self._owned_store.close()
            self._owned_store = None


__all__ = [
    "NameNormalizer",
    "NormalizerConfig",
]
