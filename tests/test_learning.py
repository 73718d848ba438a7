import time
from types import SimpleNamespace

import pytest

from name_normalizer.errors import StorageError
from name_normalizer.learning import (
    MAPPINGS_KEY,
    LearningConfig,
    LearningEngine,
    skip_key,
    word_match_similarity,
)
from name_normalizer.storage import MemoryStore


def _engine(store=None, **overrides):
    config = LearningConfig(batch_size=overrides.pop("batch_size", 100), save_delay=60, **overrides)
    return LearningEngine(store if store is not None else MemoryStore(), config)


def test_store_mapping_looks_up_by_canonical_key():
    engine = _engine()
    engine.store_mapping("J. Smith", "John Smith")
    assert engine.get_mapping("j smith") == "John Smith"
    assert engine.has_mapping("J.  SMITH")
    engine.close()


def test_store_mapping_upserts():
    engine = _engine()
    engine.store_mapping("J. Smith", "John Smith", confidence=0.7)
    mapping = engine.store_mapping("J. Smith", "John Smith", confidence=0.9)
    assert mapping.usage_count == 2
    assert mapping.confidence == 0.9
    assert len(engine.get_all_mappings()) == 1
    engine.close()


def test_mappings_flush_when_batch_fills():
    store = MemoryStore()
    engine = _engine(store)
    for index in range(150):
        engine.store_mapping(f"Name{index}", f"Normalized{index}")
    assert engine.flush_count >= 1
    assert store.get(MAPPINGS_KEY) is not None
    assert engine.pending_count == 50

    engine.force_save()
    assert engine.pending_count == 0
    assert len(_engine(store).get_all_mappings()) == 150


def test_mappings_written_immediately_without_batching():
    store = MemoryStore()
    engine = LearningEngine(store, LearningConfig(batching_enabled=False, batch_size=100, save_delay=60))
    engine.store_mapping("Milkowski", "Miłkowski")
    assert store.get(MAPPINGS_KEY) is not None


def test_distinct_pairs_ignore_order_and_repeat():
    engine = _engine()
    assert engine.record_distinct_pair("John Smith", "Jon Smith", "smith")
    assert not engine.record_distinct_pair("Jon Smith", "John Smith", "smith")
    assert engine.is_distinct_pair("Jon Smith", "John Smith", "smith")
    assert not engine.is_distinct_pair("Jon Smith", "John Smith", "other")
    assert engine.clear_distinct_pair("John Smith", "Jon Smith", "smith")
    assert not engine.is_distinct_pair("John Smith", "Jon Smith", "smith")


def test_distinct_pair_needs_two_names():
    assert not _engine().record_distinct_pair("", "John Smith")


def test_distinct_pairs_are_persisted_immediately():
    store = MemoryStore()
    _engine(store).record_distinct_pair("Smith", "Smyth", "surname")
    assert _engine(store).is_distinct_pair("Smyth", "Smith", "surname")


def test_skip_decisions():
    engine = _engine()
    assert engine.record_skip_decision("Smith", "")
    assert not engine.record_skip_decision("smith ", "")
    assert engine.should_skip("SMITH")
    assert engine.skipped_count == 1
    assert engine.remove_skip_decision("Smith")
    assert not engine.should_skip("Smith")


def test_skip_key_format():
    assert skip_key("", "") == "name:skip:0:0"
    assert skip_key("Smith", "") == skip_key(" smith", "")
    assert skip_key("Smith", "john") != skip_key("Smith", "")


def test_find_similar_scores_accent_variants():
    engine = _engine()
    engine.store_mapping("Miłkowski", "Miłkowski")
    engine.store_mapping("Zimmermann", "Zimmermann")
    results = engine.find_similar("Milkowski")
    assert [result.mapping.raw for result in results] == ["Miłkowski"]
    assert results[0].similarity == 0.95
    engine.close()


def test_calculate_similarity_rejects_length_mismatch():
    engine = _engine()
    assert engine.calculate_similarity("al", "alexandrina") == 0.0
    assert engine.calculate_similarity("smith", "smith") == 1.0


def test_word_match_similarity_uses_abbreviations():
    assert word_match_similarity("jose smith", "joseph smith") == 1.0
    assert word_match_similarity("j smith", "john smith") == 1.0


def test_export_and_import_round_trip():
    source = _engine()
    source.store_mapping("J. Smith", "John Smith")
    exported = source.export_mappings()
    source.close()

    target = _engine()
    target.import_mappings(exported)
    assert target.get_mapping("J. Smith") == "John Smith"
    target.close()


def test_import_rejects_unknown_version():
    with pytest.raises(ValueError):
        _engine().import_mappings({"version": "2.0", "mappings": []})


def test_statistics():
    engine = _engine()
    engine.store_mapping("J. Smith", "John Smith", confidence=0.5)
    engine.store_mapping("A. Jones", "Anna Jones", confidence=1.0)
    engine.record_distinct_pair("Smith", "Smyth")
    stats = engine.get_statistics()
    assert stats["total_mappings"] == 2
    assert stats["average_confidence"] == 0.75
    assert stats["distinct_pairs"] == 1
    engine.close()


class BrokenStore:
    def get(self, key):
        raise StorageError("disk gone")

    def set(self, key, value):
        raise StorageError("disk gone")

    def remove(self, key):
        raise StorageError("disk gone")


def test_storage_failures_do_not_raise():
    engine = _engine(BrokenStore())
    assert engine.get_all_mappings() == {}
    assert engine.record_distinct_pair("Smith", "Smyth")
    assert engine.is_distinct_pair("Smith", "Smyth")


def test_batch_size_from_environment(monkeypatch):
    monkeypatch.setenv("NAME_NORMALIZER_BATCH_SIZE", "7")
    assert LearningConfig().batch_size == 7


def test_mapping_details_and_removal():
    engine = _engine()
    engine.store_mapping("J. Smith", "John Smith", context={"type": "given-name"})
    details = engine.get_mapping_details("J. Smith")
    assert details.context == {"type": "given-name"}
    assert details.usage_count == 2
    assert engine.remove_mapping("J. Smith")
    assert not engine.remove_mapping("J. Smith")
    assert engine.get_mapping("J. Smith") is None
    engine.close()


def test_mappings_flush_after_quiet_period():
    store = MemoryStore()
    engine = LearningEngine(store, LearningConfig(batch_size=100, save_delay=0.05))
    engine.store_mapping("J. Smith", "John Smith")
    deadline = time.time() + 2
    while store.get(MAPPINGS_KEY) is None and time.time() < deadline:
        time.sleep(0.02)
    assert store.get(MAPPINGS_KEY) is not None
    assert engine.pending_count == 0
    engine.close()


def test_find_similar_filters_sorts_and_truncates():
    engine = _engine()
    engine.store_mapping("Jon Smith", "John Smith")
    engine.store_mapping("John Smith", "John Smith")
    engine.store_mapping("Anna Kowalska", "Anna Kowalska")
    results = engine.find_similar("John Smith")
    assert [result.mapping.raw for result in results] == ["John Smith", "Jon Smith"]
    assert results[0].similarity == 1.0
    assert 0.8 <= results[1].similarity < 1.0

    engine.config.max_suggestions = 1
    assert [result.mapping.raw for result in engine.find_similar("John Smith")] == ["John Smith"]
    engine.close()


def test_find_similar_breaks_score_ties_by_usage():
    engine = _engine()
    engine.store_mapping("Miłkowski", "Miłkowski")
    for _ in range(3):
        engine.store_mapping("Milkowskí", "Miłkowski")
    results = engine.find_similar("Milkowski")
    assert [result.mapping.raw for result in results] == ["Milkowskí", "Miłkowski"]
    engine.close()


def test_clear_and_filter_skip_decisions():
    engine = _engine()
    engine.record_skip_decision("Fodor", "jerry")
    kept = SimpleNamespace(surname="Smith", first_name_pattern="")
    skipped = SimpleNamespace(surname="Fodor", first_name_pattern="jerry")
    assert engine.filter_skipped([kept, skipped]) == [kept]

    engine.clear_skip_decisions()
    assert engine.skipped_count == 0
    assert engine.filter_skipped([kept, skipped]) == [kept, skipped]


def test_canonical_key_trims_after_removing_punctuation():
    engine = _engine()
    assert engine.canonical_key("Smith .") == "smith"
    assert engine.canonical_key(" J. , Smith ") == "j smith"
