import pytest

from name_normalizer.errors import AnalysisCancelled, HostUnavailableError
from name_normalizer.host import StaticCreatorSource
from name_normalizer.learning import LearningConfig, LearningEngine
from name_normalizer.models import CreatorRecord
from name_normalizer.pipeline import NameNormalizer, NormalizerConfig
from name_normalizer.storage import MemoryStore


def _record(first, last, count=1):
    return CreatorRecord(first_name=first, last_name=last, count=count)


def _fodor_records():
    return [_record("Jerry", "Fodor", 4), _record("J.", "Fodor", 2), _record("Jerry A.", "Fodor", 1)]


def _milkowski_records():
    return [_record("Marcin", "Miłkowski", 3), _record("Marcin", "Milkowski", 1), _record("M.", "Milkowski", 1)]


def _normalizer(records, store=None):
    learning = LearningEngine(store if store is not None else MemoryStore(), LearningConfig(save_delay=60))
    return NameNormalizer(StaticCreatorSource(records), learning=learning)


def test_missing_host_raises():
    with pytest.raises(HostUnavailableError):
        NameNormalizer(None)
    with pytest.raises(HostUnavailableError):
        NameNormalizer(object())


def test_given_name_suggestion():
    result = _normalizer(_fodor_records()).analyze()
    assert len(result.suggestions) == 1
    suggestion = result.suggestions[0]
    assert suggestion.type == "given-name"
    assert suggestion.primary == "Jerry A. Fodor"
    assert suggestion.first_name_pattern == "jerry"
    assert result.surname_frequencies == {"fodor": 7}
    assert 0 < suggestion.similarity < 1


def test_surname_suggestion_carries_given_name_cluster():
    result = _normalizer(_milkowski_records()).analyze()
    assert len(result.suggestions) == 1
    suggestion = result.suggestions[0]
    assert suggestion.type == "surname"
    assert suggestion.primary == "Miłkowski"
    assert suggestion.variant_names() == ["Miłkowski", "Milkowski"]
    assert suggestion.is_combined
    assert suggestion.related_clusters[0].recommended_full_name == "Marcin Miłkowski"


def test_analyze_does_not_persist():
    store = MemoryStore()
    _normalizer(_milkowski_records(), store).analyze()
    assert store.writes == 0


def test_apply_plans_updates_and_learns():
    normalizer = _normalizer(_milkowski_records())
    suggestion = normalizer.analyze().suggestions[0]
    applied = normalizer.apply_suggestions([suggestion])

    assert applied.applied == 1
    updates = {(u.record.first_name, u.record.last_name): (u.first_name, u.last_name) for u in applied.updated_records}
    assert updates == {
        ("Marcin", "Milkowski"): ("Marcin", "Miłkowski"),
        ("M.", "Milkowski"): ("Marcin", "Miłkowski"),
    }
    assert normalizer.learning.get_mapping("Milkowski") == "Miłkowski"
    assert normalizer.learning.get_mapping("M. Milkowski") == "Marcin Miłkowski"
    normalizer.close()


def test_accepted_combined_suggestion_converges():
    records = _milkowski_records()
    normalizer = _normalizer(records)
    applied = normalizer.apply_suggestions(normalizer.analyze().suggestions)
    normalizer.close()

    planned = {id(u.record): u for u in applied.updated_records}
    updated = [
        _record(planned[id(r)].first_name, planned[id(r)].last_name, r.count) if id(r) in planned else r
        for r in records
    ]
    assert {(r.first_name, r.last_name) for r in updated} == {("Marcin", "Miłkowski")}
    assert _normalizer(updated).analyze().suggestions == []


def test_apply_given_name_suggestion():
    normalizer = _normalizer(_fodor_records())
    applied = normalizer.apply_suggestions(normalizer.analyze().suggestions)
    assert sorted(u.record.first_name for u in applied.updated_records) == ["J.", "Jerry"]
    assert {u.first_name for u in applied.updated_records} == {"Jerry A."}
    normalizer.close()


def test_apply_title_cases_shouting_first_name():
    records = [_record("MARCIN", "Miłkowski", 2), _record("MARCIN", "Milkowski", 1)]
    normalizer = _normalizer(records)
    suggestion = normalizer.analyze().suggestions[0]
    update = normalizer.apply_suggestions([suggestion]).updated_records[0]
    assert (update.first_name, update.last_name) == ("Marcin", "Miłkowski")
    normalizer.close()


def test_declined_suggestion_is_not_offered_again():
    store = MemoryStore()
    normalizer = _normalizer(_milkowski_records(), store)
    suggestion = normalizer.analyze().suggestions[0]
    applied = normalizer.apply_suggestions([], declined=[suggestion])
    assert applied.declined_recorded == 2

    result = _normalizer(_milkowski_records(), store).analyze()
    assert result.suggestions == []
    assert result.stats.suppressed_distinct == 1


def test_recorded_distinct_pair_suppresses_suggestion():
    normalizer = _normalizer(_milkowski_records()[:2])
    normalizer.learning.record_distinct_pair("Miłkowski", "Milkowski", "surname")
    assert normalizer.analyze().suggestions == []


def test_accepting_clears_distinct_pair():
    normalizer = _normalizer(_milkowski_records()[:2])
    suggestion = normalizer.analyze().suggestions[0]
    normalizer.learning.record_distinct_pair("Miłkowski", "Milkowski", "surname")
    normalizer.apply_suggestions([suggestion])
    assert not normalizer.learning.is_distinct_pair("Miłkowski", "Milkowski", "surname")
    normalizer.close()


def test_skipped_suggestion_is_hidden():
    store = MemoryStore()
    normalizer = _normalizer(_fodor_records(), store)
    suggestion = normalizer.analyze().suggestions[0]
    assert normalizer.apply_suggestions([], skipped=[suggestion]).skipped_recorded == 1

    result = _normalizer(_fodor_records(), store).analyze()
    assert result.suggestions == []
    assert result.stats.suppressed_skipped == 1


def test_cancel_raises_without_writing():
    store = MemoryStore()
    with pytest.raises(AnalysisCancelled):
        _normalizer(_fodor_records(), store).analyze(should_cancel=lambda: True)
    assert store.writes == 0


def test_progress_events_cover_every_stage():
    events = []
    _normalizer(_fodor_records()).analyze(progress=events.append)
    stages = [event.stage for event in events]
    assert stages[0] == "analyzing_surnames"
    assert events[0].processed == 1
    assert {"analyzing_surnames", "analyzing_given_names", "generating_suggestions"} <= set(stages)


def test_decisions_survive_restart(tmp_path):
    config = NormalizerConfig(state_path=str(tmp_path / "state.db"))
    first = NameNormalizer(StaticCreatorSource(_milkowski_records()), config)
    first.apply_suggestions([], declined=first.analyze().suggestions)
    first.close()

    second = NameNormalizer(StaticCreatorSource(_milkowski_records()), config)
    assert second.analyze().suggestions == []
    second.close()
