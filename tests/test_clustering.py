import pytest

from name_normalizer.clustering import (
    StageTracker,
    find_given_name_clusters,
    find_surname_clusters,
    merge_initial_buckets,
    partition_by_signature,
)
from name_normalizer.errors import AnalysisCancelled
from name_normalizer.models import CreatorRecord, TokenSignature
from name_normalizer.parsing import NameParser
from name_normalizer.structures import DisjointSet


def _record(first, last, count=1, field_mode=0):
    return CreatorRecord(first_name=first, last_name=last, field_mode=field_mode, count=count)


def test_disjoint_set_components_follow_input_order():
    sets = DisjointSet(5)
    sets.union(3, 1)
    sets.union(4, 0)
    assert sets.components() == [[0, 4], [1, 3], [2]]


def test_surname_accent_variants_cluster_per_author():
    records = [
        _record("Marcin", "Miłkowski", 3),
        _record("Marcin", "Milkowski", 1),
        _record("Anna", "Milkowski", 2),
    ]
    clusters = find_surname_clusters(records)
    assert len(clusters) == 1
    assert clusters[0].surname == "Miłkowski"
    assert clusters[0].surname_key == "milkowski"
    assert sorted(v.name for v in clusters[0].variants) == ["Milkowski", "Miłkowski"]


def test_surname_clusters_need_same_given_name():
    records = [_record("Jan", "Nowák"), _record("Piotr", "Nowak")]
    assert find_surname_clusters(records) == []


def test_surname_clusters_ignore_other_spellings():
    records = [_record("Anna", "Markowski"), _record("Anna", "Milkowski")]
    assert find_surname_clusters(records) == []


def test_given_names_cluster_with_initials():
    records = [
        _record("Jerry", "Fodor", 4),
        _record("J.", "Fodor", 2),
        _record("Jerry A.", "Fodor", 1),
    ]
    clusters = find_given_name_clusters(records, NameParser())
    assert len(clusters) == 1
    assert clusters[0].recommended_first_name == "Jerry A."
    assert clusters[0].recommended_full_name == "Jerry A. Fodor"
    assert clusters[0].total_frequency == 7


def test_different_given_names_stay_apart():
    records = [_record("Alex", "Martin"), _record("Andrea", "Martin")]
    assert find_given_name_clusters(records, NameParser()) == []


def test_conflicting_middle_initials_stay_apart():
    records = [
        _record("John A.", "Smith"),
        _record("John B.", "Smith"),
        _record("John", "Smith"),
    ]
    clusters = find_given_name_clusters(records, NameParser())
    assert len(clusters) == 1
    assert sorted(v.first_name for v in clusters[0].variants) == ["John", "John A."]


def test_nicknames_share_a_bucket():
    records = [_record("Bill", "Gates", 2), _record("William", "Gates", 5)]
    clusters = find_given_name_clusters(records, NameParser())
    assert len(clusters) == 1
    assert clusters[0].given_key == "william"


def test_single_field_records_are_ignored():
    records = [_record("", "Acme Corp", field_mode=1), _record("", "ACME Corp", field_mode=1)]
    assert find_given_name_clusters(records, NameParser()) == []


def test_prefixed_surname_clusters_given_names():
    records = [_record("Eva", "van Dijk", 2), _record("E.", "van Dijk", 1)]
    clusters = find_given_name_clusters(records, NameParser())
    assert len(clusters) == 1
    assert clusters[0].recommended_full_name == "Eva van Dijk"


def test_compound_surname_keeps_raw_given_name():
    records = [_record("Maria", "Garcia Lopez", 2), _record("M.", "Garcia Lopez", 1)]
    clusters = find_given_name_clusters(records, NameParser())
    assert len(clusters) == 1
    assert clusters[0].recommended_full_name == "Maria Garcia Lopez"


def test_merge_initial_buckets():
    buckets = {"anna": [1], "james": [2], "init:JA": [3], "init:A": [4]}
    merged = merge_initial_buckets(buckets)
    assert merged == {"anna": [1, 4], "james": [2, 3]}


def test_merge_initial_buckets_without_full_names():
    buckets = {"init:J": [1], "init:JA": [2]}
    assert merge_initial_buckets(buckets) == {"init:J": [1], "init:JA": [2]}


def test_partition_without_signatures_is_one_component():
    signatures = [TokenSignature(), TokenSignature()]
    assert partition_by_signature(signatures, [1, 1], lambda members: "") == [[0, 1]]


def test_partition_sends_bare_names_to_most_frequent_component():
    signatures = [
        TokenSignature(frozenset({"A"})),
        TokenSignature(frozenset({"B"})),
        TokenSignature(),
    ]
    components = partition_by_signature(signatures, [1, 5, 2], lambda members: str(members))
    assert components == [[0], [1, 2]]


def test_stage_tracker_reports_and_cancels():
    events = []
    tracker = StageTracker("analyzing_surnames", 3, events.append)
    for position in range(1, 4):
        tracker.step(position)
    assert [event.processed for event in events] == [1, 3]
    assert events[-1].percent == 100

    with pytest.raises(AnalysisCancelled):
        StageTracker("analyzing_surnames", 3, should_cancel=lambda: True)
