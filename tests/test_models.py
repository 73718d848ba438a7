from name_normalizer.models import CreatorRecord, ItemSummary, VariantEntry, collapse_creators, merge_item_summaries


def test_collapse_creators_counts_occurrences():
    rows = [
        {"first_name": "Jerry", "last_name": "Fodor", "item_key": "A1", "title": "The Modularity of Mind", "date": "1983"},
        {"first_name": "Jerry", "last_name": "Fodor", "item_key": "B2", "title": "Concepts", "date": "1998-05-01"},
        {"first_name": "J.", "last_name": "Fodor"},
        {"first_name": None, "last_name": "nan"},
    ]
    records = collapse_creators(rows)
    assert [(r.first_name, r.last_name, r.count) for r in records] == [("Jerry", "Fodor", 2), ("J.", "Fodor", 1)]
    assert [item.year for item in records[0].items] == ["1983", "1998"]


def test_collapse_creators_keeps_field_modes_apart():
    rows = [
        {"first_name": "", "last_name": "Acme", "field_mode": 1},
        {"first_name": "", "last_name": "Acme", "field_mode": 0},
    ]
    records = collapse_creators(rows)
    assert len(records) == 2
    assert records[0].is_single_field


def test_item_summary_defaults():
    summary = ItemSummary.build(id=7, title="", date="n.d.")
    assert summary.title == "Untitled"
    assert summary.year == ""
    assert summary.identity == 7


def test_merge_item_summaries_deduplicates_and_limits():
    first = [ItemSummary.build(key=f"K{i}") for i in range(3)]
    merged = merge_item_summaries(first, [ItemSummary.build(key="K1"), ItemSummary.build(key="K9")], limit=4)
    assert [item.key for item in merged] == ["K0", "K1", "K2", "K9"]
    assert len(merge_item_summaries(first, first, limit=2)) == 2


def test_variant_entry_counts_each_record_once():
    record = CreatorRecord("Jerry", "Fodor", count=3)
    entry = VariantEntry(name="Jerry Fodor")
    entry.absorb(record)
    other = VariantEntry(name="Jerry Fodor", frequency=3, records=[record])
    entry.merge(other)
    assert entry.frequency == 6
    assert entry.records == [record]
