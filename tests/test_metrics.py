import pytest
from rapidfuzz.distance import Jaro

from name_normalizer.metrics import (
    distance,
    fold_diacritics,
    is_diacritic_only_variant,
    normalized_edit_similarity,
    similarity,
)


def test_distance_classic_example():
    assert distance("kitten", "sitting") == 3
    assert distance("abc", "abc") == 0


def test_distance_stops_past_bound():
    assert distance("a", "abcdef", max_distance=2) == 3
    assert distance("kitten", "sitting", max_distance=1) == 2


def test_jaro_winkler_reference_value():
    assert similarity("MARTHA", "MARHTA") == pytest.approx(0.9611, abs=1e-3)


def test_jaro_winkler_edges():
    assert similarity("abc", "abc") == 1.0
    assert similarity("", "abc") == 0.0


def test_normalized_edit_similarity():
    assert normalized_edit_similarity("", "") == 1.0
    assert normalized_edit_similarity("abc", "") == 0.0
    assert normalized_edit_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert normalized_edit_similarity("kitten", "sitting", threshold=0.9) == 0.0


def test_fold_diacritics():
    assert fold_diacritics("Miłkowski") == "milkowski"
    assert fold_diacritics("Müller") == "mueller"
    assert fold_diacritics("Ørsted") == "orsted"
    assert fold_diacritics("Straße") == "strasse"


def test_diacritic_only_variant():
    assert is_diacritic_only_variant("Milkowski", "Miłkowski")
    assert is_diacritic_only_variant("José", "Jose")
    assert not is_diacritic_only_variant("Milkowski", "Markowski")
    assert not is_diacritic_only_variant("", "")


def test_prefix_bonus_applies_to_weak_matches():
    jaro = Jaro.similarity("abcxyz", "abqrst")
    assert jaro < 0.7
    assert similarity("abcxyz", "abqrst") == pytest.approx(jaro + 2 * 0.1 * (1 - jaro))
