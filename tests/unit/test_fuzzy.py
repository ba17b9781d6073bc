"""
Unit tests for edit distance and "did you mean" suggestions.
"""

import pytest

from fakes import build_service
from kcc_search.search.fuzzy import (
    DICTIONARY,
    catalog_search_terms,
    closest_match,
    distance,
    get_suggestion,
    is_correctable,
)

pytestmark = pytest.mark.unit


class TestDistance:
    """Test Levenshtein distance properties"""

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("food", "food", 0),
        ("", "abc", 3),
        ("abc", "", 3),
        ("shelter", "shelther", 1),
        ("hungry", "hungyr", 2),
    ])
    def test_known_distances(self, a, b, expected):
        assert distance(a, b) == expected

    @pytest.mark.parametrize("a,b", [
        ("housing", "hosing"),
        ("doctor", "dcotor"),
        ("crisis", "kriss"),
        ("", "food"),
    ])
    def test_symmetry(self, a, b):
        """distance(a, b) == distance(b, a)"""
        assert distance(a, b) == distance(b, a)

    @pytest.mark.parametrize("word", DICTIONARY[:10])
    def test_self_distance_zero(self, word):
        assert distance(word, word) == 0


class TestClosestMatch:
    """Test nearest-neighbour lookup"""

    def test_finds_typo(self):
        assert closest_match("shleter", DICTIONARY) == "shelter"

    def test_never_beyond_max_distance(self):
        """No candidate farther than max_distance is ever returned"""
        for term in ["xyz", "qqqqqq", "foodbankxyz", "hungr", "emergncy"]:
            match = closest_match(term, DICTIONARY, max_distance=1)
            if match is not None:
                assert distance(term.lower(), match.lower()) <= 1

    def test_no_match(self):
        assert closest_match("zzzzzzzz", DICTIONARY) is None

    def test_first_wins_on_tie(self):
        """Equal distances resolve to the earlier dictionary entry"""
        assert closest_match("bat", ["cat", "hat"], max_distance=1) == "cat"

    def test_case_insensitive(self):
        assert closest_match("FOOD", ["food"], max_distance=0) == "food"


class TestGetSuggestion:
    """Test query-level suggestions"""

    def test_corrects_misspelled_word(self):
        assert get_suggestion("hungrry") == "hungry"

    def test_corrects_one_word_in_phrase(self):
        assert get_suggestion("emergncy shelter") == "emergency shelter"

    def test_no_change_returns_none(self):
        assert get_suggestion("food shelter") is None

    def test_short_query_ignored(self):
        assert get_suggestion("fo") is None

    def test_numbers_not_corrected(self):
        """Pure numbers are never suggestion candidates"""
        assert not is_correctable("911")
        assert get_suggestion("9111") is None

    def test_short_words_allow_one_edit(self):
        """Words of 4 characters or fewer only accept distance 1"""
        assert get_suggestion("fod") == "food"
        assert get_suggestion("fxxd") is None


class TestCatalogSearchTerms:
    def test_unique_names_and_tags(self):
        services = [
            build_service(id="a", name="Food Bank", name_fr="Banque alimentaire",
                          identity_tags=[{"tag": "Youth"}]),
            build_service(id="b", name="Food Bank", identity_tags=[{"tag": "Youth"}]),
        ]
        assert catalog_search_terms(services) == ["Food Bank", "Banque alimentaire", "Youth"]
