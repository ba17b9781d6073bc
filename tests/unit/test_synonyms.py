"""
Unit tests for synonym expansion.
"""

import pytest

from kcc_search.search.synonyms import SYNONYMS, expand_query, stem

pytestmark = pytest.mark.unit


class TestExpandQuery:
    """Test expansion contract: originals first, unique, closed"""

    def test_originals_first(self):
        expanded = expand_query(["food", "bank"])
        assert expanded[:2] == ["food", "bank"]
        assert "hungry" in expanded
        assert "groceries" in expanded

    def test_duplicate_tokens_collapse(self):
        """Duplicate inputs yield no duplicate entries"""
        expanded = expand_query(["food", "food"])
        assert expanded.count("food") == 1
        assert len(expanded) == len(set(expanded))

    def test_unknown_tokens_pass_through(self):
        assert expand_query(["xyz123foobar"]) == ["xyz123foobar"]

    def test_empty(self):
        assert expand_query([]) == []

    def test_transitive(self):
        """housing -> shelter -> bed"""
        expanded = expand_query(["housing"])
        assert "shelter" in expanded
        assert "bed" in expanded

    @pytest.mark.parametrize("tokens", [
        ["food"],
        ["hungry", "housing"],
        ["crisis", "youth", "rent"],
        ["meals", "doctors"],
        ["dental", "abuse", "money", "legal", "job"],
        list(SYNONYMS.keys()),
    ])
    def test_idempotent(self, tokens):
        """Expanding an expanded list adds nothing"""
        once = expand_query(tokens)
        twice = expand_query(once)
        assert twice == once
        assert len(once) == len(set(once))

    def test_stem_fallback(self):
        """Plural forms reach the table through their stem"""
        expanded = expand_query(["meals"])
        assert expanded[0] == "meals"
        assert "meal" in expanded
        assert "dinner" in expanded

    def test_uppercase_input_lowercased(self):
        assert expand_query(["FOOD"])[0] == "food"


class TestStem:
    def test_stem(self):
        assert stem("meals") == "meal"
        assert stem("doctors") == stem("doctor")
