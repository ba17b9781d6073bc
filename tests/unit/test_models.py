"""
Unit tests for domain models
"""

import pytest
from pydantic import ValidationError

from kcc_search.models import (
    IntentCategory,
    SavedSearches,
    SearchResult,
    Service,
    ServiceScope,
    VerificationLevel,
)

pytestmark = pytest.mark.unit


class TestService:
    def test_defaults(self):
        service = Service.model_validate({"id": "a", "name": "A", "intent_category": "Health"})

        assert service.intent_category == IntentCategory.HEALTH
        assert service.verification_level == VerificationLevel.L1
        assert service.scope == ServiceScope.KINGSTON
        assert service.synthetic_queries == []
        assert not service.is_crisis

    def test_unknown_fields_ignored(self):
        service = Service.model_validate({"id": "a", "name": "A", "intent_category": "Food", "legacy": 1})
        assert not hasattr(service, "legacy")

    def test_free_text_hours_allowed(self):
        service = Service.model_validate({
            "id": "a", "name": "A", "intent_category": "Food",
            "hours": {"monday": {"open": "9:00", "close": "17:00"}, "sunday": "Closed"},
        })
        assert service.hours["sunday"] == "Closed"
        assert service.hours["monday"].open == "9:00"

    def test_unknown_weekday_rejected(self):
        with pytest.raises(ValidationError):
            Service.model_validate({
                "id": "a", "name": "A", "intent_category": "Food",
                "hours": {"funday": {"open": "09:00", "close": "17:00"}},
            })

    def test_verified_at_prefers_provenance(self):
        service = Service.model_validate({
            "id": "a", "name": "A", "intent_category": "Crisis",
            "last_verified": "2025-01-01",
            "provenance": {"verified_by": "phone", "verified_at": "2026-09-01T00:00:00Z"},
        })
        assert service.verified_at == "2026-09-01T00:00:00Z"
        assert service.is_crisis


class TestSearchResult:
    def test_copy_has_independent_reasons(self, services):
        original = SearchResult(service=services[0], score=10, match_reasons=["a"])
        clone = original.copy()
        clone.match_reasons.append("b")

        assert original.match_reasons == ["a"]
        assert clone.service is original.service


class TestSavedSearches:
    def test_most_recent_first_and_unique(self):
        saved = SavedSearches()
        saved.save("food")
        saved.save("shelter")
        saved.save("food")
        assert saved.queries == ["food", "shelter"]

    def test_capped(self):
        saved = SavedSearches(max_size=2)
        for q in ("a", "b", "c"):
            saved.save(q)
        assert saved.queries == ["c", "b"]

    def test_ignores_empty_and_removes(self):
        saved = SavedSearches()
        saved.save("")
        saved.save("food")
        saved.remove("food")
        assert saved.queries == []

        saved.save("x")
        saved.clear()
        assert saved.queries == []
