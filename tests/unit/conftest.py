"""Unit test configuration - in-memory catalog and fake embedding providers"""

from typing import List

import pytest

from fakes import SERVICE_RECORDS, FakeEmbeddingProvider, StaticCatalog
from kcc_search.ai.engine import EmbeddingEngine
from kcc_search.models import Service
from kcc_search.search.engine import SearchEngine


@pytest.fixture
def services() -> List[Service]:
    return [Service.model_validate(r) for r in SERVICE_RECORDS]


@pytest.fixture
def catalog(services) -> StaticCatalog:
    return StaticCatalog(services)


@pytest.fixture
def engine(catalog) -> SearchEngine:
    """Keyword-only engine (no embedding model)"""
    return SearchEngine(catalog)


@pytest.fixture
def make_embedding_engine():
    """Factory for EmbeddingEngine around a FakeEmbeddingProvider"""
    def _make(cache=None, **provider_kwargs) -> EmbeddingEngine:
        return EmbeddingEngine(FakeEmbeddingProvider(**provider_kwargs), cache=cache)
    return _make
