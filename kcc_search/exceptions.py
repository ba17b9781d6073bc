"""Exception hierarchy for the search core"""


class SearchError(Exception):
    """Base class for search-related errors"""
    pass


class CatalogLoadError(SearchError):
    """A single catalog source failed (DB unreachable, bad JSON, ...)"""
    pass


class CatalogUnavailableError(SearchError):
    """
    No catalog source could be loaded.

    Distinct from a genuine zero-match search: callers surface this as a
    retry affordance, never as "no results".
    """
    pass


class EmbeddingUnavailableError(SearchError):
    """Embedding model not ready or embedding call failed"""
    pass
