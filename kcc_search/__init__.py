"""
Kingston Care Connect search core.

Hybrid keyword + vector search over a curated directory of verified
community services in Kingston, Ontario.
"""

__version__ = "0.3.0"
