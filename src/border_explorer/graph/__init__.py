"""Persisted place graph, category closures and category ranking."""

from .closure import SubtypeHierarchy
from .ranking import CategoryScore, rank_categories
from .store import SQLiteGraphStore, canonical_edge

__all__ = ["CategoryScore", "SQLiteGraphStore", "SubtypeHierarchy", "canonical_edge", "rank_categories"]
