"""Top-category ranking.

A category is credited with a border edge (a, b) when both endpoints
belong to it through the ancestor closure of their natures. Categories
are kept when they have enough credited edges and enough edges per
distinct `a` endpoint, then sorted by edge count.

The density denominator counts only the canonical (smaller id) endpoint
of each credited edge, not the union of both endpoints. This is the
historical formula and is kept as is.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from itertools import groupby
from operator import itemgetter

from ..config import ExplorerConfig
from .closure import SubtypeHierarchy
from .store import SQLiteGraphStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CategoryScore:
    category: int
    edge_count: int
    distinct_a: int

    @property
    def density_x10(self) -> int:
        # integer division, as the store's SQL arithmetic would do it
        return 10 * self.edge_count // self.distinct_a if self.distinct_a else 0


def entity_categories(
    natures: Iterable[tuple[int, int]],
    hierarchy: SubtypeHierarchy,
    banned: frozenset[int],
) -> dict[int, frozenset[int]]:
    """Ancestor closure per entity from (entity id, nature id) rows grouped by entity."""
    out: dict[int, frozenset[int]] = {}
    for entity_id, rows in groupby(natures, key=itemgetter(0)):
        cats = hierarchy.ancestors((nat for _, nat in rows), banned)
        if cats:
            out[entity_id] = cats
    return out


def score_categories(
    edges: Iterable[tuple[int, int]], memberships: dict[int, frozenset[int]]
) -> list[CategoryScore]:
    edge_count: dict[int, int] = defaultdict(int)
    a_sides: dict[int, set[int]] = defaultdict(set)
    for a, b in edges:
        cats_a = memberships.get(a)
        cats_b = memberships.get(b)
        if not cats_a or not cats_b:
            continue
        for cat in cats_a & cats_b:
            edge_count[cat] += 1
            a_sides[cat].add(a)
    return [CategoryScore(cat, n, len(a_sides[cat])) for cat, n in edge_count.items()]


def select_top(scores: Iterable[CategoryScore], config: ExplorerConfig, limit: int | None = None) -> list[CategoryScore]:
    cap = config.max_categories if limit is None else min(limit, config.max_categories)
    kept = [
        s
        for s in scores
        if s.category not in config.banned_categories
        and s.edge_count >= config.min_edges
        and s.density_x10 >= config.min_density_x10
    ]
    kept.sort(key=lambda s: (-s.edge_count, s.category))
    return kept[: max(cap, 0)]


def rank_categories(
    store: SQLiteGraphStore,
    hierarchy: SubtypeHierarchy,
    config: ExplorerConfig,
    limit: int | None = None,
) -> list[CategoryScore]:
    """Rank categories of a fully ingested store."""
    memberships = entity_categories(store.iter_natures(), hierarchy, config.banned_categories)
    scores = score_categories(store.iter_edges(), memberships)
    top = select_top(scores, config, limit)
    logger.info(
        "ranked %d candidate categories over %d entities, kept %d",
        len(scores),
        len(memberships),
        len(top),
    )
    return top
