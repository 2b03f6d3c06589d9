from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import ExplorerConfig
from .export import CategoryExporter
from .graph.closure import SubtypeHierarchy
from .graph.ranking import CategoryScore, rank_categories
from .graph.store import SQLiteGraphStore
from .ingest.builder import ingest_lines
from .ingest.sources import LineSource
from .ingest.stats import IngestStats
from .labels import CategoryLabels, LabelResolver, WikidataLabelClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportResult:
    ranked: list[CategoryScore] = field(default_factory=list)
    categories: dict[int, CategoryLabels] = field(default_factory=dict)
    counts: dict[int, tuple[int, int]] = field(default_factory=dict)


def ingest(source: LineSource, store: SQLiteGraphStore, config: ExplorerConfig) -> IngestStats:
    """Create the schema and load a whole dump into the store."""
    store.init(config.banned_categories)
    lines = source.iter_lines()
    try:
        return ingest_lines(lines, store, config)
    finally:
        # stops a decompressor child when ingestion fails part way
        lines.close()


def generate(
    store: SQLiteGraphStore,
    config: ExplorerConfig,
    client: WikidataLabelClient,
    out_dir: str | Path,
    limit: int | None = None,
) -> ExportResult:
    """Rank categories of a populated store, resolve their names and export them.

    Any failure aborts before index.json is written: a partial ranking is
    never exported.
    """
    hierarchy = SubtypeHierarchy.from_pairs(store.iter_subclass())
    logger.info("loaded %d subclass edges", len(hierarchy))

    ranked = rank_categories(store, hierarchy, config, limit)
    resolver = LabelResolver(store, client)
    categories = {s.category: resolver.resolve(s.category) for s in ranked}
    if resolver.fetched:
        logger.info("fetched %d category names from the label service", resolver.fetched)

    counts = CategoryExporter(store, hierarchy).export(categories, out_dir)
    return ExportResult(ranked=ranked, categories=categories, counts=counts)
