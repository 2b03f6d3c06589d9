from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..config import (
    NATURE_CLAIM,
    POSITION_CLAIM,
    SHARES_BORDER_WITH_CLAIM,
    SUBCLASS_OF_CLAIM,
    ExplorerConfig,
)
from ..errors import InvalidEntityId, MalformedRecord
from ..graph.store import SQLiteGraphStore
from .claims import (
    CoordinateSnak,
    ItemSnak,
    Record,
    claim_and_roles,
    claim_still_valid,
    int_id,
    parse_record,
)
from .classify import Classification, classify, prefilter
from .stats import IngestStats, SkipCounter

logger = logging.getLogger(__name__)


def display_labels(record: Record) -> tuple[str, str]:
    en = record.label("en")
    if en is None:
        en = record.label("mul") or ""
    return en, record.label("fr") or ""


@dataclass
class GraphBuilder:
    """Writes the graph facts of classified records into the store."""

    store: SQLiteGraphStore
    config: ExplorerConfig
    skips: SkipCounter = field(default_factory=SkipCounter)

    def natures(self, record: Record) -> set[int]:
        out: set[int] = set()
        for claim in record.claims.get(NATURE_CLAIM, ()):
            if claim_still_valid(claim, self.config.cutoff, self.skips):
                out.update(claim_and_roles(claim, self.skips))
        return out

    def position(self, record: Record) -> CoordinateSnak | None:
        for claim in record.claims.get(POSITION_CLAIM, ()):
            if isinstance(claim.mainsnak, CoordinateSnak):
                return claim.mainsnak
        return None

    def neighbours(self, record: Record) -> list[int]:
        out = []
        for claim in record.claims.get(SHARES_BORDER_WITH_CLAIM, ()):
            target = claim.mainsnak
            if not isinstance(target, ItemSnak):
                # explicit "no value" borders, e.g. islands
                self.skips.skip("border_target_not_item")
                continue
            try:
                out.append(int_id(target.id))
            except InvalidEntityId as e:
                self.skips.skip("invalid_border_target", e)
        return out

    def parents(self, record: Record) -> list[int]:
        out = []
        for claim in record.claims.get(SUBCLASS_OF_CLAIM, ()):
            if not claim_still_valid(claim, self.config.cutoff, self.skips):
                continue
            target = claim.mainsnak
            if not isinstance(target, ItemSnak):
                continue
            try:
                parent = int_id(target.id)
            except InvalidEntityId as e:
                self.skips.skip("invalid_parent_id", e)
                continue
            if parent in self.config.banned_parents:
                self.skips.skip("banned_parent")
                continue
            out.append(parent)
        return out

    def insert_node(self, entity_id: int, record: Record) -> int | None:
        """Write a node; returns the number of edge rows attempted, None if dropped."""
        pos = self.position(record)
        if pos is None:
            self.skips.skip("missing_position", record.id)
            return None
        self.store.insert_entity(entity_id, *display_labels(record))
        self.store.insert_position(entity_id, pos.latitude, pos.longitude)
        self.store.insert_natures(entity_id, sorted(self.natures(record)))
        edges = 0
        for other in self.neighbours(record):
            if other == entity_id:
                continue
            self.store.insert_edge(entity_id, other)
            edges += 1
        return edges

    def insert_hierarchy(self, entity_id: int, record: Record) -> None:
        self.store.insert_entity(entity_id, *display_labels(record))
        for parent in self.parents(record):
            self.store.insert_subclass(entity_id, parent)

    def add(self, record: Record, stats: IngestStats | None = None) -> Classification:
        kind = classify(record, self.config)
        if kind is Classification.REJECT:
            if stats is not None:
                stats.rejected += 1
            return kind
        try:
            entity_id = int_id(record.id)
        except InvalidEntityId as e:
            # properties (P...) and lexemes also carry subclass-like claims
            self.skips.skip("invalid_entity_id", e)
            if stats is not None:
                stats.rejected += 1
            return Classification.REJECT

        if kind is Classification.NODE:
            edges = self.insert_node(entity_id, record)
            if edges is None:
                if stats is not None:
                    stats.rejected += 1
                return Classification.REJECT
            if stats is not None:
                stats.nodes += 1
                stats.edge_rows += edges
        else:
            self.insert_hierarchy(entity_id, record)
            if stats is not None:
                stats.hierarchy_records += 1
        return kind


def ingest_lines(
    lines: Iterable[str],
    store: SQLiteGraphStore,
    config: ExplorerConfig,
) -> IngestStats:
    """Feed every dump line through pre-filter, parser, classifier and builder.

    Commits every `config.commit_every` written records and at the end.
    """
    stats = IngestStats()
    builder = GraphBuilder(store=store, config=config, skips=stats.skips)
    t0 = time.perf_counter()
    pending = 0

    for line_no, line in enumerate(lines, start=1):
        stats.lines_read += 1
        if line_no % config.progress_every == 0:
            logger.info(
                "line %s: %s nodes, %s hierarchy records",
                f"{line_no:,}",
                f"{stats.nodes:,}",
                f"{stats.hierarchy_records:,}",
            )
        if not prefilter(line, config):
            continue
        stats.lines_prefiltered += 1
        try:
            record = parse_record(line)
        except ValueError as e:
            raise MalformedRecord(line_no, str(e)) from e

        if builder.add(record, stats) is not Classification.REJECT:
            pending += 1
            if pending >= config.commit_every:
                store.commit()
                pending = 0

    store.commit()
    stats.elapsed_s = time.perf_counter() - t0
    logger.info(
        "ingested %s lines: %s nodes, %s hierarchy records, %s rejected in %.1fs",
        f"{stats.lines_read:,}",
        f"{stats.nodes:,}",
        f"{stats.hierarchy_records:,}",
        f"{stats.rejected:,}",
        stats.elapsed_s,
    )
    logger.info("skipped: %s", stats.skips.summary())
    return stats
