"""Per-category GeoJSON export.

Each category produces `<id>-nodes.geojson` (a FeatureCollection of
points) and `<id>-links.geojson` (a MultiLineString of border segments).
Rows are pulled lazily from the store and written one element at a time,
so a category subgraph is never held in memory.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from .graph.closure import SubtypeHierarchy
from .graph.store import EdgeRow, NodeRow, SQLiteGraphStore
from .labels import CategoryLabels

logger = logging.getLogger(__name__)

Coordinate = tuple[float, float]


def _dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def _float(text: str) -> float:
    try:
        return float(text)
    except (TypeError, ValueError) as e:
        raise ValueError(f"failed to parse float {text!r}") from e


@dataclass(frozen=True, slots=True)
class GeoNode:
    en: str
    fr: str
    coordinates: Coordinate  # (lon, lat)

    @classmethod
    def from_row(cls, row: NodeRow) -> GeoNode:
        return cls(row.name_en, row.name_fr, (_float(row.lon), _float(row.lat)))

    def feature(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "properties": {"en": self.en, "fr": self.fr},
            "geometry": {"type": "Point", "coordinates": list(self.coordinates)},
        }


@dataclass(frozen=True, slots=True)
class GeoEdge:
    a: Coordinate
    b: Coordinate

    @classmethod
    def from_row(cls, row: EdgeRow) -> GeoEdge:
        return cls(
            (_float(row.a_lon), _float(row.a_lat)),
            (_float(row.b_lon), _float(row.b_lat)),
        )

    def line(self) -> list[list[float]]:
        return [list(self.a), list(self.b)]


def _write_seq(out: IO[str], items: Iterator[Any]) -> int:
    n = 0
    out.write("[")
    for item in items:
        if n:
            out.write(",")
        out.write(_dumps(item))
        n += 1
    out.write("]")
    return n


def write_nodes(out: IO[str], nodes: Iterator[GeoNode]) -> int:
    out.write('{"type":"FeatureCollection","features":')
    n = _write_seq(out, (node.feature() for node in nodes))
    out.write("}")
    return n


def write_edges(out: IO[str], edges: Iterator[GeoEdge]) -> int:
    out.write('{"type":"MultiLineString","coordinates":')
    n = _write_seq(out, (edge.line() for edge in edges))
    out.write("}")
    return n


@dataclass
class CategoryExporter:
    store: SQLiteGraphStore
    hierarchy: SubtypeHierarchy

    def nodes(self, category: int) -> Iterator[GeoNode]:
        """Fresh iterator over the category's positioned entities, by id."""
        scope = self.hierarchy.descendants(category)
        for row in self.store.iter_category_nodes(scope):
            yield GeoNode.from_row(row)

    def edges(self, category: int) -> Iterator[GeoEdge]:
        """Fresh iterator over border edges with both ends in the category."""
        scope = self.hierarchy.descendants(category)
        for row in self.store.iter_category_edges(scope):
            yield GeoEdge.from_row(row)

    def write_category(self, category: int, out_dir: Path) -> tuple[int, int]:
        with open(out_dir / f"{category}-nodes.geojson", "w", encoding="utf-8") as f:
            n_nodes = write_nodes(f, self.nodes(category))
        with open(out_dir / f"{category}-links.geojson", "w", encoding="utf-8") as f:
            n_edges = write_edges(f, self.edges(category))
        logger.debug("Q%d: %d nodes, %d edges", category, n_nodes, n_edges)
        return n_nodes, n_edges

    def export(self, categories: Mapping[int, CategoryLabels], out_dir: str | Path) -> dict[int, tuple[int, int]]:
        """Write index.json then every category's node and link files."""
        out = Path(out_dir)
        out.mkdir(parents=True, exist_ok=True)
        index = {str(cid): labels.model_dump() for cid, labels in categories.items()}
        with open(out / "index.json", "w", encoding="utf-8") as f:
            f.write(_dumps(index))

        counts = {}
        for cid in categories:
            counts[cid] = self.write_category(cid, out)
        logger.info("exported %d categories to %s", len(counts), out)
        return counts
