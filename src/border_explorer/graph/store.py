"""SQLite-backed persisted graph.

Write-once then read: ingestion appends rows inside periodic transactions,
ranking and export only read. Latitude/longitude are TEXT so the decimal
values of the dump survive unchanged.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS entities (
  id INTEGER PRIMARY KEY,
  name_en TEXT,
  name_fr TEXT
);

CREATE TABLE IF NOT EXISTS positions (
  id INTEGER PRIMARY KEY,
  lat TEXT,
  lon TEXT,
  FOREIGN KEY(id) REFERENCES entities(id)
);

CREATE TABLE IF NOT EXISTS natures (
  id INTEGER,
  nat INTEGER,
  FOREIGN KEY(id) REFERENCES entities(id)
);

CREATE TABLE IF NOT EXISTS edges (
  a INTEGER NOT NULL,
  b INTEGER NOT NULL,
  UNIQUE(a, b),
  CHECK (a <= b)
);

CREATE TABLE IF NOT EXISTS subclass (
  id INTEGER NOT NULL,
  parent INTEGER NOT NULL,
  UNIQUE(id, parent),
  FOREIGN KEY(id) REFERENCES entities(id)
);

CREATE TABLE IF NOT EXISTS banned_natures (
  id INTEGER PRIMARY KEY
);

CREATE INDEX IF NOT EXISTS natures_nat ON natures(nat);
CREATE INDEX IF NOT EXISTS natures_id_nat ON natures(id, nat);
CREATE INDEX IF NOT EXISTS edges_a ON edges(a);
CREATE INDEX IF NOT EXISTS edges_b ON edges(b);
CREATE INDEX IF NOT EXISTS subclass_parent ON subclass(parent);
"""

# Both queries take the category scope (a JSON array of type ids) as parameter.
_IN_SCOPE = "SELECT 1 FROM natures AS n WHERE n.id = {col} AND n.nat IN (SELECT value FROM json_each(?))"

SELECT_CATEGORY_NODES = f"""
SELECT e.id, e.name_en, e.name_fr, p.lon, p.lat
  FROM entities AS e JOIN positions AS p ON p.id = e.id
  WHERE EXISTS ({_IN_SCOPE.format(col="e.id")})
  ORDER BY e.id
"""

SELECT_CATEGORY_EDGES = f"""
SELECT edj.a, edj.b, pa.lon, pa.lat, pb.lon, pb.lat
  FROM edges AS edj
  JOIN positions AS pa ON pa.id = edj.a
  JOIN positions AS pb ON pb.id = edj.b
  WHERE EXISTS ({_IN_SCOPE.format(col="edj.a")})
    AND EXISTS ({_IN_SCOPE.format(col="edj.b")})
  ORDER BY edj.a, edj.b
"""


@dataclass(frozen=True, slots=True)
class NodeRow:
    id: int
    name_en: str
    name_fr: str
    lon: str
    lat: str


@dataclass(frozen=True, slots=True)
class EdgeRow:
    a: int
    b: int
    a_lon: str
    a_lat: str
    b_lon: str
    b_lat: str


def canonical_edge(x: int, y: int) -> tuple[int, int]:
    return (x, y) if x <= y else (y, x)


@dataclass
class SQLiteGraphStore:
    """Single-connection store; one writer then one reader, never both at once."""

    path: str
    bulk_load: bool = True
    _con: sqlite3.Connection | None = field(default=None, init=False, repr=False)

    def connect(self) -> sqlite3.Connection:
        if self._con is None:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            con = sqlite3.connect(self.path)
            con.execute("PRAGMA foreign_keys=ON")
            if self.bulk_load:
                # speed and disk space over durability: a crashed load is rerun from scratch
                con.execute("PRAGMA synchronous=OFF")
                mode = con.execute("PRAGMA journal_mode=MEMORY").fetchone()[0]
                if str(mode).lower() != "memory":
                    logger.warning("journal_mode is %s, expected memory", mode)
            self._con = con
        return self._con

    def close(self) -> None:
        if self._con is not None:
            self._con.commit()
            self._con.close()
            self._con = None

    def __enter__(self) -> SQLiteGraphStore:
        self.connect()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def init(self, banned_categories: Iterable[int] = ()) -> None:
        con = self.connect()
        con.executescript(SCHEMA)
        con.executemany(
            "INSERT OR IGNORE INTO banned_natures(id) VALUES (?)",
            ((c,) for c in banned_categories),
        )
        con.commit()

    def commit(self) -> None:
        self.connect().commit()

    # --- writes ---

    def insert_entity(self, entity_id: int, name_en: str, name_fr: str) -> None:
        self.connect().execute(
            "INSERT INTO entities(id, name_en, name_fr) VALUES (?,?,?)",
            (entity_id, name_en, name_fr),
        )

    def insert_position(self, entity_id: int, lat: str, lon: str) -> None:
        self.connect().execute(
            "INSERT INTO positions(id, lat, lon) VALUES (?,?,?)", (entity_id, lat, lon)
        )

    def insert_natures(self, entity_id: int, natures: Iterable[int]) -> None:
        self.connect().executemany(
            "INSERT INTO natures(id, nat) VALUES (?,?)", ((entity_id, n) for n in natures)
        )

    def insert_edge(self, x: int, y: int) -> bool:
        """Store the unordered pair (x, y); False when it was already present."""
        a, b = canonical_edge(x, y)
        cur = self.connect().execute("INSERT OR IGNORE INTO edges(a, b) VALUES (?,?)", (a, b))
        return cur.rowcount == 1

    def insert_subclass(self, child: int, parent: int) -> None:
        self.connect().execute(
            "INSERT OR IGNORE INTO subclass(id, parent) VALUES (?,?)", (child, parent)
        )

    # --- reads ---

    def get_labels(self, entity_id: int) -> tuple[str, str] | None:
        row = self.connect().execute(
            "SELECT name_en, name_fr FROM entities WHERE id=?", (entity_id,)
        ).fetchone()
        if row is None:
            return None
        return row[0] or "", row[1] or ""

    def banned_categories(self) -> frozenset[int]:
        return frozenset(r[0] for r in self.connect().execute("SELECT id FROM banned_natures"))

    def iter_natures(self) -> Iterator[tuple[int, int]]:
        """Yields (entity id, nature id), grouped by entity."""
        yield from self.connect().execute("SELECT DISTINCT id, nat FROM natures ORDER BY id, nat")

    def iter_subclass(self) -> Iterator[tuple[int, int]]:
        """Yields (child id, parent id)."""
        yield from self.connect().execute("SELECT id, parent FROM subclass")

    def iter_edges(self) -> Iterator[tuple[int, int]]:
        yield from self.connect().execute("SELECT a, b FROM edges ORDER BY a, b")

    def iter_category_nodes(self, scope: Iterable[int]) -> Iterator[NodeRow]:
        """Positioned entities having at least one nature in `scope`, by id."""
        ids = json.dumps(sorted(scope))
        for row in self.connect().execute(SELECT_CATEGORY_NODES, (ids,)):
            yield NodeRow(row[0], row[1] or "", row[2] or "", row[3], row[4])

    def iter_category_edges(self, scope: Iterable[int]) -> Iterator[EdgeRow]:
        """Edges whose two endpoints have a nature in `scope`, by (a, b)."""
        ids = json.dumps(sorted(scope))
        for row in self.connect().execute(SELECT_CATEGORY_EDGES, (ids, ids)):
            yield EdgeRow(*row)

    def count(self, table: str) -> int:
        if table not in {"entities", "positions", "natures", "edges", "subclass", "banned_natures"}:
            raise ValueError(f"unknown table {table}")
        return self.connect().execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
