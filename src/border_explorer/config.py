from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib import resources
from pathlib import Path

from .ids import int_id
from .settings import BorderExplorerSettings

# Wikidata property codes used by the pipeline.
NATURE_CLAIM = "P31"
POSITION_CLAIM = "P625"
SHARES_BORDER_WITH_CLAIM = "P47"
SUBCLASS_OF_CLAIM = "P279"
EXPIRY_QUALIFIER = "P582"
SUBJECT_ROLE_QUALIFIER = "P2868"

# Top parents responsible for a third of the subclass table.
DEFAULT_BANNED_PARENTS = frozenset({11173, 20747295, 8054, 7187, 277338})

DEFAULT_CUTOFF = datetime(2025, 1, 1, tzinfo=timezone.utc)


def parse_banned_categories(text: str) -> frozenset[int]:
    """Parse a banned-category TSV: `#` comments, first column is a Q id."""
    ids = set()
    for line in text.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        ids.add(int_id(line.split("\t", 1)[0].strip()))
    return frozenset(ids)


def load_default_banned_categories() -> frozenset[int]:
    text = resources.files("border_explorer").joinpath("banned_categories.tsv").read_text("utf-8")
    return parse_banned_categories(text)


def parse_nature_filter(raw: str | None) -> frozenset[int]:
    if not raw:
        return frozenset()
    return frozenset(int_id(s.strip()) for s in raw.split(",") if s.strip())


@dataclass(frozen=True, slots=True)
class ExplorerConfig:
    """Configuration threaded through the builder, ranking and export.

    The defaults are fixed on purpose: the store has a fixed schema, so the
    pipeline is not meant to be a general Wikidata graph extractor.
    """

    mandatory_claims: tuple[str, ...] = (NATURE_CLAIM, POSITION_CLAIM, SHARES_BORDER_WITH_CLAIM)
    filtered_natures: frozenset[int] = frozenset()
    banned_categories: frozenset[int] = frozenset()
    banned_parents: frozenset[int] = DEFAULT_BANNED_PARENTS
    cutoff: datetime = DEFAULT_CUTOFF

    # ranking
    min_edges: int = 28
    min_density_x10: int = 18
    max_categories: int = 600

    # ingestion
    commit_every: int = 10_000
    progress_every: int = field(default=100_000)

    @classmethod
    def from_settings(cls, s: BorderExplorerSettings) -> ExplorerConfig:
        if s.banned_categories_file:
            banned = parse_banned_categories(Path(s.banned_categories_file).read_text("utf-8"))
        else:
            banned = load_default_banned_categories()
        cutoff = s.cutoff if s.cutoff.tzinfo else s.cutoff.replace(tzinfo=timezone.utc)
        return cls(
            filtered_natures=parse_nature_filter(s.natures),
            banned_categories=banned,
            cutoff=cutoff,
            max_categories=min(s.max_categories, 600),
            commit_every=max(1, s.commit_every),
        )
