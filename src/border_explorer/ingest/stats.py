from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class SkipCounter(Counter):
    """Counts per-record data dropped on purpose, keyed by reason.

    Skips never abort ingestion; this is how the skip rate is observed.
    """

    def skip(self, reason: str, detail: object = None) -> None:
        self[reason] += 1
        if detail is not None:
            logger.debug("skip %s: %s", reason, detail)

    def summary(self) -> str:
        if not self:
            return "none"
        return ", ".join(f"{reason}={n:,}" for reason, n in sorted(self.items()))


@dataclass(slots=True)
class IngestStats:
    lines_read: int = 0
    lines_prefiltered: int = 0
    nodes: int = 0
    hierarchy_records: int = 0
    rejected: int = 0
    edge_rows: int = 0
    elapsed_s: float = 0.0
    skips: SkipCounter = field(default_factory=SkipCounter)

    def as_dict(self) -> dict[str, object]:
        return {
            "lines_read": self.lines_read,
            "lines_prefiltered": self.lines_prefiltered,
            "nodes": self.nodes,
            "hierarchy_records": self.hierarchy_records,
            "rejected": self.rejected,
            "edge_rows": self.edge_rows,
            "elapsed_s": round(self.elapsed_s, 3),
            "skips": dict(self.skips),
        }
