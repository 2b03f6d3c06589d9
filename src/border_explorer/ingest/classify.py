from __future__ import annotations

from enum import Enum

from ..config import NATURE_CLAIM, SUBCLASS_OF_CLAIM, ExplorerConfig
from ..errors import InvalidEntityId
from .claims import ItemSnak, Record, claim_still_valid, int_id


class Classification(Enum):
    NODE = "node"
    HIERARCHY = "hierarchy"
    REJECT = "reject"


def prefilter(line: str, config: ExplorerConfig) -> bool:
    """Substring check run before JSON parsing.

    Over-matches (a code can appear anywhere in the line) but never rejects
    a record that could classify as NODE or HIERARCHY.
    """
    if len(line) <= 2:
        return False
    if all(claim in line for claim in config.mandatory_claims):
        return True
    return SUBCLASS_OF_CLAIM in line


def _matches_nature_filter(record: Record, config: ExplorerConfig) -> bool:
    for claim in record.claims.get(NATURE_CLAIM, ()):
        main = claim.mainsnak
        if not isinstance(main, ItemSnak):
            continue
        try:
            nat = int_id(main.id)
        except InvalidEntityId:
            continue
        if nat in config.filtered_natures and claim_still_valid(claim, config.cutoff):
            return True
    return False


def classify(record: Record, config: ExplorerConfig) -> Classification:
    if record.has_claims(config.mandatory_claims) and (
        not config.filtered_natures or _matches_nature_filter(record, config)
    ):
        return Classification.NODE
    # a record filtered out as a node still feeds the hierarchy
    if SUBCLASS_OF_CLAIM in record.claims:
        return Classification.HIERARCHY
    return Classification.REJECT
