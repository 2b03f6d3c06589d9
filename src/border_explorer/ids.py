"""Wikidata entity ids as stored in the graph."""

from __future__ import annotations

from .errors import InvalidEntityId


def int_id(raw: str) -> int:
    """Decode `Q<digits>` into its integer part."""
    if not raw or raw[0] != "Q":
        raise InvalidEntityId(raw, "not a Q-entity")
    digits = raw[1:]
    if not digits.isascii() or not digits.isdigit():
        raise InvalidEntityId(raw, f"not an int {digits!r}")
    value = int(digits)
    if value <= 0:
        raise InvalidEntityId(raw, "not a positive id")
    return value
