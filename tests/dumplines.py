"""Builders for Wikidata dump lines used across tests."""

from __future__ import annotations

import json
from typing import Any


def item_snak(prop: str, qid: str | None) -> dict[str, Any]:
    snak: dict[str, Any] = {"snaktype": "value", "property": prop, "datatype": "wikibase-item"}
    if qid is None:
        snak["snaktype"] = "novalue"
    else:
        snak["datavalue"] = {"value": {"entity-type": "item", "id": qid}, "type": "wikibase-entityid"}
    return snak


def coord_snak(lat: float, lon: float) -> dict[str, Any]:
    return {
        "snaktype": "value",
        "property": "P625",
        "datatype": "globe-coordinate",
        "datavalue": {
            "value": {"latitude": lat, "longitude": lon, "precision": 0.0001, "globe": "Q2"},
            "type": "globecoordinate",
        },
    }


def time_snak(time: str, precision: int = 11) -> dict[str, Any]:
    return {
        "snaktype": "value",
        "property": "P582",
        "datatype": "time",
        "datavalue": {"value": {"time": time, "precision": precision, "timezone": 0}, "type": "time"},
    }


def claim(mainsnak: dict[str, Any], **qualifiers: list[dict[str, Any]]) -> dict[str, Any]:
    c: dict[str, Any] = {"mainsnak": mainsnak, "type": "statement", "rank": "normal"}
    if qualifiers:
        c["qualifiers"] = qualifiers
    return c


def record(
    qid: str,
    *,
    en: str | None = None,
    fr: str | None = None,
    mul: str | None = None,
    claims: dict[str, list[dict[str, Any]]] | None = None,
) -> dict[str, Any]:
    labels = {}
    for lang, value in (("en", en), ("fr", fr), ("mul", mul)):
        if value is not None:
            labels[lang] = {"language": lang, "value": value}
    return {"type": "item", "id": qid, "labels": labels, "claims": claims or {}}


def place(
    qid: str,
    natures: list[str],
    borders: list[str | None],
    *,
    lat: float = 1.5,
    lon: float = 2.5,
    en: str | None = None,
    fr: str | None = None,
) -> dict[str, Any]:
    return record(
        qid,
        en=en if en is not None else f"Place {qid}",
        fr=fr,
        claims={
            "P31": [claim(item_snak("P31", n)) for n in natures],
            "P625": [claim(coord_snak(lat, lon))],
            "P47": [claim(item_snak("P47", b)) for b in borders],
        },
    )


def subclass(qid: str, parents: list[str], *, en: str | None = None) -> dict[str, Any]:
    return record(
        qid,
        en=en if en is not None else f"Type {qid}",
        claims={"P279": [claim(item_snak("P279", p)) for p in parents]},
    )


def line(obj: dict[str, Any]) -> str:
    """One dump line: compact JSON plus the array separator."""
    return json.dumps(obj, separators=(",", ":")) + ","
