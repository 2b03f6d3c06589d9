"""Wikidata entity records: parsing, ids, claim validity and natures.

Only the parts of a record the graph needs are modelled. Snaks are reduced
to three shapes (item reference, globe coordinate, time); anything else is
kept as an opaque `UnknownSnak` so that a record with exotic claims still
parses.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from ..config import EXPIRY_QUALIFIER, SUBJECT_ROLE_QUALIFIER
from ..errors import InvalidEntityId
from ..ids import int_id
from .stats import SkipCounter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ItemSnak:
    id: str


@dataclass(frozen=True, slots=True)
class CoordinateSnak:
    # decimal text, exactly as found in the dump
    latitude: str
    longitude: str


@dataclass(frozen=True, slots=True)
class TimeSnak:
    time: str
    precision: int


@dataclass(frozen=True, slots=True)
class UnknownSnak:
    datatype: str | None = None


Snak = ItemSnak | CoordinateSnak | TimeSnak | UnknownSnak


@dataclass(frozen=True, slots=True)
class Claim:
    mainsnak: Snak
    qualifiers: dict[str, list[Snak]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Record:
    id: str
    labels: dict[str, str]
    claims: dict[str, list[Claim]]

    def label(self, lang: str) -> str | None:
        return self.labels.get(lang)

    def has_claims(self, kinds: Iterable[str]) -> bool:
        return all(k in self.claims for k in kinds)


def _decimal_text(v: Any) -> str | None:
    if isinstance(v, bool) or not isinstance(v, (int, Decimal)):
        return None
    if isinstance(v, Decimal) and not v.is_finite():
        return None
    return str(v)


def parse_snak(d: Any) -> Snak:
    if not isinstance(d, dict):
        return UnknownSnak()
    datatype = d.get("datatype")
    datavalue = d.get("datavalue")
    value = datavalue.get("value") if isinstance(datavalue, dict) else None
    # "somevalue"/"novalue" snaks carry no datavalue
    if not isinstance(value, dict):
        return UnknownSnak(datatype)

    if datatype == "wikibase-item":
        item_id = value.get("id")
        if isinstance(item_id, str):
            return ItemSnak(item_id)
    elif datatype == "globe-coordinate":
        lat = _decimal_text(value.get("latitude"))
        lon = _decimal_text(value.get("longitude"))
        if lat is not None and lon is not None:
            return CoordinateSnak(lat, lon)
    elif datatype == "time":
        t = value.get("time")
        precision = value.get("precision")
        if isinstance(t, str) and isinstance(precision, int) and not isinstance(precision, bool):
            return TimeSnak(t, precision)
    return UnknownSnak(datatype)


def _parse_claim(d: Any) -> Claim | None:
    if not isinstance(d, dict):
        return None
    quals: dict[str, list[Snak]] = {}
    raw_quals = d.get("qualifiers")
    if isinstance(raw_quals, dict):
        for prop, snaks in raw_quals.items():
            if isinstance(snaks, list):
                quals[prop] = [parse_snak(s) for s in snaks]
    return Claim(mainsnak=parse_snak(d.get("mainsnak")), qualifiers=quals)


def decode_line(line: str) -> dict[str, Any]:
    """Decode one dump line: a JSON object followed by the array's `,`."""
    text = line.rstrip()
    if text.endswith(","):
        text = text[:-1]
    obj = json.loads(text, parse_float=Decimal)
    if not isinstance(obj, dict):
        raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def parse_record(line: str) -> Record:
    """Parse a dump line into a `Record`.

    Raises `ValueError` (including `json.JSONDecodeError`) on a line that is
    not a JSON object or has no string `id`.
    """
    obj = decode_line(line)
    rid = obj.get("id")
    if not isinstance(rid, str):
        raise ValueError("record has no id")

    labels: dict[str, str] = {}
    raw_labels = obj.get("labels")
    if isinstance(raw_labels, dict):
        for lang, lab in raw_labels.items():
            if isinstance(lab, dict) and isinstance(lab.get("value"), str):
                labels[lang] = lab["value"]

    claims: dict[str, list[Claim]] = {}
    raw_claims = obj.get("claims")
    if isinstance(raw_claims, dict):
        for prop, items in raw_claims.items():
            if not isinstance(items, list):
                continue
            claims[prop] = [c for c in (_parse_claim(x) for x in items) if c is not None]
    return Record(id=rid, labels=labels, claims=claims)


# --- claim validity ---------------------------------------------------------

_TIME_RE = re.compile(r"^([+-]?)(\d+)-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})Z$")

# Wikidata precision codes: 9 = year (and coarser below), 10 = month, 11 = day
YEAR_PRECISION = 9
MONTH_PRECISION = 10


def expiry_instant(snak: TimeSnak) -> datetime | None:
    """Normalize a Wikidata time to a UTC instant, honouring its precision.

    Year-or-coarser times become January 1st of their year, month times the
    1st of their month. Returns None when the value cannot be represented
    (malformed, negative or out-of-range years).
    """
    m = _TIME_RE.match(snak.time)
    if not m:
        return None
    sign, year, month, day, hh, mm, ss = m.groups()
    if sign == "-":
        return None
    try:
        if snak.precision <= YEAR_PRECISION:
            return datetime(int(year), 1, 1, tzinfo=timezone.utc)
        if snak.precision == MONTH_PRECISION:
            return datetime(int(year), int(month), 1, tzinfo=timezone.utc)
        return datetime(
            int(year), int(month), int(day), int(hh), int(mm), int(ss), tzinfo=timezone.utc
        )
    except ValueError:
        return None


def expired_before(expiries: list[Snak], cutoff: datetime, skips: SkipCounter | None = None) -> bool:
    """True when every expiry qualifier is a time strictly before `cutoff`."""
    for snak in expiries:
        if not isinstance(snak, TimeSnak):
            return False
        instant = expiry_instant(snak)
        if instant is None:
            # unparseable dates are mostly year-only ancient ones: count as expired
            logger.debug("cannot parse date %r of precision %s", snak.time, snak.precision)
            if skips is not None:
                skips.skip("expired_date_unparseable")
            continue
        if instant >= cutoff:
            return False
    return True


def claim_still_valid(claim: Claim, cutoff: datetime, skips: SkipCounter | None = None) -> bool:
    expiries = claim.qualifiers.get(EXPIRY_QUALIFIER)
    if expiries is None:
        return True
    return not expired_before(expiries, cutoff, skips)


def claim_and_roles(claim: Claim, skips: SkipCounter | None = None) -> list[int]:
    """The claim's item id followed by any subject-role qualifier ids."""
    out: list[int] = []
    main = claim.mainsnak
    if not isinstance(main, ItemSnak):
        if skips is not None:
            skips.skip("invalid_nature_id", main)
        return out
    try:
        out.append(int_id(main.id))
    except InvalidEntityId as e:
        if skips is not None:
            skips.skip("invalid_nature_id", e)
        return out

    for role in claim.qualifiers.get(SUBJECT_ROLE_QUALIFIER, ()):
        if not isinstance(role, ItemSnak):
            continue
        try:
            out.append(int_id(role.id))
        except InvalidEntityId as e:
            logger.warning("invalid role claim: %s", e)
            if skips is not None:
                skips.skip("invalid_role_id")
    return out
