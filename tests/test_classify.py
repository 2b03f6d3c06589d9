from __future__ import annotations

from dataclasses import replace

from border_explorer.ingest.claims import parse_record
from border_explorer.ingest.classify import Classification, classify, prefilter
from dumplines import claim, item_snak, line, place, record, subclass, time_snak


def test_prefilter_skips_framing_lines(config) -> None:
    assert not prefilter("[", config)
    assert not prefilter("]", config)
    assert not prefilter("", config)


def test_prefilter_needs_all_mandatory_claims_or_a_subclass(config) -> None:
    assert prefilter(line(place("Q1", ["Q515"], ["Q2"])), config)
    assert prefilter(line(subclass("Q515", ["Q486972"])), config)
    partial = record("Q3", claims={"P31": [claim(item_snak("P31", "Q5"))]})
    assert not prefilter(line(partial), config)


def test_place_with_all_claims_is_a_node(config) -> None:
    rec = parse_record(line(place("Q1", ["Q515"], ["Q2"])))
    assert classify(rec, config) is Classification.NODE


def test_type_record_is_hierarchy_only(config) -> None:
    rec = parse_record(line(subclass("Q515", ["Q486972"])))
    assert classify(rec, config) is Classification.HIERARCHY


def test_record_without_claims_of_interest_is_rejected(config) -> None:
    rec = parse_record(line(record("Q5", en="human", claims={"P31": [claim(item_snak("P31", "Q16521"))]})))
    assert classify(rec, config) is Classification.REJECT


def test_nature_filter_keeps_matching_places(config) -> None:
    cfg = replace(config, filtered_natures=frozenset({484170}))
    commune = parse_record(line(place("Q1", ["Q484170"], ["Q2"])))
    city = parse_record(line(place("Q3", ["Q515"], ["Q4"])))
    assert classify(commune, cfg) is Classification.NODE
    assert classify(city, cfg) is Classification.REJECT


def test_nature_filter_ignores_expired_natures(config) -> None:
    cfg = replace(config, filtered_natures=frozenset({484170}))
    obj = place("Q1", [], ["Q2"])
    obj["claims"]["P31"] = [claim(item_snak("P31", "Q484170"), P582=[time_snak("+2016-01-01T00:00:00Z")])]
    assert classify(parse_record(line(obj)), cfg) is Classification.REJECT


def test_filtered_out_place_still_feeds_the_hierarchy(config) -> None:
    cfg = replace(config, filtered_natures=frozenset({484170}))
    obj = place("Q1", ["Q515"], ["Q2"])
    obj["claims"]["P279"] = [claim(item_snak("P279", "Q486972"))]
    assert classify(parse_record(line(obj)), cfg) is Classification.HIERARCHY
