from __future__ import annotations

from dataclasses import replace

import pytest

from border_explorer.errors import MalformedRecord
from border_explorer.ingest.builder import GraphBuilder, display_labels, ingest_lines
from border_explorer.ingest.claims import parse_record
from border_explorer.ingest.classify import Classification
from dumplines import claim, item_snak, line, place, record, subclass, time_snak


def _natures(store, eid: int) -> set[int]:
    return {nat for i, nat in store.iter_natures() if i == eid}


def test_node_rows_are_written(store, config) -> None:
    builder = GraphBuilder(store=store, config=config)
    rec = parse_record(line(place("Q7", ["Q515", "Q515", "Q1549591"], ["Q9", "Q3"], lat=45.75, lon=4.85, en="Lyon")))
    assert builder.add(rec) is Classification.NODE
    store.commit()
    assert store.get_labels(7) == ("Lyon", "")
    assert list(store.iter_category_nodes({515}))[0].lat == "45.75"
    assert _natures(store, 7) == {515, 1549591}
    assert store.count("natures") == 2
    assert list(store.iter_edges()) == [(3, 7), (7, 9)]


def test_english_label_falls_back_to_mul() -> None:
    assert display_labels(parse_record(line(record("Q1", mul="Andorra", fr="Andorre")))) == ("Andorra", "Andorre")
    assert display_labels(parse_record(line(record("Q1")))) == ("", "")


def test_missing_position_drops_the_whole_record(store, config) -> None:
    obj = place("Q7", ["Q515"], ["Q9"])
    obj["claims"]["P625"] = [claim({"snaktype": "somevalue", "property": "P625", "datatype": "globe-coordinate"})]
    builder = GraphBuilder(store=store, config=config)
    assert builder.add(parse_record(line(obj))) is Classification.REJECT
    assert store.count("entities") == 0
    assert store.count("edges") == 0
    assert builder.skips["missing_position"] == 1


def test_expired_natures_and_roles(store, config) -> None:
    obj = place("Q7", [], ["Q9"])
    obj["claims"]["P31"] = [
        claim(item_snak("P31", "Q484170"), P582=[time_snak("+2015-12-31T00:00:00Z")]),
        claim(item_snak("P31", "Q747074"), P2868=[item_snak("P2868", "Q5119")]),
    ]
    GraphBuilder(store=store, config=config).add(parse_record(line(obj)))
    assert _natures(store, 7) == {747074, 5119}


def test_unusable_border_targets_are_skipped(store, config) -> None:
    builder = GraphBuilder(store=store, config=config)
    builder.add(parse_record(line(place("Q7", ["Q515"], [None, "P17", "Q8", "Q7"]))))
    assert list(store.iter_edges()) == [(7, 8)]
    assert builder.skips["border_target_not_item"] == 1
    assert builder.skips["invalid_border_target"] == 1


def test_hierarchy_record_writes_label_and_parents(store, config) -> None:
    cfg = replace(config, banned_parents=frozenset({8054}))
    obj = subclass("Q484170", ["Q515", "Q8054"], en="commune of France")
    obj["claims"]["P279"].append(claim(item_snak("P279", "Q3957"), P582=[time_snak("+2000-00-00T00:00:00Z", 9)]))
    obj["claims"]["P279"].append(claim(item_snak("P279", None)))
    builder = GraphBuilder(store=store, config=cfg)
    assert builder.add(parse_record(line(obj))) is Classification.HIERARCHY
    assert store.get_labels(484170) == ("commune of France", "")
    assert list(store.iter_subclass()) == [(484170, 515)]
    assert builder.skips["banned_parent"] == 1


def test_non_item_records_are_rejected(store, config) -> None:
    obj = subclass("P1647", ["Q5"])
    builder = GraphBuilder(store=store, config=config)
    assert builder.add(parse_record(line(obj))) is Classification.REJECT
    assert builder.skips["invalid_entity_id"] == 1
    assert store.count("entities") == 0


def test_ingest_lines_counts_and_skips(store, config) -> None:
    lines = [
        "[",
        line(place("Q1", ["Q515"], ["Q2"])),
        line(record("Q5", en="human", claims={"P31": [claim(item_snak("P31", "Q16521"))]})),
        line(subclass("Q515", ["Q486972"])),
        line(place("Q2", ["Q515"], ["Q1"])),
        line(record("Q3", claims={"P31": [], "P47": [], "P625": []})),
        "]",
    ]
    stats = ingest_lines(lines, store, config)
    assert stats.lines_read == 7
    assert stats.lines_prefiltered == 4
    assert stats.nodes == 2
    assert stats.hierarchy_records == 1
    assert stats.rejected == 1
    assert stats.edge_rows == 2
    assert stats.skips["missing_position"] == 1
    assert list(store.iter_edges()) == [(1, 2)]
    assert stats.as_dict()["skips"] == {"missing_position": 1}


def test_malformed_line_is_fatal(store, config) -> None:
    with pytest.raises(MalformedRecord) as exc:
        ingest_lines(["[", '{"id":"Q1","claims":{"P279":[', "]"], store, config)
    assert exc.value.line_no == 2
