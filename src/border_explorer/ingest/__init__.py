"""Dump ingestion: line sources, record parsing, classification and graph building."""

from .builder import GraphBuilder, ingest_lines
from .claims import Record, claim_still_valid, int_id, parse_record
from .classify import Classification, classify, prefilter
from .stats import IngestStats, SkipCounter

__all__ = [
    "Classification",
    "GraphBuilder",
    "IngestStats",
    "Record",
    "SkipCounter",
    "claim_still_valid",
    "classify",
    "ingest_lines",
    "int_id",
    "parse_record",
    "prefilter",
]
