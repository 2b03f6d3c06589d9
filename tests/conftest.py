"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from border_explorer.config import ExplorerConfig
from border_explorer.graph.store import SQLiteGraphStore


@pytest.fixture
def config() -> ExplorerConfig:
    """Default configuration without any banned id."""
    return ExplorerConfig(banned_categories=frozenset(), banned_parents=frozenset(), commit_every=2)


@pytest.fixture
def store(tmp_path, config):
    s = SQLiteGraphStore(path=str(tmp_path / "graph.db"))
    s.init(config.banned_categories)
    yield s
    s.close()
