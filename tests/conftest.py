"""Pytest configuration for test isolation.

Tunables (history cap, resolver TTL, log level) and ``DATABASE_URL`` are read
from the environment, so a developer's shell or ``.env`` could change test
outcomes. Each test starts with those variables cleared, and the per-URL
engine cache is disposed afterwards so temporary SQLite files are released.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engines

from tests.helpers.db import bootstrap_sqlite_db, seed_default_taxonomy

_ENV_VARS = (
    "DATABASE_URL",
    "AUTO_CATEGORIZE_HISTORY_LIMIT",
    "AUTO_CATEGORIZE_RESOLVER_TTL",
    "AUTO_CATEGORIZE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    dispose_engines()


@pytest.fixture()
def sqlite_url(tmp_path: Path) -> str:
    """A fresh SQLite database with the schema and the bundled taxonomy."""

    url = bootstrap_sqlite_db(tmp_path / "autocat.sqlite3")
    seed_default_taxonomy(database_url=url)
    return url
