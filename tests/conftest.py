"""Shared test fixtures for labsite package."""

import json
import os
import random

import pytest
from click.testing import CliRunner

# Rich consoles are created at import time and wrap at 80 columns when not on a
# TTY; use a wide, fixed width so long tmp paths do not split asserted messages.
os.environ["COLUMNS"] = "200"

from labsite.core.storage import MemoryStore
from labsite.core.store import ContentStore

FIXED_MILLIS = 1_700_000_000_000


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the developer's own site and global config out of every test."""
    monkeypatch.delenv("LABSITE_ROOT", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def clock():
    """A clock stuck at one instant; the id generator still never repeats."""
    return lambda: FIXED_MILLIS


@pytest.fixture
def backend():
    """Empty in-memory key-value backend."""
    return MemoryStore()


@pytest.fixture
def store(backend, clock):
    """A ContentStore loaded from seed data into a memory backend."""
    content = ContentStore(backend, clock=clock, rng=random.Random(0))
    content.load()
    return content


@pytest.fixture
def events(store):
    """List that collects every ChangeEvent the store announces."""
    received = []
    store.notifier.subscribe(received.append)
    return received


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_site_root(tmp_path, monkeypatch):
    """Create a mock site structure with .labsite/ directory."""
    data_dir = tmp_path / ".labsite"
    (data_dir / "store").mkdir(parents=True)
    (data_dir / "backups").mkdir()

    # Mock get_site_root to return our tmp_path
    from labsite.core import config
    # Clear the lru_cache first
    config.get_site_root.cache_clear()
    monkeypatch.setattr(config, "get_site_root", lambda: tmp_path)

    return tmp_path


@pytest.fixture
def read_stored(mock_site_root):
    """Factory fixture reading one persisted key of the mock site."""
    def _read(key: str):
        path = mock_site_root / ".labsite" / "store" / f"{key}.json"
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def cli_obj(store):
    """CLI context wired to the in-memory store, for invoking sub-commands directly."""
    from labsite.cli import Context

    obj = Context()
    obj._store = store
    return obj
