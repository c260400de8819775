"""
Pytest configuration and fixtures for gcache tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

from gcache.store import GeoCache

TEST_MAP_SIZE = 10 * 1024 * 1024


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Create an empty directory to hold a cache."""
    path = temp_dir / "ghash"
    path.mkdir()
    return path


@pytest.fixture
def cache(cache_dir: Path) -> Generator[GeoCache, None, None]:
    """Open a writable cache in a fresh directory."""
    c = GeoCache(cache_dir, map_size=TEST_MAP_SIZE)
    yield c
    c.close()


@pytest.fixture
def sample_record() -> dict[str, Any]:
    """Return a reverse-geocoding record like the recorder stores."""
    return {
        "cc": "DE",
        "addr": "Neuer Jungfernstieg 5, 20354 Hamburg, Germany",
        "locality": "Hamburg",
        "tst": 1445072445,
        "lat": 53.5553,
        "lon": 9.9924,
        "ghash": "u1x0esw",
    }
