"""
Unit tests for the handle-based API.

Tests cover:
- open_cache / close_cache, including close_cache(None)
- Integer status codes from put / put_json
- The printing get and its constant status
- get_json absence handling
"""

from pathlib import Path

import pytest

from gcache.cache import close_cache, get, get_json, open_cache, put, put_json
from gcache.errors import (
    ERROR_NO_HANDLE,
    ERROR_STORAGE_READONLY,
    CacheDirectoryError,
)
from gcache.store import GeoCache

TEST_MAP_SIZE = 10 * 1024 * 1024


@pytest.fixture
def handle(cache_dir: Path) -> GeoCache:
    """Open a cache through the handle API."""
    h = open_cache(cache_dir, map_size=TEST_MAP_SIZE)
    yield h
    close_cache(h)


class TestOpenClose:
    """Tests for open_cache and close_cache."""

    def test_open_returns_handle(self, handle: GeoCache) -> None:
        """A handle is returned for an existing directory."""
        assert isinstance(handle, GeoCache)
        assert handle.is_open

    def test_open_non_directory(self, temp_dir: Path) -> None:
        """No handle is produced for a regular file."""
        path = temp_dir / "file"
        path.write_text("")
        with pytest.raises(CacheDirectoryError):
            open_cache(path)

    def test_close_none(self) -> None:
        """close_cache(None) is a no-op."""
        close_cache(None)

    def test_close_once(self, cache_dir: Path) -> None:
        """A valid handle closes cleanly."""
        h = open_cache(cache_dir, map_size=TEST_MAP_SIZE)
        close_cache(h)
        assert not h.is_open


class TestPut:
    """Tests for put and put_json status codes."""

    def test_put_success_is_zero(self, handle: GeoCache) -> None:
        """Successful writes return 0."""
        assert put(handle, "u0yjjd6", "abc") == 0
        assert handle.get_raw("u0yjjd6") == b"abc\x00"

    def test_put_json_success_is_zero(self, handle: GeoCache, sample_record: dict) -> None:
        """Successful JSON writes return 0."""
        assert put_json(handle, "u1x0esw", sample_record) == 0
        assert get_json(handle, "u1x0esw") == sample_record

    def test_put_without_handle(self) -> None:
        """A missing handle has its own code."""
        assert put(None, "u0", "x") == ERROR_NO_HANDLE
        assert put_json(None, "u0", {}) == ERROR_NO_HANDLE

    def test_put_read_only_nonzero(self, cache_dir: Path) -> None:
        """Writes on a read-only handle return a storage code."""
        h = open_cache(cache_dir, map_size=TEST_MAP_SIZE)
        put(h, "u0", "x")
        close_cache(h)

        h = open_cache(cache_dir, read_only=True, map_size=TEST_MAP_SIZE)
        try:
            code = put(h, "u0", "y")
            assert code == ERROR_STORAGE_READONLY
            assert code != ERROR_NO_HANDLE
        finally:
            close_cache(h)

    def test_put_encoding_failure_nonzero(self, handle: GeoCache) -> None:
        """Unserializable records give a nonzero code."""
        assert put_json(handle, "u0", {"x": {1, 2}}) != 0


class TestGet:
    """Tests for get and get_json."""

    def test_get_prints_value(self, handle: GeoCache, capsys: pytest.CaptureFixture) -> None:
        """get prints the stored text and returns 0."""
        put(handle, "u0", "v1")
        put(handle, "u0", "v2")

        assert get(handle, "u0") == 0
        out = capsys.readouterr().out
        assert out == "v2\n"
        assert "v1" not in out

    def test_get_missing_still_zero(self, handle: GeoCache, capsys: pytest.CaptureFixture) -> None:
        """The outcome is only visible in the output."""
        assert get(handle, "u0") == 0
        assert "not found" in capsys.readouterr().out

    def test_get_without_handle(self) -> None:
        """Only a missing handle gives a nonzero status."""
        assert get(None, "u0") == ERROR_NO_HANDLE

    def test_get_json_absent(self, handle: GeoCache) -> None:
        """Missing keys return None."""
        assert get_json(handle, "nonexistent-key") is None

    def test_get_json_without_handle(self) -> None:
        """A missing handle returns None."""
        assert get_json(None, "u0") is None

    def test_get_json_corrupt(self, handle: GeoCache) -> None:
        """Corrupt values return None."""
        put(handle, "u0", "not json")
        assert get_json(handle, "u0") is None
