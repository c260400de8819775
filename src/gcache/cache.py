"""
Handle-based API for gcache.

These functions take the cache handle as their first argument and accept
None in its place, which the recorder-style callers rely on: a missing
handle is reported with ERROR_NO_HANDLE instead of raising, and
close_cache(None) does nothing.

Return conventions:
    put / put_json   0 on success, a nonzero gcache error code otherwise
    get              prints the value; 0 unless there is no handle
    get_json         the record, or None
"""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console

from gcache.errors import ERROR_NO_HANDLE
from gcache.schema import LMDB_DB_SIZE
from gcache.store import GeoCache

logger = logging.getLogger(__name__)


def open_cache(
    path: str | Path,
    read_only: bool = False,
    map_size: int = LMDB_DB_SIZE,
) -> GeoCache:
    """
    Open the cache stored in an existing directory.

    Raises:
        CacheOpenError: If the directory is missing or LMDB cannot open it
    """
    return GeoCache(path, read_only=read_only, map_size=map_size)


def close_cache(cache: GeoCache | None) -> None:
    """Close a cache. Must be called at most once per cache."""
    if cache is None:
        return
    cache.close()


def put(cache: GeoCache | None, key: str, payload: str) -> int:
    """Store a text payload under key."""
    if cache is None:
        logger.error("put: no cache handle")
        return ERROR_NO_HANDLE
    return cache.put(key, payload).code


def put_json(cache: GeoCache | None, key: str, record: Any) -> int:
    """Store a JSON record under key."""
    if cache is None:
        logger.error("put_json: no cache handle")
        return ERROR_NO_HANDLE
    return cache.put_json(key, record).code


def get(cache: GeoCache | None, key: str, console: Console | None = None) -> int:
    """Print the value stored under key; the outcome is only in the output."""
    if cache is None:
        logger.error("get: no cache handle")
        return ERROR_NO_HANDLE
    cache.show(key, console=console)
    return 0


def get_json(cache: GeoCache | None, key: str) -> Any | None:
    """Return the record stored under key, or None if absent or undecodable."""
    if cache is None:
        logger.error("get_json: no cache handle")
        return None
    return cache.get_json(key)
