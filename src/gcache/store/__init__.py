"""
Storage module for gcache.

This module provides the LMDB-backed geohash cache. Each cache owns one LMDB
environment and its unnamed main table; every operation runs in its own
short-lived transaction.

Stored values:
    - Keys are geohash strings stored as their UTF-8 bytes, no terminator
    - Values are UTF-8 text (raw payloads or minified JSON) followed by a
      single NUL byte

Why LMDB?
    - ACID transactions built-in
    - Readers never block the writer (MVCC snapshots)
    - Zero configuration, one directory per cache
"""

from gcache.store.db import GeoCache

__all__ = [
    "GeoCache",
]
