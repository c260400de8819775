"""
gcache - Transactional on-disk geohash cache for reverse-geocoding results.

gcache stores JSON location records keyed by geohash in an LMDB environment.
It provides:
- One short-lived transaction per operation (commit or abort, never leaked)
- JSON encode/decode at the boundary, values stored NUL-terminated
- Typed results instead of printed diagnostics
- A small CLI for inspecting and maintaining caches

Example usage:
    $ gcache put-json u0yjjd6 '{"cc": "DE"}' --dir ./ghash
    $ gcache get u0yjjd6 --dir ./ghash
    $ gcache dump --dir ./ghash
"""

__version__ = "0.1.0"
__author__ = "gcache Contributors"

from gcache.cache import close_cache, get, get_json, open_cache, put, put_json
from gcache.errors import GcacheError
from gcache.schema import CacheConfig, CacheResult, CacheStatus
from gcache.store import GeoCache

__all__ = [
    "__version__",
    "__author__",
    "CacheConfig",
    "CacheResult",
    "CacheStatus",
    "GcacheError",
    "GeoCache",
    "close_cache",
    "get",
    "get_json",
    "open_cache",
    "put",
    "put_json",
]
