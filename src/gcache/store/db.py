"""
LMDB storage for gcache.

This module owns the LMDB environment behind a cache and runs every cache
operation in its own short-lived transaction.

Design Principles:
    - One environment, one table: the unnamed main database is resolved
      once, in a bootstrap transaction at open time, and reused afterwards
    - One transaction per operation: nothing spans two keys or two calls
    - Scoped transactions: commit on normal exit, abort on any exception
    - No exceptions for storage failures: operations return a CacheResult;
      only opening the cache raises

Why LMDB?
    - ACID transactions over sorted byte keys
    - MVCC: readers see a snapshot and never block the single writer
    - Memory-mapped, so reads of small JSON values are cheap
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Iterable, Iterator

import lmdb
from rich.console import Console

from gcache import codec
from gcache.errors import (
    BootstrapError,
    CacheDirectoryError,
    CacheNotOpenError,
    DecodeError,
    EncodeError,
    EnvironmentOpenError,
    GcacheError,
    InvalidKeyError,
    StorageError,
    StorageMapFullError,
    StorageReadError,
    StorageReadOnlyError,
    StorageWriteError,
)
from gcache.schema import LMDB_DB_SIZE, CacheConfig, CacheResult, CacheStatus

logger = logging.getLogger(__name__)

# Permissions for the data and lock files LMDB creates.
FILE_MODE = 0o664


def _status_for(error: GcacheError) -> CacheStatus:
    """Map an error onto the result status callers match on."""
    if isinstance(error, CacheNotOpenError):
        return CacheStatus.NO_HANDLE
    if isinstance(error, InvalidKeyError):
        return CacheStatus.INVALID_KEY
    if isinstance(error, EncodeError):
        return CacheStatus.ENCODING_ERROR
    if isinstance(error, DecodeError):
        return CacheStatus.DECODING_ERROR
    if isinstance(error, StorageReadOnlyError):
        return CacheStatus.READONLY
    return CacheStatus.STORAGE_ERROR


def _write_error(operation: str, key: str | None, error: lmdb.Error) -> StorageError:
    """Wrap an LMDB exception raised inside a write transaction."""
    if isinstance(error, lmdb.ReadonlyError):
        cls: type[StorageWriteError] = StorageReadOnlyError
    elif isinstance(error, lmdb.MapFullError):
        cls = StorageMapFullError
    else:
        cls = StorageWriteError
    return cls(operation=operation, key=key, underlying_error=str(error))


class GeoCache:
    """
    Transactional geohash -> JSON cache on top of LMDB.

    Usage:
        cache = GeoCache("/var/spool/gcache")
        cache.put_json("u0yjjd6", {"cc": "DE", "locality": "Hamburg"})
        record = cache.get_json("u0yjjd6")
        cache.close()

    Or use as context manager:
        with GeoCache("/var/spool/gcache", read_only=True) as cache:
            ...

    Operations may be called from several threads at once. Closing must not
    overlap with any other call, and a cache must be closed only once.
    """

    def __init__(
        self,
        path: str | Path,
        read_only: bool = False,
        map_size: int = LMDB_DB_SIZE,
    ) -> None:
        """
        Open the LMDB environment and resolve its main table.

        Args:
            path: Existing directory for the LMDB data and lock files.
                  It is not created.
            read_only: Open the environment without write access.
            map_size: Maximum size of the memory map in bytes.

        Raises:
            CacheDirectoryError: If path is not an existing directory
            EnvironmentOpenError: If LMDB cannot open the environment
            BootstrapError: If the main table cannot be resolved
        """
        self.path = Path(path)
        self.read_only = read_only
        self.map_size = map_size
        self._env: lmdb.Environment | None = None
        self._db: Any = None
        self._open()

    @classmethod
    def from_config(cls, config: CacheConfig) -> "GeoCache":
        """Open a cache from a validated configuration."""
        return cls(config.path, read_only=config.read_only, map_size=config.map_size)

    def _open(self) -> None:
        """Open the environment and run the bootstrap transaction."""
        if not self.path.is_dir():
            error = CacheDirectoryError(path=str(self.path))
            logger.debug("%s", error.message)
            raise error

        try:
            env = lmdb.open(
                str(self.path),
                map_size=self.map_size,
                readonly=self.read_only,
                subdir=True,
                mode=FILE_MODE,
            )
        except lmdb.Error as e:
            logger.debug("lmdb.open(%s): %s", self.path, e)
            raise EnvironmentOpenError(path=str(self.path), underlying_error=str(e)) from e

        # Pseudo transaction whose only job is to resolve the table handle
        try:
            with env.begin(write=not self.read_only) as txn:
                db = env.open_db(None, txn=txn, create=not self.read_only)
        except lmdb.Error as e:
            env.close()
            logger.debug("Cannot open table in %s: %s", self.path, e)
            raise BootstrapError(path=str(self.path), underlying_error=str(e)) from e

        self._env = env
        self._db = db
        logger.debug("Opened cache at %s (read_only=%s)", self.path, self.read_only)

    @property
    def is_open(self) -> bool:
        """True until close() has been called."""
        return self._env is not None

    def close(self) -> None:
        """
        Close the LMDB environment.

        Transactions are neither committed nor aborted here; callers must not
        close while other operations are in flight.
        """
        if self._env is not None:
            self._env.close()
            self._env = None
            self._db = None
            logger.debug("Closed cache at %s", self.path)

    def __enter__(self) -> "GeoCache":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        mode = "ro" if self.read_only else "rw"
        return f"GeoCache({str(self.path)!r}, {mode}, {state})"

    @contextmanager
    def transaction(self, write: bool = False) -> Generator[lmdb.Transaction, None, None]:
        """
        Context manager for a single LMDB transaction on the cache table.

        Commits when the block exits normally, read transactions included,
        and aborts when it raises.

        Raises:
            CacheNotOpenError: If the cache has been closed
        """
        if self._env is None:
            raise CacheNotOpenError(operation="transaction")
        with self._env.begin(db=self._db, write=write) as txn:
            yield txn

    def _failure(self, error: GcacheError, key: str | None) -> CacheResult:
        """Log an error and turn it into a failed result."""
        logger.error("%s", error.message)
        if isinstance(error, InvalidKeyError):
            # Unencodable keys are reported by their repr
            key = error.key
        return CacheResult(
            status=_status_for(error),
            code=error.code,
            key=key,
            message=error.message,
        )

    # =========================================================================
    # Write Operations
    # =========================================================================

    def put(self, key: str, payload: str) -> CacheResult:
        """
        Store a text payload under key, replacing any previous value.

        The payload is stored with its NUL terminator. A failed write aborts
        the transaction instead of committing it.

        Args:
            key: Geohash string
            payload: Text to store

        Returns:
            CacheResult with code 0 on success
        """
        if self._env is None:
            return self._failure(CacheNotOpenError(operation="put"), key)
        if self.read_only:
            return self._failure(StorageReadOnlyError(operation="put", key=key), key)

        try:
            key_bytes = codec.encode_key(key)
            value = codec.encode_payload(payload)
        except (InvalidKeyError, EncodeError) as e:
            return self._failure(e, key)

        try:
            with self.transaction(write=True) as txn:
                txn.put(key_bytes, value, overwrite=True)
        except lmdb.Error as e:
            return self._failure(_write_error("put", key, e), key)

        return CacheResult(status=CacheStatus.OK, key=key)

    def put_json(self, key: str, record: Any) -> CacheResult:
        """
        Serialize record to minified JSON and store it under key.

        Nothing is written when the record cannot be serialized.
        """
        if self._env is None:
            return self._failure(CacheNotOpenError(operation="put_json"), key)

        try:
            text = codec.dumps_record(record)
        except EncodeError as e:
            return self._failure(e, key)

        return self.put(key, text)

    def delete(self, key: str) -> CacheResult:
        """Remove key. Returns NOT_FOUND when there was nothing to remove."""
        if self._env is None:
            return self._failure(CacheNotOpenError(operation="delete"), key)
        if self.read_only:
            return self._failure(StorageReadOnlyError(operation="delete", key=key), key)

        try:
            key_bytes = codec.encode_key(key)
        except InvalidKeyError as e:
            return self._failure(e, key)

        try:
            with self.transaction(write=True) as txn:
                deleted = txn.delete(key_bytes)
        except lmdb.Error as e:
            return self._failure(_write_error("delete", key, e), key)

        if not deleted:
            return CacheResult(status=CacheStatus.NOT_FOUND, key=key)
        return CacheResult(status=CacheStatus.OK, key=key)

    def load(self, lines: Iterable[str]) -> tuple[int, int]:
        """
        Import lines written by dump(), one put per line.

        Each line is a JSON array [key, text]; see codec.format_entry().
        Blank lines are ignored. Malformed lines and failed puts are logged
        and counted as skipped.

        Returns:
            (stored, skipped) line counts
        """
        stored = skipped = 0
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                key, payload = codec.parse_entry(line)
            except DecodeError as e:
                logger.warning("load: line %d skipped: %s", lineno, e.message)
                skipped += 1
                continue
            if self.put(key, payload).ok:
                stored += 1
            else:
                skipped += 1
        return stored, skipped

    # =========================================================================
    # Read Operations
    # =========================================================================

    def _fetch(self, operation: str, key: str) -> CacheResult:
        """Read the raw stored bytes for key in one read transaction."""
        if self._env is None:
            return self._failure(CacheNotOpenError(operation=operation), key)

        try:
            key_bytes = codec.encode_key(key)
        except InvalidKeyError as e:
            return self._failure(e, key)

        try:
            with self.transaction() as txn:
                raw = txn.get(key_bytes)
        except lmdb.Error as e:
            error = StorageReadError(operation=operation, key=key, underlying_error=str(e))
            return self._failure(error, key)

        if raw is None:
            logger.debug("%s(%s): not found", operation, key)
            return CacheResult(status=CacheStatus.NOT_FOUND, key=key)
        return CacheResult(status=CacheStatus.OK, key=key, value=raw)

    def get_raw(self, key: str) -> bytes | None:
        """Return the stored bytes for key, terminator included."""
        result = self._fetch("get_raw", key)
        return result.value if result.ok else None

    def lookup(self, key: str) -> CacheResult:
        """Look up key and return its stored text without the terminator."""
        result = self._fetch("get", key)
        if not result.ok:
            return result
        try:
            text = codec.decode_payload(result.value)
        except DecodeError as e:
            return self._failure(e, key)
        return CacheResult(status=CacheStatus.OK, key=key, value=text)

    def lookup_json(self, key: str) -> CacheResult:
        """
        Look up key and decode its JSON record.

        Unlike get_json(), the result tells a missing key (NOT_FOUND) apart
        from a stored value that is not JSON (DECODING_ERROR).
        """
        result = self._fetch("get_json", key)
        if not result.ok:
            return result
        try:
            record = codec.decode_record(result.value)
        except DecodeError as e:
            return self._failure(e, key)
        return CacheResult(status=CacheStatus.OK, key=key, value=record)

    def get_json(self, key: str) -> Any | None:
        """
        Return the record stored under key, or None.

        None covers a missing key, a storage failure and a stored value that
        does not decode; use lookup_json() to tell them apart.
        """
        result = self.lookup_json(key)
        return result.value if result.ok else None

    def show(self, key: str, console: Console | None = None) -> CacheResult:
        """
        Print the value stored under key to stdout.

        Prints the text when found, a "not found" notice otherwise, or the
        storage diagnostic on failure. Meant for interactive use; the result
        is returned for callers that want it.
        """
        if console is None:
            console = Console()

        result = self.lookup(key)
        if result.ok:
            text = result.value
        elif result.status == CacheStatus.NOT_FOUND:
            text = f" [{key}] not found"
        else:
            text = f"get: {result.message}"
        console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)
        return result

    def dump(self) -> Iterator[tuple[str, str]]:
        """
        Yield every (key, text) pair in key order.

        Entries whose key or value is not valid UTF-8 are logged and skipped.
        A single read transaction is held until the iterator is exhausted
        or closed.

        Raises:
            CacheNotOpenError: If the cache has been closed
            StorageReadError: If LMDB fails while iterating
        """
        try:
            with self.transaction() as txn:
                for raw_key, raw_value in txn.cursor():
                    try:
                        key = bytes(raw_key).decode("utf-8")
                    except UnicodeDecodeError as e:
                        logger.warning("dump: key %r is not UTF-8, skipped: %s", bytes(raw_key), e)
                        continue
                    try:
                        text = codec.decode_payload(raw_value)
                    except DecodeError as e:
                        logger.warning("dump(%s): %s, skipped", key, e.message)
                        continue
                    yield key, text
        except lmdb.Error as e:
            raise StorageReadError(operation="dump", underlying_error=str(e)) from e

    def stats(self) -> dict[str, int]:
        """
        Return table and environment statistics.

        Raises:
            CacheNotOpenError: If the cache has been closed
            StorageReadError: If LMDB cannot report them
        """
        if self._env is None:
            raise CacheNotOpenError(operation="stats")
        try:
            stat = self._env.stat()
            info = self._env.info()
        except lmdb.Error as e:
            raise StorageReadError(operation="stats", underlying_error=str(e)) from e
        return {
            "entries": stat["entries"],
            "psize": stat["psize"],
            "depth": stat["depth"],
            "leaf_pages": stat["leaf_pages"],
            "map_size": info["map_size"],
            "last_txnid": info["last_txnid"],
        }
