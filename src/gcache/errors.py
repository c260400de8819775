"""
Exception hierarchy for gcache.

All gcache exceptions inherit from GcacheError, allowing callers to catch
all gcache-specific exceptions with a single except clause.

Exception Categories:
    - CacheNotOpenError / InvalidKeyError: bad input, no transaction attempted
    - CacheOpenError: the storage environment could not be opened
    - StorageError: a transaction failed inside LMDB
    - CodecError: a value could not be encoded or decoded
    - ConfigError: a configuration file is invalid

Only open-time and config errors escape the public API. Storage and codec
errors are turned into a CacheResult by the store, so every code here doubles
as the nonzero status returned by a failed put.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Input errors: 1xxx
ERROR_NO_HANDLE = 1001
ERROR_INVALID_KEY = 1002

# Environment errors: 2xxx
ERROR_OPEN_FAILED = 2001
ERROR_NOT_A_DIRECTORY = 2002
ERROR_ENV_OPEN = 2003
ERROR_BOOTSTRAP = 2004

# Transaction errors: 3xxx
ERROR_STORAGE_WRITE = 3001
ERROR_STORAGE_READ = 3002
ERROR_STORAGE_READONLY = 3003
ERROR_STORAGE_MAP_FULL = 3004

# Codec errors: 4xxx
ERROR_ENCODE = 4001
ERROR_DECODE = 4002

# Config errors: 5xxx
ERROR_CONFIG = 5001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class GcacheError(Exception):
    """
    Base exception for all gcache errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Input Errors
# =============================================================================


@dataclass
class CacheNotOpenError(GcacheError):
    """Raised when an operation is given no cache handle."""

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.operation or 'operation'}: no cache handle"
        if self.code == 0:
            self.code = ERROR_NO_HANDLE
        if not self.suggestion:
            self.suggestion = "Open the cache with open_cache() before using it"
        self.context["operation"] = self.operation


@dataclass
class InvalidKeyError(GcacheError):
    """Raised when a key cannot be used as an LMDB key."""

    key: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid key {self.key!r}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_INVALID_KEY
        self.context.update({
            "key": self.key,
            "reason": self.reason,
        })


# =============================================================================
# Environment Errors
# =============================================================================


@dataclass
class CacheOpenError(GcacheError):
    """
    Base class for failures while opening the storage environment.

    No cache handle exists when one of these is raised; anything allocated
    before the failing step has already been released.

    Attributes:
        path: The directory the cache was opened on
        underlying_error: The storage engine's diagnostic text
    """

    path: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot open cache at {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_OPEN_FAILED
        self.context.update({
            "path": self.path,
            "underlying_error": self.underlying_error,
        })


@dataclass
class CacheDirectoryError(CacheOpenError):
    """Raised when the cache path is not an existing directory."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.path} is not a directory"
        if self.code == 0:
            self.code = ERROR_NOT_A_DIRECTORY
        if not self.suggestion:
            self.suggestion = "Create the directory first; gcache does not create it"
        super().__post_init__()


@dataclass
class EnvironmentOpenError(CacheOpenError):
    """Raised when LMDB refuses to create or open the environment."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_ENV_OPEN
        if not self.suggestion:
            self.suggestion = (
                "Check permissions on the directory; a read-only open needs an "
                "existing database"
            )
        super().__post_init__()


@dataclass
class BootstrapError(CacheOpenError):
    """Raised when the bootstrap transaction cannot resolve the table."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot open table in {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_BOOTSTRAP
        super().__post_init__()


# =============================================================================
# Storage Errors
# =============================================================================


@dataclass
class StorageError(GcacheError):
    """
    Base class for transaction failures reported by LMDB.

    Attributes:
        operation: The operation that failed (e.g., "put", "get")
        key: The key involved, if any
        underlying_error: The storage engine's diagnostic text
    """

    operation: str = ""
    key: str | None = None
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "operation": self.operation,
            "key": self.key,
            "underlying_error": self.underlying_error,
        })


@dataclass
class StorageWriteError(StorageError):
    """Raised when a write transaction fails."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.operation or 'write'} failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        super().__post_init__()


@dataclass
class StorageReadError(StorageError):
    """Raised when a read transaction fails."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.operation or 'read'} failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()


@dataclass
class StorageReadOnlyError(StorageWriteError):
    """Raised when a write is attempted on a read-only cache."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.operation or 'write'} refused: cache is read-only"
        if self.code == 0:
            self.code = ERROR_STORAGE_READONLY
        if not self.suggestion:
            self.suggestion = "Reopen the cache with read_only=False"
        super().__post_init__()


@dataclass
class StorageMapFullError(StorageWriteError):
    """Raised when the environment has reached its map size."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_STORAGE_MAP_FULL
        if not self.suggestion:
            self.suggestion = "Reopen the cache with a larger map_size"
        super().__post_init__()


# =============================================================================
# Codec Errors
# =============================================================================


@dataclass
class CodecError(GcacheError):
    """Base class for value encode/decode failures."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["underlying_error"] = self.underlying_error


@dataclass
class EncodeError(CodecError):
    """Raised when a record or payload cannot be turned into stored bytes."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot encode value: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_ENCODE
        super().__post_init__()


@dataclass
class DecodeError(CodecError):
    """Raised when stored bytes are not valid UTF-8 text or not valid JSON."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot decode stored value: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_DECODE
        super().__post_init__()


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(GcacheError):
    """Raised when a cache configuration cannot be loaded."""

    source: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration: {self.source}"
        if self.code == 0:
            self.code = ERROR_CONFIG
        self.context["source"] = self.source
