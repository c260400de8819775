"""
Schema definitions for gcache.

This module defines the Pydantic models shared by the store and the CLI:
- CacheConfig: where and how to open the LMDB environment
- CacheStatus/CacheResult: typed outcome of every cache operation

Design Decisions:
    - Results carry a numeric code (0 on success) so callers that only want
      a plain integer status can use result.code directly
    - "not found" and "stored but undecodable" are distinct statuses; the
      plain get_json() API folds both into None
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gcache.errors import ConfigError

# Upper bound for the memory map, fixed when the environment is created.
LMDB_DB_SIZE = 5 * 1024 * 1024 * 1024


# =============================================================================
# Enums
# =============================================================================


class CacheStatus(str, Enum):
    """Outcome of a single cache operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    NO_HANDLE = "no_handle"
    INVALID_KEY = "invalid_key"
    ENCODING_ERROR = "encoding_error"
    DECODING_ERROR = "decoding_error"
    STORAGE_ERROR = "storage_error"
    READONLY = "readonly"


# =============================================================================
# Models
# =============================================================================


class CacheConfig(BaseModel):
    """
    Settings for opening a cache.

    Attributes:
        path: Existing directory that holds the LMDB data and lock files
        read_only: Open the environment without write access
        map_size: Maximum size of the memory map in bytes
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path = Field(..., description="Directory holding the LMDB environment")
    read_only: bool = Field(default=False, description="Open read-only")
    map_size: int = Field(
        default=LMDB_DB_SIZE,
        description="Maximum map size in bytes",
        gt=0,
    )


class CacheResult(BaseModel):
    """
    Result of a cache operation.

    Attributes:
        status: What happened
        code: 0 on success, otherwise the gcache error code
        key: The key the operation was about
        value: Stored text or decoded record, when one was found
        message: Diagnostic text for failures
    """

    model_config = ConfigDict(frozen=True)

    status: CacheStatus
    code: int = 0
    key: str | None = None
    value: Any = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        """True when the operation succeeded."""
        return self.status == CacheStatus.OK


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_config(path: Path | str) -> CacheConfig:
    """
    Load a cache configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated CacheConfig object

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(source=str(path), message=f"Cannot read config {path}: {e}") from e

    return _validate_config(data, str(path))


def load_config_from_string(content: str) -> CacheConfig:
    """Load a cache configuration from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(source="<string>", message=f"Cannot parse config: {e}") from e
    return _validate_config(data, "<string>")


def _validate_config(data: Any, source: str) -> CacheConfig:
    try:
        return CacheConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigError(source=source, message=f"Invalid configuration in {source}: {e}") from e
