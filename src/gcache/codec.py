"""
Value codec for gcache.

Stored values are UTF-8 text followed by a single NUL byte. The terminator
is part of the on-disk format and must be kept for compatibility with
existing databases; it is never part of the decoded text.

Structured records are stored as minified JSON text using the same layout.
"""

import json
from typing import Any

from gcache.errors import DecodeError, EncodeError, InvalidKeyError

TERMINATOR = b"\x00"


def encode_key(key: str) -> bytes:
    """Encode a geohash key. No terminator is added to keys."""
    if not isinstance(key, str):
        raise InvalidKeyError(key=repr(key), reason="key must be a string")
    if not key:
        raise InvalidKeyError(key=key, reason="key must not be empty")
    try:
        return key.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidKeyError(key=repr(key), reason=f"key is not valid UTF-8: {e.reason}") from e


def encode_payload(text: str) -> bytes:
    """
    Encode text for storage, appending the NUL terminator.

    Raises:
        EncodeError: If the text is not a string or contains a NUL, which
            would truncate it on the way back out.
    """
    if not isinstance(text, str):
        raise EncodeError(underlying_error=f"payload must be str, not {type(text).__name__}")
    if "\x00" in text:
        raise EncodeError(underlying_error="payload contains a NUL character")
    try:
        return text.encode("utf-8") + TERMINATOR
    except UnicodeEncodeError as e:
        raise EncodeError(underlying_error=str(e)) from e


def decode_payload(raw: bytes) -> str:
    """
    Interpret stored bytes as a terminated string.

    Everything from the first NUL on is ignored. Values written without a
    terminator are taken whole.

    Raises:
        DecodeError: If the bytes are not valid UTF-8.
    """
    raw = bytes(raw)
    end = raw.find(TERMINATOR)
    if end != -1:
        raw = raw[:end]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(underlying_error=str(e)) from e


def dumps_record(record: Any) -> str:
    """Serialize a record to minified JSON text."""
    try:
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as e:
        raise EncodeError(underlying_error=str(e)) from e


def loads_record(text: str) -> Any:
    """Parse JSON text read back from the cache."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise DecodeError(
            underlying_error=str(e),
            message=f"Cannot decode JSON from cache: {e}",
        ) from e


def decode_record(raw: bytes) -> Any:
    """Parse stored bytes straight back into a record."""
    return loads_record(decode_payload(raw))


def format_entry(key: str, text: str) -> str:
    """Format a dumped entry as a single line: a JSON array of key and text."""
    return json.dumps([key, text], ensure_ascii=False)


def parse_entry(line: str) -> tuple[str, str]:
    """
    Parse a line written by format_entry().

    Raises:
        DecodeError: If the line is not a JSON array of two strings.
    """
    try:
        entry = json.loads(line)
    except (json.JSONDecodeError, RecursionError) as e:
        raise DecodeError(underlying_error=str(e), message=f"Invalid dump line: {e}") from e
    if (
        not isinstance(entry, list)
        or len(entry) != 2
        or not all(isinstance(part, str) for part in entry)
    ):
        raise DecodeError(
            underlying_error="expected [key, text]",
            message="Invalid dump line: expected a JSON array [key, text]",
        )
    return entry[0], entry[1]
