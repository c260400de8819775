"""
Unit tests for the value codec.

Tests cover:
- Key encoding and validation
- NUL-terminated payload encoding
- Decoding terminated and unterminated values
- JSON record serialization and parsing
- Dump line formatting
"""

import pytest

from gcache.codec import (
    TERMINATOR,
    decode_payload,
    decode_record,
    dumps_record,
    encode_key,
    encode_payload,
    format_entry,
    loads_record,
    parse_entry,
)
from gcache.errors import ERROR_DECODE, ERROR_ENCODE, DecodeError, EncodeError, InvalidKeyError


class TestKeys:
    """Tests for key encoding."""

    def test_key_has_no_terminator(self) -> None:
        """Keys are stored as their bytes only."""
        assert encode_key("u0yjjd6") == b"u0yjjd6"

    def test_empty_key_rejected(self) -> None:
        """An empty key is an input error."""
        with pytest.raises(InvalidKeyError):
            encode_key("")

    def test_non_string_key_rejected(self) -> None:
        """Keys must be strings."""
        with pytest.raises(InvalidKeyError):
            encode_key(b"u0yjjd6")  # type: ignore[arg-type]

    def test_surrogate_key_rejected(self) -> None:
        """A lone surrogate cannot be encoded as UTF-8."""
        with pytest.raises(InvalidKeyError) as exc_info:
            encode_key("u\ud800")
        assert "\\ud800" in exc_info.value.message


class TestPayload:
    """Tests for NUL-terminated payloads."""

    def test_terminator_appended(self) -> None:
        """Encoded payload ends with exactly one NUL byte."""
        assert encode_payload("abc") == b"abc\x00"
        assert TERMINATOR == b"\x00"

    def test_empty_payload(self) -> None:
        """Empty text is stored as a lone terminator."""
        assert encode_payload("") == b"\x00"
        assert decode_payload(b"\x00") == ""

    def test_utf8_payload(self) -> None:
        """Non-ASCII text is stored as UTF-8."""
        raw = encode_payload("Köln")
        assert raw == "Köln".encode("utf-8") + b"\x00"
        assert decode_payload(raw) == "Köln"

    def test_decode_stops_at_terminator(self) -> None:
        """Bytes after the first NUL are ignored."""
        assert decode_payload(b"abc\x00garbage") == "abc"

    def test_decode_unterminated(self) -> None:
        """A value without terminator is taken whole."""
        assert decode_payload(b"abc") == "abc"

    def test_decode_memoryview(self) -> None:
        """Buffers returned by LMDB decode like bytes."""
        assert decode_payload(memoryview(b"abc\x00")) == "abc"

    def test_embedded_nul_rejected(self) -> None:
        """Text containing NUL would be truncated on read."""
        with pytest.raises(EncodeError) as exc_info:
            encode_payload("a\x00b")
        assert exc_info.value.code == ERROR_ENCODE

    def test_non_string_payload_rejected(self) -> None:
        """Payloads must be text."""
        with pytest.raises(EncodeError):
            encode_payload(42)  # type: ignore[arg-type]

    def test_invalid_utf8_rejected(self) -> None:
        """Bytes that aren't UTF-8 raise DecodeError."""
        with pytest.raises(DecodeError):
            decode_payload(b"\xff\xfe\x00")


class TestRecords:
    """Tests for JSON records."""

    def test_dumps_is_minified(self) -> None:
        """No whitespace between tokens."""
        assert dumps_record({"cc": "DE", "tst": 1}) == '{"cc":"DE","tst":1}'

    def test_dumps_keeps_unicode(self) -> None:
        """Non-ASCII characters are not escaped."""
        assert dumps_record({"locality": "Zürich"}) == '{"locality":"Zürich"}'

    def test_dumps_unserializable(self) -> None:
        """Objects JSON can't represent raise EncodeError."""
        with pytest.raises(EncodeError):
            dumps_record({"when": object()})

    def test_dumps_nan_rejected(self) -> None:
        """NaN has no JSON representation."""
        with pytest.raises(EncodeError):
            dumps_record({"lat": float("nan")})

    def test_nul_in_string_is_escaped(self) -> None:
        """JSON escapes NUL so records can always be stored."""
        raw = encode_payload(dumps_record({"name": "a\x00b"}))
        assert raw.count(b"\x00") == 1
        assert decode_record(raw) == {"name": "a\x00b"}

    def test_loads_malformed(self) -> None:
        """Non-JSON text raises DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            loads_record("not json")
        assert exc_info.value.code == ERROR_DECODE

    def test_decode_record_excludes_terminator(self, sample_record: dict) -> None:
        """The terminator is not handed to the JSON parser."""
        raw = encode_payload(dumps_record(sample_record))
        assert raw.endswith(b"}\x00")
        assert decode_record(raw) == sample_record

    def test_dumps_too_deep(self) -> None:
        """Records nested past the recursion limit raise EncodeError."""
        record: list = []
        for _ in range(200000):
            record = [record]
        with pytest.raises(EncodeError):
            dumps_record(record)

    def test_loads_too_deep(self) -> None:
        """Deeply nested JSON text raises DecodeError, not RecursionError."""
        with pytest.raises(DecodeError) as exc_info:
            loads_record("[" * 200000)
        assert exc_info.value.message.startswith("Cannot decode JSON")

    def test_undecodable_bytes_message(self) -> None:
        """Invalid UTF-8 is not reported as a JSON problem."""
        with pytest.raises(DecodeError) as exc_info:
            decode_payload(b"\xff\x00")
        assert exc_info.value.message.startswith("Cannot decode stored value")


class TestEntries:
    """Tests for dump lines."""

    def test_format_is_one_line(self) -> None:
        """Newlines in the text are escaped."""
        line = format_entry("u0", "line1\nline2")
        assert "\n" not in line
        assert line == '["u0", "line1\\nline2"]'

    def test_parse_keeps_spaces_and_unicode(self) -> None:
        """Keys with spaces and non-ASCII text come back unchanged."""
        line = format_entry("u0 x", "Zürich")
        assert parse_entry(line + "\n") == ("u0 x", "Zürich")

    @pytest.mark.parametrize(
        "line",
        [
            "u0 text",
            '"u0"',
            '["u0"]',
            '["u0", "a", "b"]',
            '["u0", 1]',
            '{"u0": "text"}',
        ],
    )
    def test_parse_malformed(self, line: str) -> None:
        """Anything but a two-string JSON array is rejected."""
        with pytest.raises(DecodeError) as exc_info:
            parse_entry(line)
        assert exc_info.value.message.startswith("Invalid dump line")
