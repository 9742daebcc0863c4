"""
Minimal CBOR (RFC 8949) reader and writer.

Only the structural subset the ledger and COSE payloads need: integers, byte
and text strings, arrays, maps, tags and the simple values used as markers.
The reader never interprets what it reads; decoders in value.py, models.py
and cose.py give the items their meaning.
"""

from __future__ import annotations

from cardanocore.constants import (
    BREAK,
    INDEFINITE,
    MAJOR_ARRAY,
    MAJOR_BYTES,
    MAJOR_MAP,
    MAJOR_NEGATIVE,
    MAJOR_SIMPLE,
    MAJOR_TAG,
    MAJOR_TEXT,
    MAJOR_UNSIGNED,
    MAX_AMOUNT,
    MAX_NESTING_DEPTH,
    SIMPLE_NULL,
)
from cardanocore.errors import MalformedEncodingError

INT64_MAX = 2**63 - 1

_MAJOR_NAMES = {
    MAJOR_UNSIGNED: "unsigned integer",
    MAJOR_NEGATIVE: "negative integer",
    MAJOR_BYTES: "byte string",
    MAJOR_TEXT: "text string",
    MAJOR_ARRAY: "array",
    MAJOR_MAP: "map",
    MAJOR_TAG: "tag",
    MAJOR_SIMPLE: "simple value",
}


class CborReader:
    """
    Sequential reader over an immutable byte buffer.

    Every read advances the position. Container headers return their item
    count, or None for an indefinite-length container that ends with a break.
    Any structural problem raises MalformedEncodingError carrying the stage
    name given at construction and the offset of the offending item.
    """

    def __init__(self, data: bytes, stage: str = "cbor"):
        self._data = bytes(data)
        self._offset = 0
        self.stage = stage

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _fail(self, reason: str, offset: int | None = None) -> MalformedEncodingError:
        position = self._offset if offset is None else offset
        return MalformedEncodingError(self.stage, position, reason)

    def _peek_byte(self) -> int:
        if self._offset >= len(self._data):
            raise self._fail("unexpected end of input")
        return self._data[self._offset]

    def _take(self, n: int) -> bytes:
        end = self._offset + n
        if end > len(self._data):
            raise self._fail(f"truncated input: need {n} bytes, have {self.remaining()}")
        chunk = self._data[self._offset : end]
        self._offset = end
        return chunk

    def _read_head(self) -> tuple[int, int | None]:
        """Read an initial byte and its argument. None means indefinite length."""
        start = self._offset
        initial = self._take(1)[0]
        major = initial >> 5
        info = initial & 0x1F

        if info < 24:
            return major, info
        if info == 24:
            return major, self._take(1)[0]
        if info == 25:
            return major, int.from_bytes(self._take(2), "big")
        if info == 26:
            return major, int.from_bytes(self._take(4), "big")
        if info == 27:
            return major, int.from_bytes(self._take(8), "big")
        if info == INDEFINITE:
            if major == MAJOR_SIMPLE:
                raise self._fail("unexpected break", start)
            if major in (MAJOR_BYTES, MAJOR_TEXT, MAJOR_ARRAY, MAJOR_MAP):
                return major, None
            raise self._fail(f"indefinite length not allowed for {_MAJOR_NAMES[major]}", start)
        raise self._fail(f"reserved additional information {info}", start)

    def _expect(self, major: int) -> int | None:
        start = self._offset
        found, arg = self._read_head()
        if found != major:
            raise self._fail(
                f"expected {_MAJOR_NAMES[major]}, found {_MAJOR_NAMES[found]}", start
            )
        return arg

    def _expect_definite(self, major: int) -> int:
        start = self._offset
        arg = self._expect(major)
        if arg is None:
            raise self._fail(f"indefinite length not allowed for {_MAJOR_NAMES[major]}", start)
        return arg

    def _check_count(self, count: int, item_size: int, start: int) -> None:
        # Each item takes at least one byte, so larger counts are truncated input
        if count * item_size > self.remaining():
            raise self._fail(f"declared length {count} exceeds remaining input", start)

    def peek_major_type(self) -> int:
        return self._peek_byte() >> 5

    def peek_is_break(self) -> bool:
        return self._peek_byte() == BREAK

    def read_break(self) -> None:
        if not self.peek_is_break():
            raise self._fail("expected break")
        self._offset += 1

    def peek_is_null(self) -> bool:
        return self._peek_byte() == (MAJOR_SIMPLE << 5) | SIMPLE_NULL

    def read_null(self) -> None:
        if not self.peek_is_null():
            raise self._fail("expected null")
        self._offset += 1

    def has_more(self, count: int | None, consumed: int) -> bool:
        """True while a container header of `count` entries has unread entries."""
        if count is None:
            return not self.peek_is_break()
        return consumed < count

    def read_uint(self) -> int:
        return self._expect_definite(MAJOR_UNSIGNED)

    def read_int(self) -> int:
        """Read an unsigned or negative integer within the signed 64-bit range."""
        start = self._offset
        major, arg = self._read_head()
        if major not in (MAJOR_UNSIGNED, MAJOR_NEGATIVE):
            raise self._fail(f"expected integer, found {_MAJOR_NAMES[major]}", start)
        if arg is None or arg > INT64_MAX:
            raise self._fail("integer out of signed 64-bit range", start)
        return arg if major == MAJOR_UNSIGNED else -1 - arg

    def read_bytes(self) -> bytes:
        start = self._offset
        length = self._expect(MAJOR_BYTES)
        if length is not None:
            self._check_count(length, 1, start)
            return self._take(length)
        return self._read_chunks(MAJOR_BYTES)

    def read_text(self) -> str:
        start = self._offset
        length = self._expect(MAJOR_TEXT)
        if length is not None:
            self._check_count(length, 1, start)
            raw = self._take(length)
        else:
            raw = self._read_chunks(MAJOR_TEXT)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self._fail(f"invalid UTF-8 in text string: {e.reason}", start) from e

    def _read_chunks(self, major: int) -> bytes:
        chunks: list[bytes] = []
        while not self.peek_is_break():
            start = self._offset
            length = self._expect(major)
            if length is None:
                raise self._fail("nested indefinite-length string chunk", start)
            chunks.append(self._take(length))
        self.read_break()
        return b"".join(chunks)

    def read_array_header(self) -> int | None:
        start = self._offset
        count = self._expect(MAJOR_ARRAY)
        if count is not None:
            self._check_count(count, 1, start)
        return count

    def read_map_header(self) -> int | None:
        start = self._offset
        count = self._expect(MAJOR_MAP)
        if count is not None:
            self._check_count(count, 2, start)
        return count

    def read_tag(self) -> int:
        return self._expect_definite(MAJOR_TAG)

    def skip(self, _depth: int = 0) -> None:
        """Consume exactly one complete data item of any type."""
        if _depth > MAX_NESTING_DEPTH:
            raise self._fail(f"nesting deeper than {MAX_NESTING_DEPTH}")

        major = self.peek_major_type()
        if major == MAJOR_BYTES:
            self.read_bytes()
            return
        if major == MAJOR_TEXT:
            self.read_text()
            return

        start = self._offset
        major, arg = self._read_head()
        if major == MAJOR_ARRAY or major == MAJOR_MAP:
            per_entry = 2 if major == MAJOR_MAP else 1
            if arg is None:
                while not self.peek_is_break():
                    for _ in range(per_entry):
                        self.skip(_depth + 1)
                self.read_break()
            else:
                self._check_count(arg, per_entry, start)
                for _ in range(arg * per_entry):
                    self.skip(_depth + 1)
        elif major == MAJOR_TAG:
            self.skip(_depth + 1)
        # integers and simple values (including floats) are fully consumed by the head

    def consumed_since(self, start: int) -> bytes:
        """Exact bytes read between `start` and the current position."""
        return self._data[start : self._offset]

    def read_raw(self) -> bytes:
        """Consume one data item and return its exact encoded bytes."""
        start = self._offset
        self.skip()
        return self._data[start : self._offset]

    def expect_end(self) -> None:
        if not self.at_end:
            raise self._fail(f"{self.remaining()} trailing bytes after item")


class CborWriter:
    """
    Encoder producing the shortest-form heads and definite lengths only.

    Output is deterministic for a given sequence of calls, which is what
    rebuilding signed structures and re-encoding values relies on.
    """

    def __init__(self) -> None:
        self._buf = bytearray()

    def _head(self, major: int, arg: int) -> None:
        if arg < 0 or arg > MAX_AMOUNT:
            raise ValueError(f"CBOR argument out of range: {arg}")
        if arg < 24:
            self._buf.append((major << 5) | arg)
        elif arg <= 0xFF:
            self._buf.append((major << 5) | 24)
            self._buf.append(arg)
        elif arg <= 0xFFFF:
            self._buf.append((major << 5) | 25)
            self._buf.extend(arg.to_bytes(2, "big"))
        elif arg <= 0xFFFFFFFF:
            self._buf.append((major << 5) | 26)
            self._buf.extend(arg.to_bytes(4, "big"))
        else:
            self._buf.append((major << 5) | 27)
            self._buf.extend(arg.to_bytes(8, "big"))

    def write_uint(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"unsigned integer expected, got {value}")
        self._head(MAJOR_UNSIGNED, value)

    def write_int(self, value: int) -> None:
        if value >= 0:
            self._head(MAJOR_UNSIGNED, value)
        else:
            self._head(MAJOR_NEGATIVE, -1 - value)

    def write_bytes(self, value: bytes) -> None:
        self._head(MAJOR_BYTES, len(value))
        self._buf.extend(value)

    def write_text(self, value: str) -> None:
        encoded = value.encode("utf-8")
        self._head(MAJOR_TEXT, len(encoded))
        self._buf.extend(encoded)

    def write_array_header(self, count: int) -> None:
        self._head(MAJOR_ARRAY, count)

    def write_map_header(self, count: int) -> None:
        self._head(MAJOR_MAP, count)

    def write_tag(self, tag: int) -> None:
        self._head(MAJOR_TAG, tag)

    def write_null(self) -> None:
        self._buf.append((MAJOR_SIMPLE << 5) | SIMPLE_NULL)

    def write_raw(self, item: bytes) -> None:
        """Append an already-encoded data item verbatim."""
        self._buf.extend(item)

    def to_bytes(self) -> bytes:
        return bytes(self._buf)
