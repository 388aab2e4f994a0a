"""Parser producing a value tree from JSON text.

Accepts strict JSON and the relaxed forms the writer can produce: unquoted
names, unquoted string values, optional commas (a newline separates elements
as well), `//` and `/* */` comments, and the number literals `NaN`,
`Infinity` and `-Infinity`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from typejson.errors import JsonSyntaxError
from typejson.output import is_number_literal
from typejson.value import JsonValue, ValueType

if TYPE_CHECKING:
    from typing import TextIO

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_VALUE_END = frozenset(",}]\r\n")
_LITERALS = {
    "true": ValueType.BOOLEAN,
    "false": ValueType.BOOLEAN,
    "null": ValueType.NULL,
}


class JsonReader:
    """Parses text into `JsonValue` trees. Instances are reusable."""

    def parse(self, source: str | bytes | bytearray | TextIO) -> JsonValue:
        """Parse a complete document.

        Args:
            source: Text, UTF-8 bytes or a readable text stream

        Returns:
            The root node

        Raises:
            JsonSyntaxError: If the input is empty or malformed

        """
        if isinstance(source, bytes | bytearray):
            text = _decode(bytes(source))
        elif isinstance(source, str):
            text = source
        else:
            text = source.read()
        return _Parser(text).parse_document()


def parse(source: str | bytes | bytearray | TextIO) -> JsonValue:
    """Parse a complete document with a default `JsonReader`."""
    return JsonReader().parse(source)


def _decode(data: bytes) -> str:
    data = data.removeprefix(b"\xef\xbb\xbf")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        prefix = data[: exc.start]
        line = prefix.count(b"\n") + 1
        column = exc.start - prefix.rfind(b"\n")
        msg = f"Invalid UTF-8 byte 0x{data[exc.start]:02x}"
        raise JsonSyntaxError(msg, line, column) from exc


class _Parser:
    """Recursive-descent parser state."""

    def __init__(self, source: str) -> None:
        self._source = source.removeprefix("\ufeff")
        self._pos = 0
        self._line = 1
        self._column = 1

    def parse_document(self) -> JsonValue:
        self._skip_whitespace_and_comments()
        if self._at_end():
            self._fail("Empty input")
        root = self._parse_value()
        self._skip_whitespace_and_comments()
        if not self._at_end():
            self._fail(f"Unexpected content after root value: {self._current()!r}")
        return root

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _current(self) -> str:
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _fail(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> NoReturn:
        raise JsonSyntaxError(
            message,
            self._line if line is None else line,
            self._column if column is None else column,
        )

    # ------------------------------------------------------------------
    # Whitespace, separators and comments
    # ------------------------------------------------------------------

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            ch = self._current()
            if ch.isspace():
                self._advance()
            elif ch == "/" and self._peek() == "/":
                while not self._at_end() and self._current() != "\n":
                    self._advance()
            elif ch == "/" and self._peek() == "*":
                self._skip_block_comment()
            else:
                break

    def _skip_separators(self) -> None:
        while True:
            self._skip_whitespace_and_comments()
            if self._current() != ",":
                return
            self._advance()

    def _skip_block_comment(self) -> None:
        line, column = self._line, self._column
        self._advance()  # /
        self._advance()  # *
        while not self._at_end():
            if self._current() == "*" and self._peek() == "/":
                self._advance()
                self._advance()
                return
            self._advance()
        self._fail("Unterminated block comment", line, column)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _parse_value(self) -> JsonValue:
        ch = self._current()
        if ch == "{":
            return self._parse_object()
        if ch == "[":
            return self._parse_array()
        if ch == '"':
            return JsonValue.string(self._parse_string())
        if not ch or ch in ",:]}":
            if not ch:
                self._fail("Unexpected end of input")
            self._fail(f"Expected a value but found {ch!r}")
        return self._parse_bare_value()

    def _parse_object(self) -> JsonValue:
        line, column = self._line, self._column
        self._advance()  # {
        node = JsonValue(ValueType.OBJECT)
        while True:
            self._skip_separators()
            if self._at_end():
                self._fail("Unterminated object", line, column)
            if self._current() == "}":
                self._advance()
                return node
            name = self._parse_name()
            self._skip_whitespace_and_comments()
            if self._current() != ":":
                self._fail(f"Expected ':' after name {name!r}")
            self._advance()
            self._skip_whitespace_and_comments()
            node.add(name, self._parse_value())

    def _parse_array(self) -> JsonValue:
        line, column = self._line, self._column
        self._advance()  # [
        node = JsonValue(ValueType.ARRAY)
        while True:
            self._skip_separators()
            if self._at_end():
                self._fail("Unterminated array", line, column)
            if self._current() == "]":
                self._advance()
                return node
            node.append(self._parse_value())

    def _parse_name(self) -> str:
        if self._current() == '"':
            return self._parse_string()
        start = self._pos
        line, column = self._line, self._column
        while not self._at_end() and self._current() not in ":\n":
            self._advance()
        name = self._source[start : self._pos].rstrip()
        if not name or self._current() != ":":
            self._fail("Expected a member name", line, column)
        return name

    def _parse_bare_value(self) -> JsonValue:
        start = self._pos
        while not self._at_end():
            ch = self._current()
            if ch in _VALUE_END or (ch == "/" and self._peek() in ("/", "*")):
                break
            self._advance()
        text = self._source[start : self._pos].rstrip()
        if text in _LITERALS:
            return JsonValue(_LITERALS[text], text)
        if is_number_literal(text):
            return JsonValue(ValueType.NUMBER, text)
        return JsonValue.string(text)

    def _parse_string(self) -> str:
        line, column = self._line, self._column
        self._advance()  # opening "
        chars: list[str] = []
        while not self._at_end():
            ch = self._advance()
            if ch == '"':
                return "".join(chars)
            if ch != "\\":
                chars.append(ch)
                continue
            if self._at_end():
                break
            esc = self._advance()
            if esc in _SIMPLE_ESCAPES:
                chars.append(_SIMPLE_ESCAPES[esc])
            elif esc == "u":
                chars.append(self._parse_unicode_escape())
            else:
                self._fail(f"Invalid escape sequence: '\\{esc}'")
        self._fail("Unterminated string literal", line, column)
        return ""

    def _parse_unicode_escape(self) -> str:
        code = self._read_hex4()
        if 0xD800 <= code <= 0xDBFF and self._current() == "\\" and self._peek() == "u":
            mark = (self._pos, self._line, self._column)
            self._advance()
            self._advance()
            low = self._read_hex4()
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            self._pos, self._line, self._column = mark
        return chr(code)

    def _read_hex4(self) -> int:
        digits = self._source[self._pos : self._pos + 4]
        if len(digits) != 4 or not all(c in _HEX_DIGITS for c in digits):
            self._fail(f"Invalid unicode escape: '\\u{digits}'")
        code = int(digits, 16)
        for _ in range(4):
            self._advance()
        return code
