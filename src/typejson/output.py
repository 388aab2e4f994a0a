"""Output dialects: when names and values need surrounding quotes."""

from __future__ import annotations

import enum
import math
import re

_JAVASCRIPT_NAME = re.compile(r"[a-zA-Z_$][a-zA-Z_$0-9]*")
_NUMBER = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_NUMBER_WORDS = frozenset({"NaN", "Infinity", "-Infinity"})
_LITERALS = frozenset({"true", "false", "null"})
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}

# First characters that would be read as structure rather than text.
_BAD_NAME_START = frozenset(',{}[]/"')
_BAD_VALUE_START = frozenset(',{}[]/":')
# Characters that end an unquoted value on the read side.
_VALUE_TERMINATORS = frozenset(",}]")


def escape(text: str) -> str:
    """Escape backslashes, quotes and control characters."""
    if not any(c in _ESCAPES or c < " " for c in text):
        return text
    parts = []
    for c in text:
        if c in _ESCAPES:
            parts.append(_ESCAPES[c])
        elif c < " ":
            parts.append(f"\\u{ord(c):04x}")
        else:
            parts.append(c)
    return "".join(parts)


def is_number_literal(text: str) -> bool:
    """Return True if text would be read back as a number."""
    return text in _NUMBER_WORDS or _NUMBER.fullmatch(text) is not None


def _quote(text: str) -> str:
    return f'"{escape(text)}"'


def _minimal_safe(text: str, bad_start: frozenset[str]) -> bool:
    if not text or text[0] in bad_start or text[0].isspace() or text[-1].isspace():
        return False
    if "//" in text or "/*" in text:
        return False
    return not any(c in '"\\' or c < " " for c in text)


class OutputType(enum.Enum):
    """Quoting dialect used by the writer."""

    JSON = "json"
    """Strict JSON: names and string values are always quoted."""

    JAVASCRIPT = "javascript"
    """Names are quoted only when they are not a bare identifier."""

    MINIMAL = "minimal"
    """Names and values are quoted only when they would be ambiguous."""

    def quote_name(self, name: str) -> str:
        """Render a member name for this dialect."""
        if self is OutputType.JAVASCRIPT:
            if _JAVASCRIPT_NAME.fullmatch(name):
                return name
        elif self is OutputType.MINIMAL:
            if _minimal_safe(name, _BAD_NAME_START) and ":" not in name:
                return name
        return _quote(name)

    def quote_value(self, value: object) -> str:
        """Render a scalar value for this dialect.

        None, booleans and numbers are written as literals; anything else is
        converted with `str()` and quoted as needed.
        """
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(int(value))
        if isinstance(value, float):
            return _float_literal(value)
        text = str(value)
        if self is OutputType.MINIMAL and self._bare_value(text):
            return text
        return _quote(text)

    @staticmethod
    def _bare_value(text: str) -> bool:
        if not _minimal_safe(text, _BAD_VALUE_START):
            return False
        if text in _LITERALS or is_number_literal(text):
            return False
        return not any(c in _VALUE_TERMINATORS for c in text)


def _float_literal(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(float(value))
