"""RON (Rusty Object Notation) codec.

Purpose
-------
Read and write RON documents as structured values. RON has no maintained
Python distribution, so this adapter carries its own small reader and writer;
they only cover the data model shared with the other formats.

Contents
--------
* :class:`RonCodec` – codec entry point registered in the codec table.
* :class:`RonSyntaxError` – reader failure with line, column, offset and the
  field path of the value being read.
* :class:`RonValueError` – writer failure with the field path of the
  unrepresentable value.
* :func:`loads` / :func:`dumps` – the reader and writer themselves.

Data model
----------
``true``/``false`` → bool, ``None`` and ``()`` → ``None``, ``Some(x)`` → ``x``,
integers (decimal, ``0x``, ``0o``, ``0b``, ``_`` separators) → int, floats
(including ``inf`` and ``NaN``) → float, strings, raw strings and chars → str,
``[...]`` → list, ``{k: v}`` → dict, structs ``(a: 1)`` and ``Name(a: 1)`` →
dict (names are dropped), tuples ``(x, y)`` → list, newtypes ``Name(x)`` →
``x``, bare identifiers (unit variants) → str.
"""

from __future__ import annotations

import math
import re
from collections.abc import Hashable
from typing import Any, Final, NoReturn

from ...application.normalize import deserialize_failure, serialize_failure
from ...application.ports import StructuredValue
from ...domain.formats import Format
from ...domain.paths import FieldPath, Index, Key, Step
from .structured import BaseCodec

RON_INDENT: Final[str] = "    "

_IDENTIFIER: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_WHITESPACE: Final[frozenset[str]] = frozenset(" \t\r\n")
_ESCAPES: Final[dict[str, str]] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "/": "/",
}


class RonSyntaxError(ValueError):
    """Malformed RON input.

    ``lineno``/``colno`` are 1-based, ``pos`` is the 0-based character offset,
    ``field_path`` locates the value being read when the error occurred.
    """

    def __init__(self, msg: str, text: str, pos: int, field_path: FieldPath) -> None:
        self.msg = msg
        self.pos = pos
        self.lineno = text.count("\n", 0, pos) + 1
        self.colno = pos - text.rfind("\n", 0, pos)
        self.field_path = field_path
        super().__init__(f"{msg}: line {self.lineno} column {self.colno} (char {pos})")


class RonValueError(TypeError):
    """A value has no RON spelling."""

    def __init__(self, msg: str, field_path: FieldPath) -> None:
        self.field_path = field_path
        super().__init__(msg)


class RonCodec(BaseCodec):
    """RON via the bundled reader and writer.

    Examples
    --------
    >>> print(RonCodec().encode({"name": "Example", "tags": ["a"], "extra": {"up": "down"}}))
    (
        name: "Example",
        tags: [
            "a",
        ],
        extra: (
            up: "down",
        ),
    )
    >>> RonCodec().decode('Config(color: green, some: Some(17), none: None)')
    {'color': 'green', 'some': 17, 'none': None}
    """

    format = Format.RON

    def decode(self, payload: bytes | str) -> StructuredValue:
        text = self._text(payload)
        try:
            return loads(text)
        except RonSyntaxError as exc:
            raise deserialize_failure(self.format, exc, path=exc.field_path) from exc

    def encode(self, value: StructuredValue) -> str:
        try:
            return dumps(value)
        except RonValueError as exc:
            raise serialize_failure(self.format, exc, path=exc.field_path) from exc


def loads(text: str) -> StructuredValue:
    """Parse a RON document.

    Examples
    --------
    >>> loads('(a: [1, 0x10, 1_000], b: {"k": r#"raw "x""#}, c: (1.5, -inf))')
    {'a': [1, 16, 1000], 'b': {'k': 'raw "x"'}, 'c': [1.5, -inf]}
    """

    return _Reader(text).document()


def dumps(value: Any) -> str:
    """Render *value* as pretty RON with four-space indentation and trailing commas.

    >>> print(dumps({1: None, "two": 2.0}))
    {
        1: None,
        "two": 2.0,
    }
    """

    return _Writer().render(value, 0, [])


class _Reader:
    """Recursive-descent reader tracking position and field path."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.path: list[Step] = []

    def document(self) -> StructuredValue:
        self._skip()
        self._attributes()
        value = self._value()
        self._skip()
        if self.pos < len(self.text):
            self._fail("Trailing characters after document")
        return value

    # -- lexical helpers -------------------------------------------------

    def _fail(self, msg: str, pos: int | None = None) -> NoReturn:
        raise RonSyntaxError(msg, self.text, self.pos if pos is None else pos, FieldPath(tuple(self.path)))

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, char: str) -> None:
        self._skip()
        if self._peek() != char:
            found = repr(self._peek()) if self._peek() else "end of input"
            self._fail(f"Expected {char!r}, found {found}")
        self.pos += 1

    def _skip(self) -> None:
        """Skip whitespace, ``//`` line comments and nested ``/* */`` block comments."""

        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char in _WHITESPACE:
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                self._block_comment()
            else:
                return

    def _block_comment(self) -> None:
        start = self.pos
        depth = 0
        while self.pos < len(self.text):
            if self.text.startswith("/*", self.pos):
                depth += 1
                self.pos += 2
            elif self.text.startswith("*/", self.pos):
                depth -= 1
                self.pos += 2
                if depth == 0:
                    return
            else:
                self.pos += 1
        self._fail("Unterminated block comment", start)

    def _attributes(self) -> None:
        """Skip leading ``#![enable(...)]`` attributes."""

        while self.text.startswith("#!", self.pos):
            self.pos += 2
            self._expect("[")
            depth = 1
            while depth:
                char = self._peek()
                if not char:
                    self._fail("Unterminated attribute")
                depth += {"[": 1, "]": -1}.get(char, 0)
                self.pos += 1
            self._skip()

    def _identifier(self) -> str | None:
        if self.text.startswith("r#", self.pos):
            match = _IDENTIFIER.match(self.text, self.pos + 2)
        else:
            match = _IDENTIFIER.match(self.text, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return match.group(0)

    # -- values ----------------------------------------------------------

    def _value(self) -> StructuredValue:
        self._skip()
        char = self._peek()
        if not char:
            self._fail("Unexpected end of input")
        if char == "[":
            return self._list()
        if char == "{":
            return self._map()
        if char == "(":
            return self._parenthesised(None)
        if char == '"':
            return self._string()
        if char == "'":
            return self._char()
        if char == "r" and self.text.startswith(('r"', "r#\"", "r##"), self.pos):
            return self._raw_string()
        if char == "b" and self.text.startswith(('b"', "b'", 'br"', "br#"), self.pos):
            self._fail("Byte strings are not supported")
        if char.isdigit() or char in "+-.":
            return self._number()
        start = self.pos
        name = self._identifier()
        if name is None:
            self._fail(f"Unexpected character {char!r}")
        return self._named(name, start)

    def _named(self, name: str, start: int) -> StructuredValue:
        if name == "true":
            return True
        if name == "false":
            return False
        if name == "inf":
            return math.inf
        if name == "NaN":
            return math.nan
        self._skip()
        if name == "None" and self._peek() != "(":
            return None
        if name == "Some":
            self._expect("(")
            value = self._value()
            self._skip()
            if self._peek() == ",":
                self.pos += 1
            self._expect(")")
            return value
        if self._peek() == "(":
            return self._parenthesised(name)
        return name

    def _list(self) -> list[Any]:
        self.pos += 1
        items: list[Any] = []
        while True:
            self._skip()
            if self._peek() == "]":
                self.pos += 1
                return items
            self.path.append(Index(len(items)))
            items.append(self._value())
            self.path.pop()
            self._separator("]")

    def _map(self) -> dict[Any, Any]:
        self.pos += 1
        result: dict[Any, Any] = {}
        while True:
            self._skip()
            if self._peek() == "}":
                self.pos += 1
                return result
            key_pos = self.pos
            key = self._value()
            if not isinstance(key, Hashable):
                self._fail("Map keys must be scalars", key_pos)
            self._expect(":")
            self.path.append(Key(str(key)))
            result[key] = self._value()
            self.path.pop()
            self._separator("}")

    def _parenthesised(self, name: str | None) -> StructuredValue:
        self.pos += 1
        self._skip()
        if self._peek() == ")":
            self.pos += 1
            return None
        if self._at_field():
            return self._struct()
        items: list[Any] = []
        while True:
            self._skip()
            if self._peek() == ")":
                self.pos += 1
                break
            self.path.append(Index(len(items)))
            items.append(self._value())
            self.path.pop()
            self._separator(")")
        if name is not None and len(items) == 1:
            return items[0]
        return items

    def _at_field(self) -> bool:
        """Return ``True`` when the cursor sits on ``identifier :`` (a struct field)."""

        saved = self.pos
        try:
            if self._identifier() is None:
                return False
            self._skip()
            return self._peek() == ":"
        finally:
            self.pos = saved

    def _struct(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        while True:
            self._skip()
            if self._peek() == ")":
                self.pos += 1
                return result
            field_pos = self.pos
            field = self._identifier()
            if field is None:
                self._fail("Expected a struct field name")
            if field in result:
                self._fail(f"Duplicate struct field {field!r}", field_pos)
            self._expect(":")
            self.path.append(Key(field))
            result[field] = self._value()
            self.path.pop()
            self._separator(")")

    def _separator(self, closing: str) -> None:
        self._skip()
        char = self._peek()
        if char == ",":
            self.pos += 1
        elif char != closing:
            found = repr(char) if char else "end of input"
            self._fail(f"Expected ',' or {closing!r}, found {found}")

    def _number(self) -> int | float:
        start = self.pos
        sign = 1
        if self._peek() in "+-":
            sign = -1 if self._peek() == "-" else 1
            self.pos += 1
        if self.text.startswith("inf", self.pos):
            self.pos += 3
            return sign * math.inf
        if self.text.startswith("NaN", self.pos):
            self.pos += 3
            return math.nan
        for prefix, base, digits in (("0x", 16, "0123456789abcdefABCDEF_"), ("0o", 8, "01234567_"), ("0b", 2, "01_")):
            if self.text.startswith(prefix, self.pos):
                self.pos += 2
                body_start = self.pos
                while self._peek() and self._peek() in digits:
                    self.pos += 1
                body = self.text[body_start : self.pos].replace("_", "")
                if not body:
                    self._fail("Expected digits after base prefix", start)
                return sign * int(body, base)
        body_start = self.pos
        is_float = False
        while self._peek() and (self._peek().isdigit() or self._peek() == "_"):
            self.pos += 1
        if self._peek() == "." and not self.text.startswith("..", self.pos):
            is_float = True
            self.pos += 1
            while self._peek() and (self._peek().isdigit() or self._peek() == "_"):
                self.pos += 1
        if self._peek() in ("e", "E"):
            is_float = True
            self.pos += 1
            if self._peek() in ("+", "-"):
                self.pos += 1
            exponent_start = self.pos
            while self._peek() and self._peek().isdigit():
                self.pos += 1
            if exponent_start == self.pos:
                self._fail("Expected exponent digits", start)
        body = self.text[body_start : self.pos].replace("_", "")
        if not any(char.isdigit() for char in body):
            self._fail("Expected a number", start)
        if is_float:
            return sign * float(body)
        return sign * int(body)

    def _string(self) -> str:
        start = self.pos
        self.pos += 1
        chunks: list[str] = []
        while True:
            char = self._peek()
            if not char:
                self._fail("Unterminated string", start)
            if char == '"':
                self.pos += 1
                return "".join(chunks)
            if char == "\\":
                chunks.append(self._escape())
            else:
                chunks.append(char)
                self.pos += 1

    def _char(self) -> str:
        start = self.pos
        self.pos += 1
        if self._peek() == "\\":
            value = self._escape()
        elif self._peek() and self._peek() != "'":
            value = self._peek()
            self.pos += 1
        else:
            self._fail("Empty or unterminated char literal", start)
        if self._peek() != "'":
            self._fail("Unterminated char literal", start)
        self.pos += 1
        return value

    def _raw_string(self) -> str:
        start = self.pos
        self.pos += 1
        hashes = 0
        while self._peek() == "#":
            hashes += 1
            self.pos += 1
        if self._peek() != '"':
            self._fail("Expected '\"' to open raw string", start)
        self.pos += 1
        terminator = '"' + "#" * hashes
        end = self.text.find(terminator, self.pos)
        if end == -1:
            self._fail("Unterminated raw string", start)
        value = self.text[self.pos : end]
        self.pos = end + len(terminator)
        return value

    def _escape(self) -> str:
        start = self.pos
        self.pos += 1
        code = self._peek()
        self.pos += 1
        if code in _ESCAPES:
            return _ESCAPES[code]
        if code == "x":
            digits = self.text[self.pos : self.pos + 2]
            self.pos += 2
            return self._codepoint(digits, start)
        if code == "u":
            if self._peek() == "{":
                end = self.text.find("}", self.pos)
                if end == -1:
                    self._fail("Unterminated unicode escape", start)
                digits = self.text[self.pos + 1 : end]
                self.pos = end + 1
            else:
                digits = self.text[self.pos : self.pos + 4]
                self.pos += 4
            return self._codepoint(digits, start)
        self._fail(f"Invalid escape sequence \\{code}", start)

    def _codepoint(self, digits: str, start: int) -> str:
        try:
            return chr(int(digits.replace("_", ""), 16))
        except (ValueError, OverflowError):
            self._fail(f"Invalid escape digits {digits!r}", start)


class _Writer:
    """Pretty RON writer matching the reader's data model."""

    def render(self, value: Any, level: int, path: list[Step]) -> str:
        if value is None:
            return "None"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return _format_float(value)
        if isinstance(value, str):
            return _quote(value)
        if isinstance(value, (list, tuple)):
            return self._sequence(value, level, path)
        if isinstance(value, dict):
            return self._mapping(value, level, path)
        raise RonValueError(f"RON cannot represent values of type {type(value).__name__}", FieldPath(tuple(path)))

    def _sequence(self, items: list[Any] | tuple[Any, ...], level: int, path: list[Step]) -> str:
        if not items:
            return "[]"
        inner = RON_INDENT * (level + 1)
        lines = [
            f"{inner}{self.render(item, level + 1, [*path, Index(position)])},"
            for position, item in enumerate(items)
        ]
        return "[\n" + "\n".join(lines) + "\n" + RON_INDENT * level + "]"

    def _mapping(self, mapping: dict[Any, Any], level: int, path: list[Step]) -> str:
        if not mapping:
            return "{}"
        inner = RON_INDENT * (level + 1)
        as_struct = all(isinstance(key, str) and _IDENTIFIER.fullmatch(key) for key in mapping)
        lines = []
        for key, item in mapping.items():
            child = [*path, Key(str(key))]
            if as_struct:
                rendered_key = key
            elif isinstance(key, (list, tuple, dict)):
                raise RonValueError("RON map keys must be scalars", FieldPath(tuple(child)))
            else:
                rendered_key = self.render(key, level + 1, child)
            lines.append(f"{inner}{rendered_key}: {self.render(item, level + 1, child)},")
        opening, closing = ("(", ")") if as_struct else ("{", "}")
        return opening + "\n" + "\n".join(lines) + "\n" + RON_INDENT * level + closing


def _format_float(value: float) -> str:
    """Render *value* so it reads back as a float.

    >>> _format_float(2.0), _format_float(1e100), _format_float(float("-inf"))
    ('2.0', '1e+100', '-inf')
    """

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(value)


def _quote(text: str) -> str:
    """Quote *text* as a RON string, keeping non-ASCII characters literal.

    >>> print(_quote('tab\\there "quoted" \\u2603'))
    "tab\\there \\"quoted\\" ☃"
    """

    out = ['"']
    for char in text:
        if char == '"':
            out.append('\\"')
        elif char == "\\":
            out.append("\\\\")
        elif char == "\n":
            out.append("\\n")
        elif char == "\r":
            out.append("\\r")
        elif char == "\t":
            out.append("\\t")
        elif char == "\0":
            out.append("\\0")
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\u{{{ord(char):x}}}")
        else:
            out.append(char)
    out.append('"')
    return "".join(out)


__all__ = ["RonCodec", "RonSyntaxError", "RonValueError", "dumps", "loads"]
