"""Library-backed codecs for JSON, JSON5, TOML and YAML.

Purpose
-------
Convert documents into structured values and back. Codecs are small wrappers
around ``json``, ``json5``, ``tomllib``/``tomli_w`` and ``yaml.safe_*`` so error
normalisation and representability checks live in one place.

Contents
--------
* :class:`BaseCodec` – shared helpers for text decoding and failure wrapping.
* :class:`JSONCodec` – standard library JSON, pretty two-space output.
* :class:`JSON5Codec` – ``json5`` reader; writes pretty JSON, which is valid JSON5.
* :class:`TOMLCodec` – ``tomllib`` reader (``tomli`` before 3.11), ``tomli_w`` writer.
* :class:`YAMLCodec` – PyYAML safe loader/dumper (only available when PyYAML
  is installed).

System Role
-----------
Registered in the codec table of :mod:`lib_config_formats.core`; every codec
satisfies :class:`lib_config_formats.application.ports.Codec`.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Final

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

from ...application.normalize import deserialize_failure, serialize_failure
from ...application.ports import StructuredValue
from ...domain.errors import FormatNotEnabled, FormatSerializeError
from ...domain.formats import Format
from ...domain.paths import find_path

try:
    import json5  # type: ignore[import-untyped]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    json5 = None  # type: ignore[assignment]

try:
    import yaml  # type: ignore[import-untyped]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]

JSON_INDENT: Final[int] = 2

_JSON_SCALARS: Final[tuple[type, ...]] = (type(None), bool, int, float, str)
_TOML_SCALARS: Final[tuple[type, ...]] = (bool, int, float, str, date, datetime, time, Decimal)
_YAML_SCALARS: Final[tuple[type, ...]] = (*_JSON_SCALARS, bytes, date, datetime)


class BaseCodec:
    """Common utilities shared by the structured codecs."""

    format: Format
    requirement: str | None = None

    @property
    def available(self) -> bool:
        return True

    def _require(self) -> None:
        """Raise :class:`FormatNotEnabled` when the backing library is missing."""

        if not self.available:
            raise FormatNotEnabled(self.format, self.requirement)

    def _text(self, payload: bytes | str) -> str:
        """Return *payload* as text, decoding bytes as UTF-8.

        Raises
        ------
        FormatDeserializeError
            When *payload* is not valid UTF-8; the location carries the byte offset.

        Examples
        --------
        >>> JSONCodec()._text(b'{"a": 1}')
        '{"a": 1}'
        """

        if isinstance(payload, str):
            return payload
        try:
            return bytes(payload).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise deserialize_failure(self.format, exc) from exc

    def _reject(
        self,
        value: StructuredValue,
        predicate: Callable[[object, object | None], bool],
        message: str,
    ) -> None:
        """Raise :class:`FormatSerializeError` at the first node matching *predicate*."""

        path = find_path(value, predicate)
        if path is not None:
            raise serialize_failure(self.format, TypeError(message), path=path)

    def _wrap_encode_error(
        self,
        exc: Exception,
        value: StructuredValue,
        scalars: tuple[type, ...],
    ) -> FormatSerializeError:
        """Return a normalised encode failure pointing at the first unsupported node, if found."""

        path = find_path(value, lambda node, _key: not isinstance(node, (*scalars, list, tuple, dict)))
        return serialize_failure(self.format, exc, path=path)


def _non_string_key(_node: object, key: object | None) -> bool:
    return key is not None and not isinstance(key, str)


class JSONCodec(BaseCodec):
    """JSON via the standard library.

    Output is indented by two spaces, keeps key order and non-ASCII text, and
    rejects NaN/Infinity, which JSON cannot express.

    Examples
    --------
    >>> print(JSONCodec().encode({"name": "Example", "size": 42}))
    {
      "name": "Example",
      "size": 42
    }
    >>> JSONCodec().decode('[1, 2.5, null]')
    [1, 2.5, None]
    """

    format = Format.JSON
    allow_nan = False

    def decode(self, payload: bytes | str) -> StructuredValue:
        text = self._text(payload)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise deserialize_failure(self.format, exc) from exc

    def encode(self, value: StructuredValue) -> str:
        self._require()
        self._reject(value, _non_string_key, "keys must be strings")
        if not self.allow_nan:
            self._reject(
                value,
                lambda node, _key: isinstance(node, float) and not math.isfinite(node),
                f"{self.format} cannot represent NaN or infinite floats",
            )
        try:
            return json.dumps(value, indent=JSON_INDENT, ensure_ascii=False, allow_nan=self.allow_nan)
        except (TypeError, ValueError) as exc:
            raise self._wrap_encode_error(exc, value, _JSON_SCALARS) from exc


class JSON5Codec(JSONCodec):
    """JSON5 via the ``json5`` package for reading.

    Writing produces pretty JSON (every JSON document is valid JSON5), with
    ``NaN`` and ``Infinity`` allowed since JSON5 supports them.
    """

    format = Format.JSON5
    allow_nan = True
    requirement = "json5 is required for JSON5 support"

    @property
    def available(self) -> bool:
        return json5 is not None

    def decode(self, payload: bytes | str) -> StructuredValue:
        self._require()
        text = self._text(payload)
        try:
            return json5.loads(text)  # type: ignore[union-attr]
        except ValueError as exc:
            raise deserialize_failure(self.format, exc) from exc


class TOMLCodec(BaseCodec):
    """TOML via ``tomllib`` and ``tomli_w``.

    A TOML document is always a table. ``None`` has no TOML spelling: table
    entries holding ``None`` are omitted (they read back as missing optional
    fields), ``None`` anywhere else is rejected.

    Examples
    --------
    >>> print(TOMLCodec().encode({"enable_foo": True, "flavor": None}), end="")
    enable_foo = true
    >>> TOMLCodec().decode("[db]\\nport = 5432\\n")
    {'db': {'port': 5432}}
    """

    format = Format.TOML

    def decode(self, payload: bytes | str) -> StructuredValue:
        text = self._text(payload)
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise deserialize_failure(self.format, exc) from exc

    def encode(self, value: StructuredValue) -> str:
        if not isinstance(value, dict):
            raise serialize_failure(
                self.format,
                TypeError(f"TOML documents must be tables, not {type(value).__name__}"),
            )
        self._reject(value, _non_string_key, "keys must be strings")
        document = _drop_none_entries(value)
        self._reject(document, lambda node, _key: node is None, "TOML cannot represent null values")
        try:
            return tomli_w.dumps(document)
        except (TypeError, ValueError) as exc:
            raise self._wrap_encode_error(exc, document, _TOML_SCALARS) from exc


def _drop_none_entries(value: Any) -> Any:
    """Return *value* with ``None``-valued table entries removed at every depth.

    >>> _drop_none_entries({"a": None, "b": [{"c": None, "d": 1}, None]})
    {'b': [{'d': 1}, None]}
    """

    if isinstance(value, dict):
        return {key: _drop_none_entries(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [_drop_none_entries(item) for item in value]
    return value


class YAMLCodec(BaseCodec):
    """YAML via PyYAML's safe loader and dumper when PyYAML is available.

    A document without content (blank or comments only) decodes to an empty
    mapping. Output keeps key order and block style.
    """

    format = Format.YAML
    requirement = "PyYAML is required for YAML support"

    @property
    def available(self) -> bool:
        return yaml is not None

    def decode(self, payload: bytes | str) -> StructuredValue:
        self._require()
        text = self._text(payload)
        try:
            data = yaml.safe_load(text)  # type: ignore[union-attr]
        except (yaml.YAMLError, ValueError) as exc:  # type: ignore[union-attr]
            raise deserialize_failure(self.format, exc) from exc
        if data is None and not _has_content(text):
            return {}
        return data

    def encode(self, value: StructuredValue) -> str:
        self._require()
        try:
            return yaml.safe_dump(  # type: ignore[union-attr]
                value,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
            )
        except yaml.YAMLError as exc:  # type: ignore[union-attr]
            raise self._wrap_encode_error(exc, value, _YAML_SCALARS) from exc


def _has_content(text: str) -> bool:
    """Return ``True`` when *text* holds anything besides blanks, comments and markers.

    >>> _has_content("# empty file\\n---\\n")
    False
    >>> _has_content("null\\n")
    True
    """

    for line in text.splitlines():
        stripped = line.strip().lstrip("\ufeff")
        if stripped and not stripped.startswith("#") and stripped not in ("---", "..."):
            return True
    return False


__all__ = ["BaseCodec", "JSON5Codec", "JSONCodec", "TOMLCodec", "YAMLCodec"]
