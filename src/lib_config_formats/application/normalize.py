"""Error normaliser.

Purpose
-------
Translate library-specific failures into the unified taxonomy of
:mod:`lib_config_formats.domain.errors`, extracting a source location and a
field path whenever the underlying library exposes one and never inventing
one when it does not.

Contents
--------
* :func:`deserialize_failure` / :func:`serialize_failure` – codec failures.
* :func:`conversion_failure` / :func:`unrepresentable_failure` – failures
  between structured values and caller types.
* :func:`locate` – best-effort line/column/offset extraction.

System Role
-----------
Called by every codec at its boundary and by the conversion layer, so callers
see one error shape regardless of which format failed.
"""

from __future__ import annotations

import re
from typing import Any, Final, Mapping

from ..domain.errors import (
    ConversionError,
    FormatDeserializeError,
    FormatSerializeError,
    Json5DeserializeError,
    Json5SerializeError,
    JsonDeserializeError,
    JsonSerializeError,
    RonDeserializeError,
    RonSerializeError,
    TomlDeserializeError,
    TomlSerializeError,
    UnrepresentableValueError,
    YamlDeserializeError,
    YamlSerializeError,
)
from ..domain.formats import Format
from ..domain.paths import FieldPath, SourceLocation
from ..observability import log_error

DESERIALIZE_ERRORS: Final[Mapping[Format, type[FormatDeserializeError]]] = {
    Format.JSON: JsonDeserializeError,
    Format.JSON5: Json5DeserializeError,
    Format.RON: RonDeserializeError,
    Format.TOML: TomlDeserializeError,
    Format.YAML: YamlDeserializeError,
}

SERIALIZE_ERRORS: Final[Mapping[Format, type[FormatSerializeError]]] = {
    Format.JSON: JsonSerializeError,
    Format.JSON5: Json5SerializeError,
    Format.RON: RonSerializeError,
    Format.TOML: TomlSerializeError,
    Format.YAML: YamlSerializeError,
}

# "Invalid value (at line 3, column 9)" as emitted by tomllib/tomli.
_TOML_POSITION = re.compile(r"\(at line (\d+), column (\d+)\)")
# "<string>:3 Unexpected "}" at column 9" as emitted by json5.
_JSON5_POSITION = re.compile(r"<string>:(\d+)\b.*?column (\d+)")


def deserialize_failure(
    fmt: Format,
    exc: BaseException,
    *,
    path: FieldPath | None = None,
) -> FormatDeserializeError:
    """Wrap a parser failure of *fmt* into its :class:`FormatDeserializeError` subclass.

    Examples
    --------
    >>> import json
    >>> try:
    ...     json.loads('{"a": }')
    ... except json.JSONDecodeError as exc:
    ...     err = deserialize_failure(Format.JSON, exc)
    >>> type(err).__name__, err.location.line, err.location.column
    ('JsonDeserializeError', 1, 7)
    """

    error_cls = DESERIALIZE_ERRORS[fmt]
    location = locate(exc)
    error = error_cls(fmt, exc, path=path or _path_hint(exc), location=location)
    log_error(
        "config_decode_failed",
        format=str(fmt),
        path=str(error.path),
        line=location.line,
        column=location.column,
        error=str(exc),
    )
    return error


def serialize_failure(
    fmt: Format,
    exc: BaseException,
    *,
    path: FieldPath | None = None,
) -> FormatSerializeError:
    """Wrap an encoder failure of *fmt* into its :class:`FormatSerializeError` subclass."""

    error = SERIALIZE_ERRORS[fmt](fmt, exc, path=path or _path_hint(exc))
    log_error("config_encode_failed", format=str(fmt), path=str(error.path), error=str(exc))
    return error


def conversion_failure(exc: Any) -> ConversionError:
    """Wrap a :class:`pydantic.ValidationError` into :class:`ConversionError`.

    The path of the first reported error becomes the error's path; every
    reported error is kept in ``errors``.
    """

    details = list(exc.errors(include_url=False))
    if details:
        first = details[0]
        path = FieldPath.from_location(first.get("loc", ()))
        message = first.get("msg", str(exc))
        if len(details) > 1:
            message += f" (and {len(details) - 1} more error{'s' if len(details) > 2 else ''})"
    else:
        path = FieldPath()
        message = str(exc)
    log_error("config_conversion_failed", path=str(path), errors=len(details))
    return ConversionError(message, path=path, errors=details, inner=exc)


def unrepresentable_failure(exc: BaseException) -> UnrepresentableValueError:
    """Wrap a failure projecting a caller value into a structured value."""

    log_error("config_conversion_failed", path=None, error=str(exc))
    return UnrepresentableValueError(str(exc), inner=exc)


def locate(exc: BaseException) -> SourceLocation:
    """Return the best source location reported by *exc*.

    Checks, in order: ``lineno``/``colno``/``pos`` attributes (``json``,
    ``tomllib`` on newer interpreters, the RON reader), PyYAML marks,
    :class:`UnicodeDecodeError` offsets, then the message formats of
    ``tomllib``/``tomli`` and ``json5``.

    Examples
    --------
    >>> locate(ValueError("Invalid value (at line 4, column 2)"))
    SourceLocation(line=4, column=2, offset=None)
    >>> bool(locate(ValueError("boom")))
    False
    """

    line = getattr(exc, "lineno", None)
    if isinstance(line, int):
        column = getattr(exc, "colno", None)
        offset = getattr(exc, "pos", None)
        return SourceLocation(
            line=line,
            column=column if isinstance(column, int) else None,
            offset=offset if isinstance(offset, int) else None,
        )
    mark = getattr(exc, "problem_mark", None) or getattr(exc, "context_mark", None)
    if mark is not None and isinstance(getattr(mark, "line", None), int):
        return SourceLocation(line=mark.line + 1, column=mark.column + 1, offset=getattr(mark, "index", None))
    if isinstance(exc, UnicodeDecodeError):
        return SourceLocation(offset=exc.start)
    message = str(exc)
    for pattern in (_TOML_POSITION, _JSON5_POSITION):
        match = pattern.search(message)
        if match:
            return SourceLocation(line=int(match.group(1)), column=int(match.group(2)))
    return SourceLocation()


def _path_hint(exc: BaseException) -> FieldPath | None:
    """Return a field path the library attached to *exc*, if any."""

    hint = getattr(exc, "field_path", None)
    return hint if isinstance(hint, FieldPath) else None


__all__ = [
    "DESERIALIZE_ERRORS",
    "SERIALIZE_ERRORS",
    "conversion_failure",
    "deserialize_failure",
    "locate",
    "serialize_failure",
    "unrepresentable_failure",
]
