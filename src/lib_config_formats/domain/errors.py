"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by codecs, the composition root, and
consuming applications. Five parsing libraries fail in five different ways;
this module is the single vocabulary they are translated into.

Contents
--------
* :class:`ConfigFormatError` – umbrella base class for every library failure.
* :class:`DeserializeError` / :class:`SerializeError` – the two directions.
* :class:`IdentifyError` and its subclasses – format identification failures,
  shared by both directions.
* :class:`ReadError` / :class:`WriteError` / :class:`FlushError` – I/O stages.
* :class:`FormatDeserializeError` / :class:`FormatSerializeError` – codec
  failures, with one subclass per format.
* :class:`ConversionError` / :class:`UnrepresentableValueError` – failures
  converting between structured values and caller types.

System Role
-----------
Codecs never raise library exceptions past their boundary; the normaliser in
:mod:`lib_config_formats.application.normalize` wraps them into these types.
Callers catch :class:`DeserializeError` around loads, :class:`SerializeError`
around dumps, or :class:`ConfigFormatError` for everything.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

from .paths import FieldPath, SourceLocation

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .formats import Format


class ConfigFormatError(Exception):
    """Base type for all exceptions emitted by ``lib_config_formats``.

    Every instance carries a :class:`FieldPath` (empty when no location inside
    the document is known).
    """

    path: FieldPath = FieldPath()


class DeserializeError(ConfigFormatError):
    """Raised while loading: identification, reading, parsing or conversion."""


class SerializeError(ConfigFormatError):
    """Raised while dumping: conversion, identification, encoding, writing or flushing."""


class IdentifyError(DeserializeError, SerializeError):
    """The format of a file could not be determined.

    Identification happens on both the load and the dump side, so these errors
    belong to both directions.
    """


class NoExtension(IdentifyError):
    """The file path has no extension to identify the format from."""

    def __init__(self, file_path: str | Path) -> None:
        self.file_path = str(file_path)
        super().__init__(f"File {self.file_path} does not have a file extension")


class NonUnicodeExtension(IdentifyError):
    """The file extension cannot be decoded as text."""

    def __init__(self, file_path: str | Path | bytes) -> None:
        self.file_path = file_path
        super().__init__(f"File extension of {file_path!r} is not valid Unicode")


class UnknownExtension(IdentifyError):
    """The file extension does not belong to any active format."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"Unknown file extension: {extension!r}")


class UnknownFormat(IdentifyError):
    """An explicitly named format is not known or not active."""

    def __init__(self, tag: object) -> None:
        self.tag = tag
        super().__init__(f"Unknown format: {tag!r}")


class FormatNotEnabled(DeserializeError, SerializeError):
    """The format exists but its backing library is not installed or it was disabled."""

    def __init__(self, fmt: Format, reason: str | None = None) -> None:
        self.format = fmt
        detail = f": {reason}" if reason else ""
        super().__init__(f"Format {fmt} is not enabled{detail}")


class ReadError(DeserializeError):
    """Opening or reading the source failed.

    ``stage`` is ``"open"`` or ``"read"``; the :class:`OSError` is kept as
    ``inner`` and chained as ``__cause__``.
    """

    def __init__(self, file_path: str | Path | None, stage: str, inner: BaseException) -> None:
        self.file_path = None if file_path is None else str(file_path)
        self.stage = stage
        self.inner = inner
        target = f" {self.file_path}" if self.file_path else ""
        super().__init__(f"Failed to {stage} file{target} for reading: {inner}")


class WriteError(SerializeError):
    """Opening the destination or handing bytes to the writer failed."""

    def __init__(self, file_path: str | Path | None, stage: str, inner: BaseException) -> None:
        self.file_path = None if file_path is None else str(file_path)
        self.stage = stage
        self.inner = inner
        target = f" {self.file_path}" if self.file_path else ""
        super().__init__(f"Failed to {stage} file{target} for writing: {inner}")


class FlushError(SerializeError):
    """All bytes were handed to the writer but committing them failed."""

    def __init__(self, file_path: str | Path | None, inner: BaseException) -> None:
        self.file_path = None if file_path is None else str(file_path)
        self.inner = inner
        target = f" {self.file_path}" if self.file_path else ""
        super().__init__(f"Failed to flush output file{target}: {inner}")


class FormatDeserializeError(DeserializeError):
    """The document is not valid in the format it was parsed as.

    Attributes
    ----------
    format:
        Format whose parser failed.
    inner:
        Original library exception (also ``__cause__``).
    path:
        Field path of the value being parsed when the parser reports it.
    location:
        Line/column/offset reported by the parser, if any.
    """

    def __init__(
        self,
        fmt: Format,
        inner: BaseException,
        *,
        path: FieldPath | None = None,
        location: SourceLocation | None = None,
    ) -> None:
        self.format = fmt
        self.inner = inner
        self.path = path or FieldPath()
        self.location = location or SourceLocation()
        super().__init__(self._render())

    def _render(self) -> str:
        where = []
        if self.path:
            where.append(f"at {self.path}")
        if self.location:
            where.append(f"({self.location})")
        suffix = " " + " ".join(where) if where else ""
        return f"Failed to deserialize {self.format}{suffix}: {self.inner}"


class JsonDeserializeError(FormatDeserializeError):
    """JSON parse failure."""


class Json5DeserializeError(FormatDeserializeError):
    """JSON5 parse failure."""


class RonDeserializeError(FormatDeserializeError):
    """RON parse failure."""


class TomlDeserializeError(FormatDeserializeError):
    """TOML parse failure."""


class YamlDeserializeError(FormatDeserializeError):
    """YAML parse failure."""


class FormatSerializeError(SerializeError):
    """The value contains a shape the target format cannot represent, or the writer failed."""

    def __init__(self, fmt: Format, inner: BaseException, *, path: FieldPath | None = None) -> None:
        self.format = fmt
        self.inner = inner
        self.path = path or FieldPath()
        where = f" at {self.path}" if self.path else ""
        super().__init__(f"Failed to serialize {fmt}{where}: {inner}")


class JsonSerializeError(FormatSerializeError):
    """JSON encode failure."""


class Json5SerializeError(FormatSerializeError):
    """JSON5 encode failure."""


class RonSerializeError(FormatSerializeError):
    """RON encode failure."""


class TomlSerializeError(FormatSerializeError):
    """TOML encode failure."""


class YamlSerializeError(FormatSerializeError):
    """YAML encode failure."""


class ConversionError(DeserializeError):
    """The structured value does not fit the requested target type.

    ``path`` points at the first failing field, regardless of which format the
    document came from; ``errors`` holds every reported problem.
    """

    def __init__(
        self,
        message: str,
        *,
        path: FieldPath | None = None,
        errors: Sequence[dict[str, Any]] = (),
        inner: BaseException | None = None,
    ) -> None:
        self.path = path or FieldPath()
        self.errors = list(errors)
        self.inner = inner
        super().__init__(f"Failed to convert value at {self.path}: {message}")


class UnrepresentableValueError(SerializeError):
    """The value could not be projected into a structured value."""

    def __init__(self, message: str, *, inner: BaseException | None = None) -> None:
        self.inner = inner
        super().__init__(f"Failed to convert value for serialization: {message}")


__all__ = [
    "ConfigFormatError",
    "ConversionError",
    "DeserializeError",
    "FlushError",
    "FormatDeserializeError",
    "FormatNotEnabled",
    "FormatSerializeError",
    "IdentifyError",
    "Json5DeserializeError",
    "Json5SerializeError",
    "JsonDeserializeError",
    "JsonSerializeError",
    "NoExtension",
    "NonUnicodeExtension",
    "ReadError",
    "RonDeserializeError",
    "RonSerializeError",
    "SerializeError",
    "TomlDeserializeError",
    "TomlSerializeError",
    "UnknownExtension",
    "UnknownFormat",
    "UnrepresentableValueError",
    "WriteError",
    "YamlDeserializeError",
    "YamlSerializeError",
]
