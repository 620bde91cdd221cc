"""Composition root for ``lib_config_formats``.

Purpose
-------
Provide the single entry point that orchestrates format identification, file
I/O, codec dispatch, error normalisation and typed conversion. Callers hand
over a path (or an explicit format and a stream) and a target type; they never
touch a parsing library directly.

Contents
--------
* :data:`_CODECS` – mapping of formats to codec instances.
* :class:`FormatDispatcher` – configured facade (active formats, fallback,
  opener) with ``load``/``dump``/``load_from``/``dump_to``/``loads``/``dumps``.
* :func:`default_dispatcher` – lazily built dispatcher honouring the
  environment configuration.
* :func:`load` / :func:`dump` / :func:`load_from` / :func:`dump_to` /
  :func:`loads` / :func:`dumps` / :func:`identify` / :func:`resolve_format` –
  module-level shortcuts delegating to the default dispatcher.

System Role
-----------
This module connects the resolver, the codecs and the conversion layer while
emitting structured observability signals. It is the canonical location for
wiring a new format or changing the I/O sequence.
"""

from __future__ import annotations

import io
import os
import re
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import IO, Any, Iterable, Mapping, TypeVar, overload

from .adapters.codecs.ron import RonCodec
from .adapters.codecs.structured import JSON5Codec, JSONCodec, TOMLCodec, YAMLCodec
from .adapters.env.default import EnvFormatSettings
from .application.conversion import from_structured, to_structured
from .application.normalize import serialize_failure
from .application.ports import Codec, Opener, StructuredValue
from .application.resolver import ExtensionResolver
from .domain.errors import FlushError, FormatNotEnabled, ReadError, WriteError
from .domain.formats import Format
from .domain.paths import find_path
from .observability import log_debug, log_error, log_info, make_event

T = TypeVar("T")

PathArg = str | bytes | os.PathLike[str]

# Codec per format. Consumers can override entries through the ``codecs``
# argument of :class:`FormatDispatcher`.
_CODECS: Mapping[Format, Codec] = MappingProxyType(
    {
        Format.JSON: JSONCodec(),
        Format.JSON5: JSON5Codec(),
        Format.RON: RonCodec(),
        Format.TOML: TOMLCodec(),
        Format.YAML: YAMLCodec(),
    }
)

# Formats whose writers do not end the document with a newline themselves.
_TRAILING_NEWLINE = frozenset({Format.JSON, Format.JSON5, Format.RON})
_SURROGATE = re.compile("[\ud800-\udfff]")


def _default_opener(path: Path, mode: str) -> IO[Any]:
    """Open *path* in binary mode for reading and as UTF-8 text with ``\\n`` newlines for writing."""

    if "b" in mode:
        return path.open(mode)
    return path.open(mode, encoding="utf-8", newline="\n")


class FormatDispatcher:
    """Load and dump typed values through the format picked for each file.

    Parameters
    ----------
    formats:
        Formats to activate. ``None`` selects ``LIB_CONFIG_FORMATS_ENABLED``
        (every format when unset). Formats whose codec library is missing are
        never active.
    fallback:
        Format used for paths without a known extension. ``None`` selects
        ``LIB_CONFIG_FORMATS_FALLBACK`` when *formats* is also ``None``.
    opener:
        I/O collaborator ``opener(path, mode)``; defaults to :meth:`Path.open`.
    codecs:
        Codec overrides keyed by format.

    Raises
    ------
    FormatNotEnabled
        When *fallback* names a format that is not active.

    Examples
    --------
    >>> dispatcher = FormatDispatcher([Format.JSON, Format.TOML])
    >>> dispatcher.identify("settings.Toml")
    <Format.TOML: 'TOML'>
    >>> dispatcher.loads("json", '{"port": "8080"}', dict[str, int])
    {'port': 8080}
    >>> print(dispatcher.dumps({"name": "demo"}, Format.TOML), end="")
    name = "demo"
    """

    def __init__(
        self,
        formats: Iterable[Format | str] | None = None,
        *,
        fallback: Format | str | None = None,
        opener: Opener | None = None,
        codecs: Mapping[Format, Codec] | None = None,
    ) -> None:
        table = dict(_CODECS)
        table.update(codecs or {})
        self._codecs: Mapping[Format, Codec] = MappingProxyType(table)
        self._opener: Opener = opener or _default_opener

        if formats is None:
            settings = EnvFormatSettings()
            requested = settings.enabled() or tuple(Format)
            if fallback is None:
                fallback = settings.fallback()
        else:
            requested = tuple(fmt if isinstance(fmt, Format) else Format.parse(fmt) for fmt in formats)
        active = [fmt for fmt in requested if fmt in self._codecs and self._codecs[fmt].available]

        self._resolver = ExtensionResolver(active)
        if fallback is not None:
            self._resolver = ExtensionResolver(active, fallback=self.resolve(fallback))

    @property
    def formats(self) -> tuple[Format, ...]:
        """Return the active formats in preference order."""

        return self._resolver.formats

    @property
    def fallback(self) -> Format | None:
        return self._resolver.fallback

    @property
    def resolver(self) -> ExtensionResolver:
        return self._resolver

    def identify(self, path: PathArg) -> Format:
        """Return the format of *path* from its extension (or the fallback).

        Raises
        ------
        NoExtension / NonUnicodeExtension / UnknownExtension
            When the format cannot be determined.
        """

        fmt = self._resolver.resolve(path)
        log_debug("format_identified", **make_event(str(fmt), os.fsdecode(path)))
        return fmt

    def resolve(self, tag: Format | str) -> Format:
        """Return the active format named by *tag*.

        Raises
        ------
        UnknownFormat
            When *tag* names no format.
        FormatNotEnabled
            When the format exists but is not active; the reason names the
            missing library or the configuration that excluded it.
        """

        try:
            return self._resolver.resolve_explicit(tag)
        except FormatNotEnabled as exc:
            raise FormatNotEnabled(exc.format, self._inactive_reason(exc.format)) from exc

    @overload
    def load(self, path: PathArg, into: None = None) -> StructuredValue: ...

    @overload
    def load(self, path: PathArg, into: type[T]) -> T: ...

    def load(self, path: PathArg, into: Any = None) -> Any:
        """Read *path*, decode it with the format of its extension, convert to *into*.

        Why
        ----
        Most callers only know "here is a config file, give me my settings
        type"; the format is an implementation detail of the file name.

        What
        ----
        identify → open/read bytes (:class:`ReadError`) → decode
        (:class:`FormatDeserializeError`) → convert (:class:`ConversionError`).
        The earliest failing step determines the error.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> target = Path(tmp.name) / "app.json"
        >>> _ = target.write_text('{"retries": 3}', encoding="utf-8")
        >>> FormatDispatcher([Format.JSON]).load(target)
        {'retries': 3}
        >>> tmp.cleanup()
        """

        fmt = self.identify(path)
        target = _as_path(path)
        payload = self._read(target, fmt)
        value = self._decode(fmt, payload, str(target))
        return from_structured(value, into)

    def dump(self, value: Any, path: PathArg) -> None:
        """Encode *value* with the format of *path* and write it there.

        The whole document is rendered before the file is opened, so a value
        the format cannot represent never truncates an existing file.

        Raises
        ------
        UnrepresentableValueError / IdentifyError / FormatSerializeError
            Before the file is touched.
        WriteError
            When opening (``stage="open"``) or writing (``stage="write"``) fails.
        FlushError
            When every byte was handed to the writer but flushing or closing failed.
        """

        structured = to_structured(value)
        fmt = self.identify(path)
        text = self._encode(fmt, structured)
        target = _as_path(path)
        self._write(target, fmt, text)

    @overload
    def load_from(self, fmt: Format | str, stream: IO[Any], into: None = None) -> StructuredValue: ...

    @overload
    def load_from(self, fmt: Format | str, stream: IO[Any], into: type[T]) -> T: ...

    def load_from(self, fmt: Format | str, stream: IO[Any], into: Any = None) -> Any:
        """Read all of *stream* (text or binary) as *fmt* and convert to *into*.

        The stream is owned by the caller and left open.
        """

        resolved = self.resolve(fmt)
        try:
            payload = stream.read()
        except OSError as exc:
            raise ReadError(None, "read", exc) from exc
        value = self._decode(resolved, payload, None)
        return from_structured(value, into)

    def dump_to(self, value: Any, fmt: Format | str, stream: IO[Any]) -> None:
        """Encode *value* as *fmt* into *stream* (text or binary) and flush it.

        The stream is owned by the caller and never closed here.
        """

        structured = to_structured(value)
        resolved = self.resolve(fmt)
        text = self._encode(resolved, structured)
        _write_and_flush(stream, text, None)
        log_info("config_written", **make_event(str(resolved), None, {"chars": len(text)}))

    @overload
    def loads(self, fmt: Format | str, text: str | bytes, into: None = None) -> StructuredValue: ...

    @overload
    def loads(self, fmt: Format | str, text: str | bytes, into: type[T]) -> T: ...

    def loads(self, fmt: Format | str, text: str | bytes, into: Any = None) -> Any:
        """Decode an in-memory document of *fmt* and convert it to *into*."""

        resolved = self.resolve(fmt)
        return from_structured(self._decode(resolved, text, None), into)

    def dumps(self, value: Any, fmt: Format | str) -> str:
        """Return *value* rendered as *fmt*, exactly as :meth:`dump` would write it."""

        structured = to_structured(value)
        return self._encode(self.resolve(fmt), structured)

    def _inactive_reason(self, fmt: Format) -> str | None:
        codec = self._codecs.get(fmt)
        if codec is None:
            return "no codec registered"
        if not codec.available:
            return getattr(codec, "requirement", None)
        return "disabled by configuration"

    def _read(self, target: Path, fmt: Format) -> bytes:
        try:
            handle = self._opener(target, "rb")
        except OSError as exc:
            raise ReadError(target, "open", exc) from exc
        with handle:
            try:
                payload = handle.read()
            except OSError as exc:
                raise ReadError(target, "read", exc) from exc
        log_debug("config_file_read", **make_event(str(fmt), str(target), {"size": len(payload)}))
        return payload

    def _decode(self, fmt: Format, payload: bytes | str, path: str | None) -> StructuredValue:
        value = self._codecs[fmt].decode(payload)
        log_debug("config_decoded", **make_event(str(fmt), path, {"kind": type(value).__name__}))
        return value

    def _encode(self, fmt: Format, value: StructuredValue) -> str:
        text = self._codecs[fmt].encode(value)
        if fmt in _TRAILING_NEWLINE and not text.endswith("\n"):
            text += "\n"
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise serialize_failure(fmt, exc, path=find_path(value, _unencodable)) from exc
        return text

    def _write(self, target: Path, fmt: Format, text: str) -> None:
        try:
            handle = self._opener(target, "w")
        except OSError as exc:
            raise WriteError(target, "open", exc) from exc
        written = False
        try:
            _write_and_flush(handle, text, target)
            written = True
        finally:
            if not written:
                _close_after_failure(handle, target)
        try:
            handle.close()
        except OSError as exc:
            raise FlushError(target, exc) from exc
        log_info("config_written", **make_event(str(fmt), str(target), {"chars": len(text)}))


def _as_path(path: PathArg) -> Path:
    return Path(os.fsdecode(path))


def _unencodable(node: object, key: object | None) -> bool:
    """Return ``True`` when *node* or its mapping *key* holds a lone surrogate."""

    return any(isinstance(item, str) and _SURROGATE.search(item) is not None for item in (node, key))


def _is_binary(stream: IO[Any]) -> bool:
    """Return ``True`` when *stream* expects bytes rather than text.

    >>> _is_binary(io.BytesIO()), _is_binary(io.StringIO())
    (True, False)
    """

    if isinstance(stream, io.TextIOBase):
        return False
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return "b" in getattr(stream, "mode", "")


def _write_and_flush(stream: IO[Any], text: str, target: Path | None) -> None:
    """Hand *text* to *stream* and flush it, mapping each stage to its error."""

    data: str | bytes = text.encode("utf-8") if _is_binary(stream) else text
    try:
        stream.write(data)
    except OSError as exc:
        raise WriteError(target, "write", exc) from exc
    try:
        stream.flush()
    except OSError as exc:
        raise FlushError(target, exc) from exc


def _close_after_failure(handle: IO[Any], target: Path) -> None:
    """Close *handle* after a failed write; the original failure is what the caller sees."""

    try:
        handle.close()
    except OSError as exc:
        log_error("config_close_failed", path=str(target), error=str(exc))


@lru_cache(maxsize=1)
def default_dispatcher() -> FormatDispatcher:
    """Return the process-wide dispatcher built from the environment on first use."""

    return FormatDispatcher()


def load(path: PathArg, into: Any = None) -> Any:
    """Shortcut for :meth:`FormatDispatcher.load` on :func:`default_dispatcher`."""

    return default_dispatcher().load(path, into)


def dump(value: Any, path: PathArg) -> None:
    """Shortcut for :meth:`FormatDispatcher.dump` on :func:`default_dispatcher`."""

    default_dispatcher().dump(value, path)


def load_from(fmt: Format | str, stream: IO[Any], into: Any = None) -> Any:
    return default_dispatcher().load_from(fmt, stream, into)


def dump_to(value: Any, fmt: Format | str, stream: IO[Any]) -> None:
    default_dispatcher().dump_to(value, fmt, stream)


def loads(fmt: Format | str, text: str | bytes, into: Any = None) -> Any:
    return default_dispatcher().loads(fmt, text, into)


def dumps(value: Any, fmt: Format | str) -> str:
    return default_dispatcher().dumps(value, fmt)


def identify(path: PathArg) -> Format:
    """Return the format the default dispatcher picks for *path*."""

    return default_dispatcher().identify(path)


def resolve_format(tag: Format | str) -> Format:
    """Return the active format named by *tag* on the default dispatcher."""

    return default_dispatcher().resolve(tag)


__all__ = [
    "FormatDispatcher",
    "default_dispatcher",
    "dump",
    "dump_to",
    "dumps",
    "identify",
    "load",
    "load_from",
    "loads",
    "resolve_format",
]
