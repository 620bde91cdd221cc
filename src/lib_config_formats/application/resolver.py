"""Extension resolver.

Purpose
-------
Map a file path to a :class:`Format` via its extension, or a format tag to a
:class:`Format` directly, restricted to the formats active in this process.

Contents
--------
* :func:`file_extension` – extract the extension of the final path segment.
* :func:`build_extension_table` – derive the immutable extension lookup.
* :class:`ExtensionResolver` – path and tag resolution with optional fallback.
"""

from __future__ import annotations

import os
from pathlib import PurePath
from types import MappingProxyType
from typing import Iterable, Mapping

from ..domain.errors import FormatNotEnabled, NoExtension, NonUnicodeExtension, UnknownExtension
from ..domain.formats import Format


def file_extension(path: str | bytes | os.PathLike[str]) -> str:
    """Return the extension of *path* without the leading dot.

    Dotfiles (``.env``) and names ending in a dot have no extension. ``bytes``
    paths are decoded with :func:`os.fsdecode`; only the extension itself must
    be valid Unicode, otherwise :class:`NonUnicodeExtension` is raised.

    Examples
    --------
    >>> file_extension("dir/app.config.TOML")
    'TOML'
    >>> file_extension("dir.d/app")
    Traceback (most recent call last):
    ...
    lib_config_formats.domain.errors.NoExtension: File dir.d/app does not have a file extension
    """

    raw = os.fspath(path)
    if isinstance(raw, bytes):
        raw = os.fsdecode(raw)
    suffix = PurePath(raw).suffix
    if not suffix:
        raise NoExtension(raw)
    ext = suffix[1:]
    try:
        ext.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise NonUnicodeExtension(path) from exc
    return ext


def build_extension_table(formats: Iterable[Format]) -> Mapping[str, Format]:
    """Return a read-only mapping of lowercase extension to format.

    Raises
    ------
    ValueError
        When two formats claim the same extension.
    """

    table: dict[str, Format] = {}
    for fmt in formats:
        for ext in fmt.extensions:
            claimed = table.get(ext)
            if claimed is not None and claimed is not fmt:
                raise ValueError(f"Extension {ext!r} claimed by both {claimed} and {fmt}")
            table[ext] = fmt
    return MappingProxyType(table)


class ExtensionResolver:
    """Resolve formats from paths and explicit tags.

    Parameters
    ----------
    formats:
        Active formats, in preference order.
    fallback:
        Format used when a path has no or an unrecognised extension.

    Examples
    --------
    >>> resolver = ExtensionResolver([Format.JSON, Format.YAML])
    >>> resolver.resolve("settings.YML")
    <Format.YAML: 'YAML'>
    >>> resolver.resolve_explicit("json")
    <Format.JSON: 'JSON'>
    """

    def __init__(self, formats: Iterable[Format], *, fallback: Format | None = None) -> None:
        self._formats = tuple(dict.fromkeys(formats))
        self._table = build_extension_table(self._formats)
        self._fallback = fallback

    @property
    def formats(self) -> tuple[Format, ...]:
        return self._formats

    @property
    def fallback(self) -> Format | None:
        return self._fallback

    @property
    def table(self) -> Mapping[str, Format]:
        return self._table

    def resolve(self, path: str | bytes | os.PathLike[str]) -> Format:
        """Return the format for *path* based on its extension.

        Raises
        ------
        NoExtension / NonUnicodeExtension
            When *path* has no usable extension and no fallback is configured.
        UnknownExtension
            When no active format claims the extension and no fallback is configured.
        """

        try:
            ext = file_extension(path)
        except (NoExtension, NonUnicodeExtension):
            if self._fallback is not None:
                return self._fallback
            raise
        fmt = self._table.get(ext.lower())
        if fmt is not None:
            return fmt
        if self._fallback is not None:
            return self._fallback
        raise UnknownExtension(ext)

    def resolve_explicit(self, tag: Format | str) -> Format:
        """Return the active format named by *tag* (case-insensitive).

        Raises
        ------
        UnknownFormat
            When *tag* names no format.
        FormatNotEnabled
            When *tag* names a format that is not active.
        """

        fmt = tag if isinstance(tag, Format) else Format.parse(tag)
        if fmt not in self._formats:
            raise FormatNotEnabled(fmt)
        return fmt
