"""Closed registry of supported configuration file formats.

Purpose
-------
Name every encoding the library can dispatch to and the file extensions that
identify it. The registry is a pure value layer: no I/O, no mutable state, no
knowledge of which parsing libraries are installed.

Contents
--------
* :class:`Format` – enumeration of the supported encodings in declaration order.
* :func:`all_formats` / :func:`extensions` / :func:`name` – functional lookups
  used by the resolver and the CLI.

System Role
-----------
The extension resolver builds its lookup table from these values and the
codec table in :mod:`lib_config_formats.core` is keyed by them.
"""

from __future__ import annotations

from enum import Enum
from typing import Final

from .errors import UnknownFormat


class Format(Enum):
    """Configuration file format known to the library.

    The value of each member is its display name. Extensions are lowercase,
    carry no leading dot and are exposed in lexicographic order.

    Examples
    --------
    >>> Format.YAML.extensions
    ('yaml', 'yml')
    >>> str(Format.JSON5)
    'JSON5'
    >>> Format.parse("toml")
    <Format.TOML: 'TOML'>
    """

    JSON = "JSON"
    JSON5 = "JSON5"
    RON = "RON"
    TOML = "TOML"
    YAML = "YAML"

    def __str__(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        """Return the upper-case display name (``"JSON"``, ``"YAML"``...)."""

        return self.value

    @property
    def extensions(self) -> tuple[str, ...]:
        """Return the recognised file extensions in lexicographic order."""

        return _EXTENSIONS[self]

    def has_extension(self, ext: str) -> bool:
        """Return ``True`` when *ext* belongs to this format.

        Matching ignores case and an optional leading period.

        Examples
        --------
        >>> Format.JSON.has_extension(".JSON")
        True
        >>> Format.JSON.has_extension("cfg")
        False
        """

        candidate = ext[1:] if ext.startswith(".") else ext
        return candidate.lower() in self.extensions

    @classmethod
    def from_extension(cls, ext: str) -> Format | None:
        """Return the format claiming *ext* or ``None`` when nothing does.

        Examples
        --------
        >>> Format.from_extension("YML")
        <Format.YAML: 'YAML'>
        >>> Format.from_extension("cfg") is None
        True
        """

        for fmt in cls:
            if fmt.has_extension(ext):
                return fmt
        return None

    @classmethod
    def parse(cls, tag: str) -> Format:
        """Return the format whose display name matches *tag* case-insensitively.

        Raises
        ------
        UnknownFormat
            When *tag* names no format.
        """

        wanted = tag.strip().upper()
        for fmt in cls:
            if fmt.value == wanted:
                return fmt
        raise UnknownFormat(tag)


_EXTENSIONS: Final[dict[Format, tuple[str, ...]]] = {
    Format.JSON: ("json",),
    Format.JSON5: ("json5",),
    Format.RON: ("ron",),
    Format.TOML: ("toml",),
    Format.YAML: ("yaml", "yml"),
}


def all_formats() -> tuple[Format, ...]:
    """Return every format in declaration order.

    >>> [str(fmt) for fmt in all_formats()]
    ['JSON', 'JSON5', 'RON', 'TOML', 'YAML']
    """

    return tuple(Format)


def extensions(fmt: Format) -> tuple[str, ...]:
    """Return the lexicographically ordered extensions claimed by *fmt*."""

    return fmt.extensions


def name(fmt: Format) -> str:
    """Return the display name of *fmt*."""

    return fmt.display_name


__all__ = ["Format", "all_formats", "extensions", "name"]
