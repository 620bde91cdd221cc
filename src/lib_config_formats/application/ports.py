"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contract every format codec satisfies so the composition
root can dispatch without knowing which library sits behind a format.

Contents
--------
* :data:`StructuredValue` – the format-agnostic pivot tree.
* :class:`Codec` – decode/encode capability for one format.
* :class:`Opener` – I/O collaborator producing file streams.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Codecs in
:mod:`lib_config_formats.adapters.codecs` implement :class:`Codec`; the facade
only talks to the protocol.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Protocol, Union, runtime_checkable

from ..domain.formats import Format

StructuredValue = Union[None, bool, int, float, str, list[Any], dict[Any, Any]]
"""Plain tree of scalars, lists and dicts produced by decoders and consumed by encoders."""


@runtime_checkable
class Codec(Protocol):
    """Decode and encode documents of a single format.

    Why
    ----
    Every format is treated uniformly through this two-operation interface;
    adding a format means adding one codec, nothing else changes.
    """

    format: Format

    @property
    def available(self) -> bool:
        """Return ``True`` when the backing library is importable."""

    def decode(self, payload: bytes | str) -> StructuredValue:
        """Parse *payload* or raise :class:`FormatDeserializeError`."""

    def encode(self, value: StructuredValue) -> str:
        """Render *value* or raise :class:`FormatSerializeError`."""


class Opener(Protocol):
    """Open *path* with *mode* and return a buffered stream."""

    def __call__(self, path: Path, mode: str) -> IO[Any]:
        ...
