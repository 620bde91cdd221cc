"""Environment variable adapter.

Purpose
-------
Translate process environment variables into the startup selection of active
formats. Explicit constructor arguments of the dispatcher always win; these
variables only shape the default dispatcher.

Key behaviours
--------------
* ``LIB_CONFIG_FORMATS_ENABLED`` restricts the active set to the listed
  formats (comma and/or whitespace separated, case-insensitive).
* ``LIB_CONFIG_FORMATS_FALLBACK`` names the format used for paths without a
  known extension.
* Unknown names raise :class:`lib_config_formats.domain.errors.UnknownFormat`
  instead of being silently ignored.
* Emits structured logging via :mod:`lib_config_formats.observability` to aid
  troubleshooting.
"""

from __future__ import annotations

import os
import re
from typing import Final, Mapping

from ...domain.formats import Format
from ...observability import log_debug

ENV_ENABLED_FORMATS: Final[str] = "LIB_CONFIG_FORMATS_ENABLED"
ENV_FALLBACK_FORMAT: Final[str] = "LIB_CONFIG_FORMATS_FALLBACK"

_SEPARATORS = re.compile(r"[\s,]+")


class EnvFormatSettings:
    """Read the format selection from the environment."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the settings with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def enabled(self) -> tuple[Format, ...] | None:
        """Return the formats listed in ``LIB_CONFIG_FORMATS_ENABLED``.

        Returns ``None`` when the variable is unset or blank, meaning "every
        available format". Order follows the registry, duplicates collapse.

        Examples
        --------
        >>> EnvFormatSettings(environ={ENV_ENABLED_FORMATS: "yaml, json"}).enabled()
        (<Format.JSON: 'JSON'>, <Format.YAML: 'YAML'>)
        >>> EnvFormatSettings(environ={}).enabled() is None
        True
        """

        raw = self._environ.get(ENV_ENABLED_FORMATS, "").strip()
        if not raw:
            return None
        requested = {Format.parse(tag) for tag in _SEPARATORS.split(raw) if tag}
        selected = tuple(fmt for fmt in Format if fmt in requested)
        log_debug("env_formats_loaded", variable=ENV_ENABLED_FORMATS, formats=[str(fmt) for fmt in selected])
        return selected

    def fallback(self) -> Format | None:
        """Return the format named by ``LIB_CONFIG_FORMATS_FALLBACK``, if any.

        Examples
        --------
        >>> EnvFormatSettings(environ={ENV_FALLBACK_FORMAT: "Toml"}).fallback()
        <Format.TOML: 'TOML'>
        """

        raw = self._environ.get(ENV_FALLBACK_FORMAT, "").strip()
        if not raw:
            return None
        return Format.parse(raw)


__all__ = ["ENV_ENABLED_FORMATS", "ENV_FALLBACK_FORMAT", "EnvFormatSettings"]
