"""Public package surface for ``lib_config_formats``.

Load and dump typed configuration values through JSON, JSON5, RON, TOML or
YAML, picked from the file extension or named explicitly, with one error
taxonomy across all five formats. Both ``import lib_config_formats`` and
``python -m lib_config_formats`` flow through the composition root in
:mod:`lib_config_formats.core`.
"""

from __future__ import annotations

from .core import (
    FormatDispatcher,
    default_dispatcher,
    dump,
    dump_to,
    dumps,
    identify,
    load,
    load_from,
    loads,
    resolve_format,
)
from .domain.errors import (
    ConfigFormatError,
    ConversionError,
    DeserializeError,
    FlushError,
    FormatDeserializeError,
    FormatNotEnabled,
    FormatSerializeError,
    IdentifyError,
    Json5DeserializeError,
    Json5SerializeError,
    JsonDeserializeError,
    JsonSerializeError,
    NoExtension,
    NonUnicodeExtension,
    ReadError,
    RonDeserializeError,
    RonSerializeError,
    SerializeError,
    TomlDeserializeError,
    TomlSerializeError,
    UnknownExtension,
    UnknownFormat,
    UnrepresentableValueError,
    WriteError,
    YamlDeserializeError,
    YamlSerializeError,
)
from .domain.formats import Format, all_formats, extensions, name
from .domain.paths import FieldPath, Index, Key, SourceLocation
from .observability import bind_trace_id, get_logger

__all__ = [
    "ConfigFormatError",
    "ConversionError",
    "DeserializeError",
    "FieldPath",
    "FlushError",
    "Format",
    "FormatDeserializeError",
    "FormatDispatcher",
    "FormatNotEnabled",
    "FormatSerializeError",
    "IdentifyError",
    "Index",
    "Json5DeserializeError",
    "Json5SerializeError",
    "JsonDeserializeError",
    "JsonSerializeError",
    "Key",
    "NoExtension",
    "NonUnicodeExtension",
    "ReadError",
    "RonDeserializeError",
    "RonSerializeError",
    "SerializeError",
    "SourceLocation",
    "TomlDeserializeError",
    "TomlSerializeError",
    "UnknownExtension",
    "UnknownFormat",
    "UnrepresentableValueError",
    "WriteError",
    "YamlDeserializeError",
    "YamlSerializeError",
    "all_formats",
    "bind_trace_id",
    "default_dispatcher",
    "dump",
    "dump_to",
    "dumps",
    "extensions",
    "get_logger",
    "identify",
    "load",
    "load_from",
    "loads",
    "name",
    "resolve_format",
]
