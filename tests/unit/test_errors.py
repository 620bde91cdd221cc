from __future__ import annotations

import pytest

from lib_config_formats.domain.errors import (
    ConfigFormatError,
    ConversionError,
    DeserializeError,
    FlushError,
    FormatDeserializeError,
    FormatNotEnabled,
    FormatSerializeError,
    IdentifyError,
    JsonDeserializeError,
    NoExtension,
    NonUnicodeExtension,
    ReadError,
    SerializeError,
    TomlSerializeError,
    UnknownExtension,
    UnknownFormat,
    UnrepresentableValueError,
    WriteError,
)
from lib_config_formats.domain.formats import Format
from lib_config_formats.domain.paths import FieldPath, SourceLocation


@pytest.mark.parametrize(
    "exception",
    [NoExtension("app"), NonUnicodeExtension(b"app.\xff"), UnknownExtension("cfg"), UnknownFormat("ini")],
)
def test_identification_errors_belong_to_both_directions(exception: IdentifyError) -> None:
    assert isinstance(exception, DeserializeError)
    assert isinstance(exception, SerializeError)
    assert isinstance(exception, ConfigFormatError)


def test_format_not_enabled_belongs_to_both_directions() -> None:
    error = FormatNotEnabled(Format.YAML, "PyYAML is required for YAML support")
    assert isinstance(error, DeserializeError)
    assert isinstance(error, SerializeError)
    assert str(error) == "Format YAML is not enabled: PyYAML is required for YAML support"


def test_io_errors_are_split_by_direction() -> None:
    assert issubclass(ReadError, DeserializeError)
    assert issubclass(WriteError, SerializeError)
    assert issubclass(FlushError, SerializeError)
    assert not issubclass(FlushError, WriteError)
    assert not issubclass(ReadError, SerializeError)


def test_codec_and_conversion_errors_are_split_by_direction() -> None:
    assert issubclass(JsonDeserializeError, FormatDeserializeError)
    assert issubclass(TomlSerializeError, FormatSerializeError)
    assert issubclass(ConversionError, DeserializeError)
    assert issubclass(UnrepresentableValueError, SerializeError)


def test_format_deserialize_error_message_names_path_and_location() -> None:
    inner = ValueError("boom")
    error = JsonDeserializeError(
        Format.JSON,
        inner,
        path=FieldPath.of("a", 0),
        location=SourceLocation(line=2, column=5),
    )
    assert str(error) == "Failed to deserialize JSON at a[0] (line 2, column 5): boom"
    assert error.inner is inner


def test_errors_default_to_an_empty_path() -> None:
    assert UnknownExtension("cfg").path == FieldPath()
    assert TomlSerializeError(Format.TOML, TypeError("x")).path == FieldPath()


def test_conversion_error_message_renders_path() -> None:
    error = ConversionError("Input should be a valid integer", path=FieldPath.of("a", "b"))
    assert str(error).startswith("Failed to convert value at a.b: Input should be a valid integer")


def test_unknown_extension_keeps_original_text() -> None:
    error = UnknownExtension("UnknownExt")
    assert error.extension == "UnknownExt"
    assert "UnknownExt" in str(error)


def test_io_errors_keep_stage_and_inner() -> None:
    inner = OSError("disk full")
    error = WriteError("out.json", "write", inner)
    assert error.stage == "write"
    assert error.inner is inner
    assert error.file_path == "out.json"
