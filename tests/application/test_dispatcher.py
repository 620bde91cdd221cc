from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from lib_config_formats.adapters.codecs import structured as structured_module
from lib_config_formats.core import FormatDispatcher
from lib_config_formats.domain.errors import (
    ConversionError,
    FlushError,
    FormatNotEnabled,
    JsonSerializeError,
    ReadError,
    UnknownExtension,
    UnknownFormat,
    WriteError,
)
from lib_config_formats.domain.formats import Format, all_formats
from lib_config_formats.domain.paths import Index, Key

# Line separators and C1 controls are left out: PyYAML folds them into spaces
# inside quoted scalars. Control characters are covered by a fixed example.
TEXT = st.text(alphabet=st.characters(exclude_categories=("Cs", "Cc", "Zl", "Zp")), max_size=8)
SCALAR = st.one_of(
    st.booleans(),
    st.integers(min_value=-(2**63), max_value=2**63 - 1),
    st.floats(allow_nan=False, allow_infinity=False),
    TEXT,
)
VALUE = st.recursive(
    SCALAR,
    lambda children: st.one_of(
        st.lists(children, max_size=3),
        st.dictionaries(TEXT, children, max_size=3),
    ),
    max_leaves=8,
)
DOCUMENT = st.dictionaries(TEXT, VALUE, max_size=4)

INVALID_DOCUMENTS = {
    Format.JSON: '{"a": {"b": "not_a_number"}}',
    Format.JSON5: "{a: {b: 'not_a_number'}}",
    Format.RON: '(a: (b: "not_a_number"))',
    Format.TOML: '[a]\nb = "not_a_number"\n',
    Format.YAML: "a:\n  b: not_a_number\n",
}


@dataclass
class Inner:
    b: int


@dataclass
class Outer:
    a: Inner


class RecordingStream(io.BytesIO):
    """Binary stream whose write, flush or close can be made to fail."""

    def __init__(self, *, fail_write: bool = False, fail_flush: bool = False, fail_close: bool = False) -> None:
        super().__init__()
        self.fail_write = fail_write
        self.fail_flush = fail_flush
        self.fail_close = fail_close
        self.close_calls = 0

    def write(self, data: Any) -> int:
        if self.fail_write:
            raise OSError("write refused")
        return super().write(data)

    def flush(self) -> None:
        if self.fail_flush:
            raise OSError("flush refused")
        super().flush()

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close and self.close_calls == 1:
            raise OSError("close refused")
        super().close()


class ExplodingStream(RecordingStream):
    """Binary stream whose writer fails with something other than an OSError."""

    def write(self, data: Any) -> int:
        raise ValueError("payload rejected")


class StreamOpener:
    """Opener handing out a prepared stream and recording each call."""

    def __init__(self, stream: IO[Any] | None = None, error: OSError | None = None) -> None:
        self.stream = stream
        self.error = error
        self.calls: list[tuple[Path, str]] = []

    def __call__(self, path: Path, mode: str) -> IO[Any]:
        self.calls.append((path, mode))
        if self.error is not None:
            raise self.error
        assert self.stream is not None
        return self.stream


def _active_formats() -> list[Format]:
    return list(FormatDispatcher(all_formats()).formats)


@pytest.mark.parametrize("fmt", _active_formats())
@settings(max_examples=40, deadline=None)
@given(document=DOCUMENT)
def test_decode_of_encode_is_identity(fmt: Format, document: dict[str, Any]) -> None:
    dispatcher = FormatDispatcher(all_formats())
    assert dispatcher.loads(fmt, dispatcher.dumps(document, fmt)) == document


@pytest.mark.parametrize("fmt", _active_formats())
def test_control_and_astral_characters_survive_every_format(fmt: Format) -> None:
    dispatcher = FormatDispatcher(all_formats())
    document = {"ctl": "\x00\x01\t\r\n\x1b\x7f", "snowman ☃": "goat \U0001F410", "nbsp": "\xa0 　"}
    assert dispatcher.loads(fmt, dispatcher.dumps(document, fmt)) == document


@pytest.mark.parametrize("fmt", _active_formats())
def test_conversion_path_is_the_same_for_every_format(fmt: Format) -> None:
    dispatcher = FormatDispatcher(all_formats())
    with pytest.raises(ConversionError) as excinfo:
        dispatcher.loads(fmt, INVALID_DOCUMENTS[fmt], Outer)
    assert excinfo.value.path == [Key("a"), Key("b")]


@pytest.mark.parametrize("fmt", [Format.JSON, Format.JSON5, Format.RON])
def test_text_formats_end_with_newline(fmt: Format) -> None:
    text = FormatDispatcher(all_formats()).dumps({"a": 1}, fmt)
    assert text.endswith("\n")
    assert not text.endswith("\n\n")


def test_load_reads_through_opener(tmp_path: Path) -> None:
    opener = StreamOpener(io.BytesIO(b'{"a": {"b": "7"}}'))
    dispatcher = FormatDispatcher([Format.JSON], opener=opener)
    assert dispatcher.load(tmp_path / "app.json", Outer) == Outer(a=Inner(b=7))
    assert opener.calls == [(tmp_path / "app.json", "rb")]


def test_load_missing_file_is_read_error_at_open(tmp_path: Path) -> None:
    with pytest.raises(ReadError) as excinfo:
        FormatDispatcher([Format.JSON]).load(tmp_path / "missing.json")
    assert excinfo.value.stage == "open"
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_identification_fails_before_any_io(tmp_path: Path) -> None:
    opener = StreamOpener(error=OSError("should not open"))
    dispatcher = FormatDispatcher([Format.JSON], opener=opener)
    with pytest.raises(UnknownExtension):
        dispatcher.load(tmp_path / "app.cfg")
    assert opener.calls == []


def test_flush_failure_is_flush_error_not_write_error(tmp_path: Path) -> None:
    stream = RecordingStream(fail_flush=True)
    dispatcher = FormatDispatcher([Format.JSON], opener=StreamOpener(stream))
    with pytest.raises(FlushError) as excinfo:
        dispatcher.dump({"a": 1}, tmp_path / "out.json")
    assert not isinstance(excinfo.value, WriteError)
    assert stream.close_calls == 1


def test_write_failure_is_write_error_at_write_stage(tmp_path: Path) -> None:
    stream = RecordingStream(fail_write=True)
    dispatcher = FormatDispatcher([Format.JSON], opener=StreamOpener(stream))
    with pytest.raises(WriteError) as excinfo:
        dispatcher.dump({"a": 1}, tmp_path / "out.json")
    assert excinfo.value.stage == "write"
    assert stream.close_calls == 1


def test_open_failure_is_write_error_at_open_stage(tmp_path: Path) -> None:
    dispatcher = FormatDispatcher([Format.JSON], opener=StreamOpener(error=PermissionError("denied")))
    with pytest.raises(WriteError) as excinfo:
        dispatcher.dump({"a": 1}, tmp_path / "out.json")
    assert excinfo.value.stage == "open"


def test_close_failure_after_flush_is_flush_error(tmp_path: Path) -> None:
    stream = RecordingStream(fail_close=True)
    dispatcher = FormatDispatcher([Format.JSON], opener=StreamOpener(stream))
    with pytest.raises(FlushError):
        dispatcher.dump({"a": 1}, tmp_path / "out.json")
    assert stream.getvalue() == b'{\n  "a": 1\n}\n'


def test_close_failure_after_write_failure_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_config_formats")
    stream = RecordingStream(fail_write=True, fail_close=True)
    dispatcher = FormatDispatcher([Format.JSON], opener=StreamOpener(stream))
    with pytest.raises(WriteError):
        dispatcher.dump({"a": 1}, tmp_path / "out.json")
    assert "config_close_failed" in [record.getMessage() for record in caplog.records]


def test_encode_failure_never_opens_the_target(tmp_path: Path) -> None:
    target = tmp_path / "out.json"
    target.write_text('{"keep": true}\n', encoding="utf-8")
    dispatcher = FormatDispatcher([Format.JSON])
    with pytest.raises(JsonSerializeError):
        dispatcher.dump({"bad": float("nan")}, target)
    assert target.read_text(encoding="utf-8") == '{"keep": true}\n'


@pytest.mark.parametrize(
    ("value", "path"),
    [
        ({"a": "\udcff"}, [Key("a")]),
        ({"list": ["ok", "\ud800"]}, [Key("list"), Index(1)]),
        ({"\udcff": 1}, [Key("\udcff")]),
    ],
)
def test_unencodable_text_never_truncates_the_target(tmp_path: Path, value: dict[str, Any], path: list[Any]) -> None:
    target = tmp_path / "out.json"
    target.write_text('{"keep": true}\n', encoding="utf-8")
    dispatcher = FormatDispatcher([Format.JSON])
    with pytest.raises(JsonSerializeError) as excinfo:
        dispatcher.dump(value, target)
    assert excinfo.value.path == path
    assert isinstance(excinfo.value.__cause__, UnicodeEncodeError)
    assert target.read_text(encoding="utf-8") == '{"keep": true}\n'


def test_dumps_rejects_unencodable_text_with_path() -> None:
    with pytest.raises(JsonSerializeError) as excinfo:
        FormatDispatcher([Format.JSON]).dumps({"a": {"b": "x\udcffy"}}, Format.JSON)
    assert excinfo.value.path == [Key("a"), Key("b")]


def test_handle_is_closed_when_the_writer_raises_anything(tmp_path: Path) -> None:
    stream = ExplodingStream()
    dispatcher = FormatDispatcher([Format.JSON], opener=StreamOpener(stream))
    with pytest.raises(ValueError, match="payload rejected"):
        dispatcher.dump({"a": 1}, tmp_path / "out.json")
    assert stream.close_calls == 1


def test_dump_to_writes_text_and_binary_streams_without_closing() -> None:
    dispatcher = FormatDispatcher([Format.JSON])
    text_stream = io.StringIO()
    binary_stream = io.BytesIO()
    dispatcher.dump_to({"a": "ü"}, "json", text_stream)
    dispatcher.dump_to({"a": "ü"}, Format.JSON, binary_stream)
    assert text_stream.getvalue() == '{\n  "a": "ü"\n}\n'
    assert binary_stream.getvalue() == text_stream.getvalue().encode("utf-8")
    assert not text_stream.closed and not binary_stream.closed


def test_dump_to_flush_failure_is_flush_error() -> None:
    stream = RecordingStream(fail_flush=True)
    with pytest.raises(FlushError):
        FormatDispatcher([Format.JSON]).dump_to({"a": 1}, Format.JSON, stream)
    assert stream.close_calls == 0


def test_load_from_accepts_text_and_binary_streams() -> None:
    dispatcher = FormatDispatcher([Format.TOML])
    assert dispatcher.load_from("toml", io.StringIO("a = 1\n")) == {"a": 1}
    assert dispatcher.load_from(Format.TOML, io.BytesIO(b"a = 1\n")) == {"a": 1}


def test_explicit_inactive_format_is_not_enabled() -> None:
    dispatcher = FormatDispatcher([Format.JSON])
    with pytest.raises(FormatNotEnabled) as excinfo:
        dispatcher.loads("toml", "a = 1\n")
    assert excinfo.value.format is Format.TOML
    assert "disabled by configuration" in str(excinfo.value)
    with pytest.raises(FormatNotEnabled):
        dispatcher.resolver.resolve_explicit("toml")


def test_unknown_format_name_is_unknown_format() -> None:
    with pytest.raises(UnknownFormat):
        FormatDispatcher([Format.JSON]).dumps({}, "ini")


def test_missing_library_makes_format_inactive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(structured_module, "yaml", None)
    dispatcher = FormatDispatcher(all_formats())
    assert Format.YAML not in dispatcher.formats
    with pytest.raises(UnknownExtension):
        dispatcher.identify("app.yaml")
    with pytest.raises(FormatNotEnabled):
        dispatcher.resolve("yaml")


def test_fallback_must_be_active() -> None:
    with pytest.raises(FormatNotEnabled):
        FormatDispatcher([Format.JSON], fallback=Format.TOML)


def test_fallback_resolves_unknown_extensions(tmp_path: Path) -> None:
    target = tmp_path / "settings.conf"
    target.write_text("a = 1\n", encoding="utf-8")
    dispatcher = FormatDispatcher([Format.JSON, Format.TOML], fallback="toml")
    assert dispatcher.load(target) == {"a": 1}


def test_environment_selects_formats_and_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIB_CONFIG_FORMATS_ENABLED", "toml, json")
    monkeypatch.setenv("LIB_CONFIG_FORMATS_FALLBACK", "TOML")
    dispatcher = FormatDispatcher()
    assert dispatcher.formats == (Format.JSON, Format.TOML)
    assert dispatcher.fallback is Format.TOML
    assert dispatcher.identify("Makefile") is Format.TOML


def test_explicit_formats_ignore_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIB_CONFIG_FORMATS_ENABLED", "json")
    assert FormatDispatcher([Format.TOML]).formats == (Format.TOML,)


def test_dump_logs_written_event(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="lib_config_formats")
    target = tmp_path / "out.toml"
    FormatDispatcher([Format.TOML]).dump({"a": 1}, target)
    record = caplog.records[-1]
    assert record.getMessage() == "config_written"
    assert getattr(record, "context")["path"] == str(target)
    assert getattr(record, "context")["format"] == "TOML"
