from __future__ import annotations

import pytest

from lib_config_formats.adapters.env.default import ENV_ENABLED_FORMATS, ENV_FALLBACK_FORMAT, EnvFormatSettings
from lib_config_formats.domain.errors import UnknownFormat
from lib_config_formats.domain.formats import Format


def test_unset_variables_mean_defaults() -> None:
    settings = EnvFormatSettings(environ={})
    assert settings.enabled() is None
    assert settings.fallback() is None


def test_enabled_accepts_commas_and_whitespace_in_any_case() -> None:
    settings = EnvFormatSettings(environ={ENV_ENABLED_FORMATS: "yaml  Json,ron,,JSON"})
    assert settings.enabled() == (Format.JSON, Format.RON, Format.YAML)


def test_blank_enabled_means_defaults() -> None:
    assert EnvFormatSettings(environ={ENV_ENABLED_FORMATS: "  "}).enabled() is None


def test_unknown_names_raise() -> None:
    with pytest.raises(UnknownFormat):
        EnvFormatSettings(environ={ENV_ENABLED_FORMATS: "json,ini"}).enabled()
    with pytest.raises(UnknownFormat):
        EnvFormatSettings(environ={ENV_FALLBACK_FORMAT: "xml"}).fallback()


def test_reads_process_environment_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ENV_FALLBACK_FORMAT, "json5")
    assert EnvFormatSettings().fallback() is Format.JSON5
