from __future__ import annotations

import pytest

from lib_config_formats.domain.errors import UnknownFormat
from lib_config_formats.domain.formats import Format, all_formats, extensions, name


def test_formats_are_declared_in_registry_order() -> None:
    assert all_formats() == (Format.JSON, Format.JSON5, Format.RON, Format.TOML, Format.YAML)


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        (Format.JSON, ("json",)),
        (Format.JSON5, ("json5",)),
        (Format.RON, ("ron",)),
        (Format.TOML, ("toml",)),
        (Format.YAML, ("yaml", "yml")),
    ],
)
def test_extensions_per_format(fmt: Format, expected: tuple[str, ...]) -> None:
    assert extensions(fmt) == expected
    assert fmt.extensions == expected


def test_extensions_are_sorted_and_unique_across_registry() -> None:
    seen: list[str] = []
    for fmt in all_formats():
        assert list(fmt.extensions) == sorted(fmt.extensions)
        seen.extend(fmt.extensions)
    assert len(seen) == len(set(seen))


def test_display_names_are_upper_case_member_names() -> None:
    for fmt in all_formats():
        assert name(fmt) == fmt.name == str(fmt) == fmt.display_name


def test_has_extension_ignores_case_and_leading_dot() -> None:
    assert Format.YAML.has_extension("YML")
    assert Format.YAML.has_extension(".yaml")
    assert not Format.YAML.has_extension("json")


def test_from_extension_returns_none_for_unknown() -> None:
    assert Format.from_extension(".Json5") is Format.JSON5
    assert Format.from_extension("ini") is None


def test_parse_is_case_insensitive() -> None:
    assert Format.parse("ron") is Format.RON
    assert Format.parse(" Yaml ") is Format.YAML


def test_parse_rejects_unknown_tags() -> None:
    with pytest.raises(UnknownFormat) as excinfo:
        Format.parse("ini")
    assert excinfo.value.tag == "ini"
