from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import pytest
from pydantic import BaseModel

from lib_config_formats.application.conversion import from_structured, to_structured
from lib_config_formats.domain.errors import ConversionError, UnrepresentableValueError
from lib_config_formats.domain.paths import Index, Key


class Mode(Enum):
    FAST = "fast"
    SAFE = "safe"


@dataclass
class Service:
    name: str
    ports: list[int] = field(default_factory=list)
    mode: Mode = Mode.SAFE
    owner: Optional[str] = None


class Database(BaseModel):
    host: str
    port: int = 5432


class Opaque:
    pass


def test_from_structured_without_target_returns_value_unchanged() -> None:
    value = {"a": [1, 2]}
    assert from_structured(value) is value


def test_from_structured_builds_dataclasses_with_defaults() -> None:
    service = from_structured({"name": "api", "ports": ["80", 443], "mode": "fast"}, Service)
    assert service == Service(name="api", ports=[80, 443], mode=Mode.FAST, owner=None)


def test_from_structured_builds_pydantic_models() -> None:
    assert from_structured({"host": "db"}, Database) == Database(host="db", port=5432)


def test_from_structured_reports_nested_path() -> None:
    with pytest.raises(ConversionError) as excinfo:
        from_structured({"name": "api", "ports": [80, "http"]}, Service)
    assert excinfo.value.path == [Key("ports"), Index(1)]


def test_from_structured_reports_missing_field() -> None:
    with pytest.raises(ConversionError) as excinfo:
        from_structured({}, Database)
    assert excinfo.value.path == [Key("host")]


def test_to_structured_passes_plain_trees_through() -> None:
    value = {"a": [1, 2.5, None, True], 3: "three"}
    assert to_structured(value) is value


def test_to_structured_projects_dataclasses_and_enums() -> None:
    projected = to_structured(Service(name="api", ports=[80], mode=Mode.FAST))
    assert projected == {"name": "api", "ports": [80], "mode": "fast", "owner": None}


def test_to_structured_projects_models_and_tuples() -> None:
    assert to_structured(Database(host="db")) == {"host": "db", "port": 5432}
    assert to_structured((1, Mode.SAFE)) == [1, "safe"]


def test_to_structured_rejects_unknown_types() -> None:
    with pytest.raises(UnrepresentableValueError):
        to_structured(Opaque())
