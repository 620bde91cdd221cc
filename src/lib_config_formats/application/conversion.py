"""Conversion between caller types and structured values.

Purpose
-------
Provide the "this type can be projected to/from a structured value"
capability the facade is generic over. pydantic ``TypeAdapter`` instances do
the work for dataclasses, pydantic models, enums, ``TypedDict`` and plain
containers alike; failures are normalised with a field path.

Contents
--------
* :func:`from_structured` – validate a structured value into a target type.
* :func:`to_structured` – project any supported value into a plain tree.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar, overload

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .normalize import conversion_failure, unrepresentable_failure
from .ports import StructuredValue

T = TypeVar("T")

_SCALARS = (type(None), bool, int, float, str)


@overload
def from_structured(value: StructuredValue, into: None = None) -> StructuredValue: ...


@overload
def from_structured(value: StructuredValue, into: type[T]) -> T: ...


def from_structured(value: StructuredValue, into: Any = None) -> Any:
    """Return *value* validated as *into* (or unchanged when *into* is ``None``).

    Raises
    ------
    ConversionError
        When *value* does not fit *into*; the error path locates the first
        offending field.

    Examples
    --------
    >>> from_structured({"a": {"b": "7"}}, dict[str, dict[str, int]])
    {'a': {'b': 7}}
    >>> try:
    ...     from_structured({"a": {"b": "x"}}, dict[str, dict[str, int]])
    ... except Exception as exc:
    ...     print(exc.path)
    a.b
    """

    if into is None:
        return value
    try:
        return _adapter(into).validate_python(value)
    except ValidationError as exc:
        raise conversion_failure(exc) from exc


def to_structured(value: Any) -> StructuredValue:
    """Project *value* into a plain tree of scalars, lists and dicts.

    Values that already are plain trees pass through untouched (mapping keys
    keep their types). Everything else goes through pydantic's JSON-mode
    serialisation: enums become their values, dataclasses and models become
    dicts, tuples become lists.

    Raises
    ------
    UnrepresentableValueError
        When pydantic cannot serialise *value*.

    Examples
    --------
    >>> from enum import Enum
    >>> class Color(Enum):
    ...     RED = "red"
    >>> to_structured({"color": Color.RED, "sizes": (1, 2)})
    {'color': 'red', 'sizes': [1, 2]}
    >>> to_structured({1: "one"})
    {1: 'one'}
    """

    if _is_plain(value):
        return value
    try:
        return _adapter(type(value)).dump_python(value, mode="json")
    except (PydanticSerializationError, PydanticSchemaGenerationError) as exc:
        raise unrepresentable_failure(exc) from exc


def _is_plain(value: Any) -> bool:
    """Return ``True`` when *value* is built only from plain scalars, lists and dicts."""

    if type(value) in _SCALARS:
        return True
    if type(value) is list:
        return all(_is_plain(item) for item in value)
    if type(value) is dict:
        return all(type(key) in _SCALARS and _is_plain(item) for key, item in value.items())
    return False


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter[Any]:
    """Return a cached :class:`TypeAdapter` for *target*."""

    return TypeAdapter(target)
