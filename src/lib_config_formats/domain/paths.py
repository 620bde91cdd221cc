"""Field paths and source locations attached to normalised errors.

Purpose
-------
Give every failure, whatever library produced it, the same shape for "where":
an ordered list of mapping keys and sequence indices into the structured
value, plus an optional line/column/offset into the source text.

Contents
--------
* :class:`Key` / :class:`Index` – individual path steps.
* :class:`FieldPath` – immutable sequence of steps with dotted rendering.
* :class:`SourceLocation` – line/column/offset triple.
* :func:`find_path` – depth-first search for the first node matching a
  predicate, used by encoders to point at unrepresentable values.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Callable, Union


@dataclass(frozen=True, slots=True)
class Key:
    """Mapping key step."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Index:
    """Sequence index step."""

    position: int

    def __str__(self) -> str:
        return f"[{self.position}]"


Step = Union[Key, Index]


@dataclass(frozen=True, slots=True)
class FieldPath:
    """Location of a value inside a structured document.

    Examples
    --------
    >>> path = FieldPath.of("people", 1, "id")
    >>> str(path)
    'people[1].id'
    >>> list(path) == [Key("people"), Index(1), Key("id")]
    True
    >>> str(FieldPath())
    '<root>'
    """

    steps: tuple[Step, ...] = ()

    @classmethod
    def of(cls, *parts: str | int | Step) -> FieldPath:
        """Build a path from raw keys (``str``) and indices (``int``)."""

        return cls.from_location(parts)

    @classmethod
    def from_location(cls, parts: Iterable[object]) -> FieldPath:
        """Convert a pydantic-style ``loc`` tuple into a path.

        Integers become :class:`Index` steps, everything else a :class:`Key`.
        """

        steps: list[Step] = []
        for part in parts:
            if isinstance(part, (Key, Index)):
                steps.append(part)
            elif isinstance(part, int) and not isinstance(part, bool):
                steps.append(Index(part))
            else:
                steps.append(Key(str(part)))
        return cls(tuple(steps))

    def child(self, step: str | int | Step) -> FieldPath:
        """Return a new path extended by *step*."""

        return FieldPath(self.steps + FieldPath.of(step).steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __bool__(self) -> bool:
        return bool(self.steps)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldPath):
            return self.steps == other.steps
        if isinstance(other, (list, tuple)):
            return list(self.steps) == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.steps)

    def __str__(self) -> str:
        if not self.steps:
            return "<root>"
        rendered = ""
        for step in self.steps:
            if isinstance(step, Index):
                rendered += str(step)
            elif rendered:
                rendered += f".{step}"
            else:
                rendered = str(step)
        return rendered


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Position inside the source text; every field is optional.

    ``line`` and ``column`` are 1-based, ``offset`` is a 0-based character
    (or byte, for decoding failures) offset.
    """

    line: int | None = None
    column: int | None = None
    offset: int | None = None

    def __bool__(self) -> bool:
        return self.line is not None or self.offset is not None

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"line {self.line}, column {self.column}"
        if self.line is not None:
            return f"line {self.line}"
        if self.offset is not None:
            return f"offset {self.offset}"
        return "unknown location"


def find_path(value: object, predicate: Callable[[object, object | None], bool]) -> FieldPath | None:
    """Return the path of the first node for which *predicate* holds.

    *predicate* receives ``(node, key)`` where ``key`` is the mapping key that
    led to *node* (``None`` for sequence items and the root). Mapping keys are
    visited before their values.

    Examples
    --------
    >>> find_path({"a": [1, {2: "x"}]}, lambda node, key: key is not None and not isinstance(key, str))
    FieldPath(steps=(Key(name='a'), Index(position=1), Key(name='2')))
    """

    return _walk(value, None, FieldPath(), predicate)


def _walk(
    node: object,
    key: object | None,
    path: FieldPath,
    predicate: Callable[[object, object | None], bool],
) -> FieldPath | None:
    if predicate(node, key):
        return path
    if isinstance(node, Mapping):
        for child_key, child in node.items():
            found = _walk(child, child_key, path.child(Key(str(child_key))), predicate)
            if found is not None:
                return found
    elif isinstance(node, (list, tuple)):
        for position, child in enumerate(node):
            found = _walk(child, None, path.child(Index(position)), predicate)
            if found is not None:
                return found
    return None


__all__ = ["FieldPath", "Index", "Key", "SourceLocation", "Step", "find_path"]
