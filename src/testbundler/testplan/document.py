"""Typed JSON tree for .xctestplan documents.

Values are wrapped in tagged node classes so that reading a field of
the wrong shape fails with a DocumentError naming the path, instead
of an AttributeError deep inside an edit.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from testbundler.core.errors import DocumentError


class Node:
    """Base class of every tree node."""

    path: str = "$"

    def to_python(self) -> Any:
        raise NotImplementedError

    def _expect(self, kind: type[Node]) -> Node:
        if not isinstance(self, kind):
            raise DocumentError(
                f"{self.path}: expected {kind.kind_name}, "
                f"found {self.kind_name}"
            )
        return self

    kind_name = "value"


@dataclass
class Null(Node):
    path: str = "$"
    kind_name = "null"

    def to_python(self) -> Any:
        return None


@dataclass
class Bool(Node):
    value: bool
    path: str = "$"
    kind_name = "bool"

    def to_python(self) -> Any:
        return self.value


@dataclass
class Number(Node):
    value: int | float
    path: str = "$"
    kind_name = "number"

    def to_python(self) -> Any:
        return self.value


@dataclass
class String(Node):
    value: str
    path: str = "$"
    kind_name = "string"

    def to_python(self) -> Any:
        return self.value


@dataclass
class Array(Node):
    items: list[Node] = field(default_factory=list)
    path: str = "$"
    kind_name = "array"

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def append(self, value: Any) -> None:
        self.items.append(wrap(value, f"{self.path}[{len(self.items)}]"))


@dataclass
class Object(Node):
    """JSON object. Key order is kept as read."""

    members: dict[str, Node] = field(default_factory=dict)
    path: str = "$"
    kind_name = "object"

    def to_python(self) -> Any:
        return {key: value.to_python() for key, value in self.members.items()}

    def __contains__(self, key: str) -> bool:
        return key in self.members

    def get(self, key: str) -> Node:
        try:
            return self.members[key]
        except KeyError:
            raise DocumentError(f"{self.path}: {key} not found") from None

    def get_object(self, key: str) -> Object:
        return self.get(key)._expect(Object)

    def get_array(self, key: str) -> Array:
        return self.get(key)._expect(Array)

    def get_string(self, key: str) -> str:
        return self.get(key)._expect(String).value

    def set(self, key: str, value: Any) -> None:
        self.members[key] = wrap(value, f"{self.path}.{key}")


def wrap(value: Any, path: str = "$") -> Node:
    """Build a tree from plain Python values (as json.loads returns)."""
    if isinstance(value, Node):
        value.path = path
        return value
    if value is None:
        return Null(path=path)
    if isinstance(value, bool):
        return Bool(value, path=path)
    if isinstance(value, (int, float)):
        return Number(value, path=path)
    if isinstance(value, str):
        return String(value, path=path)
    if isinstance(value, list):
        return Array(
            [wrap(item, f"{path}[{i}]") for i, item in enumerate(value)],
            path=path,
        )
    if isinstance(value, dict):
        return Object(
            {key: wrap(item, f"{path}.{key}") for key, item in value.items()},
            path=path,
        )
    raise DocumentError(f"{path}: unsupported value {type(value).__name__}")


def loads(text: str) -> Object:
    """Parse a document whose root must be an object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"invalid JSON: {e}") from e
    return wrap(data)._expect(Object)


def dumps(document: Node) -> str:
    """Serialize the way Xcode writes test plans.

    Two-space indent, `" : "` separators and escaped slashes.
    """
    text = json.dumps(
        document.to_python(),
        indent=2,
        separators=(",", " : "),
        ensure_ascii=False,
    )
    # A slash can only occur inside a JSON string
    return text.replace("/", "\\/") + "\n"
