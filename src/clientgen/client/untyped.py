"""Dynamic values for responses whose schema is ``Untyped``.

When an operation has no usable response schema the client cannot produce a
typed model. The decoded JSON is wrapped in a closed set of node classes
instead, so callers inspect it explicitly::

    node = to_untyped({"numFound": 3, "docs": []})
    if isinstance(node, UntypedObject):
        found = node.try_get_value("numFound")
        if isinstance(found, UntypedInteger):
            print(found.value)

The variants are :class:`UntypedNull`, :class:`UntypedBoolean`,
:class:`UntypedInteger`, :class:`UntypedFloat`, :class:`UntypedString`,
:class:`UntypedArray` and :class:`UntypedObject`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union


@dataclass
class UntypedNull:
    def to_python(self) -> None:
        return None


@dataclass
class UntypedBoolean:
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass
class UntypedInteger:
    value: int

    def to_python(self) -> int:
        return self.value


@dataclass
class UntypedFloat:
    value: float

    def to_python(self) -> float:
        return self.value


@dataclass
class UntypedString:
    value: str

    def to_python(self) -> str:
        return self.value


@dataclass
class UntypedArray:
    items: list[UntypedValue] = field(default_factory=list)

    def __iter__(self) -> Iterator[UntypedValue]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> UntypedValue:
        return self.items[index]

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]


@dataclass
class UntypedObject:
    """A JSON object; property order is the order of the decoded document."""

    properties: dict[str, UntypedValue] = field(default_factory=dict)

    def try_get_value(self, name: str) -> Optional[UntypedValue]:
        """Return the node stored under *name*, or ``None`` if absent."""
        return self.properties.get(name)

    def __getitem__(self, name: str) -> UntypedValue:
        return self.properties[name]

    def __contains__(self, name: object) -> bool:
        return name in self.properties

    def keys(self) -> list[str]:
        return list(self.properties)

    def to_python(self) -> dict[str, Any]:
        return {key: value.to_python() for key, value in self.properties.items()}


UntypedValue = Union[
    UntypedNull,
    UntypedBoolean,
    UntypedInteger,
    UntypedFloat,
    UntypedString,
    UntypedArray,
    UntypedObject,
]


def to_untyped(value: Any) -> UntypedValue:
    """Wrap decoded JSON (``json.loads`` output) in untyped nodes.

    Raises:
        TypeError: For values JSON cannot produce (sets, bytes, objects).
    """
    if value is None:
        return UntypedNull()
    # bool first: it is a subclass of int.
    if isinstance(value, bool):
        return UntypedBoolean(value)
    if isinstance(value, int):
        return UntypedInteger(value)
    if isinstance(value, float):
        return UntypedFloat(value)
    if isinstance(value, str):
        return UntypedString(value)
    if isinstance(value, list):
        return UntypedArray([to_untyped(item) for item in value])
    if isinstance(value, dict):
        return UntypedObject({str(key): to_untyped(item) for key, item in value.items()})
    raise TypeError(f"Cannot represent {type(value).__name__} as an untyped JSON value")
