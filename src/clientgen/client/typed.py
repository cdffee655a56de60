"""Build Pydantic models from object descriptors at runtime.

Generated clients decode typed responses into real Pydantic models so field
access is checked and documented. :class:`ModelFactory` maps descriptors to
Python annotations:

=================  =====================================================
Descriptor         Annotation
=================  =====================================================
string             ``str``
integer            ``int``
number             ``float``
boolean            ``bool``
Array(X)           ``list[X]``
Object             a :func:`pydantic.create_model` class, cached by ref
Enum               ``Literal[...]`` of the declared values
TypeReference      ``Any`` (cyclic schemas stay permissive)
Untyped            ``Any``
=================  =====================================================

A descriptor marked ``nullable`` is wrapped in ``Optional``. Enum values of an
integer, number or boolean enum are read back as those types.

Fields keep their wire names as aliases, so ``numFound`` is read from JSON
and exposed as ``num_found``.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, create_model

from clientgen.client.untyped import to_untyped
from clientgen.generator.naming import sanitize_name, unique_name
from clientgen.models import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TypeDescriptor,
    UntypedType,
)

_PRIMITIVE_TYPES: dict[PrimitiveKind, type] = {
    PrimitiveKind.STRING: str,
    PrimitiveKind.INTEGER: int,
    PrimitiveKind.NUMBER: float,
    PrimitiveKind.BOOLEAN: bool,
}


class ModelFactory:
    """Create (and cache) Pydantic models for object descriptors."""

    def __init__(self) -> None:
        self._models: dict[str, type[BaseModel]] = {}

    def annotation(self, descriptor: TypeDescriptor) -> Any:
        """Return the Python annotation for *descriptor*; nullable types become ``Optional``."""
        annotation = self._annotation(descriptor)
        if getattr(descriptor, "nullable", False):
            return Optional[annotation]
        return annotation

    def _annotation(self, descriptor: TypeDescriptor) -> Any:
        if isinstance(descriptor, PrimitiveType):
            return _PRIMITIVE_TYPES[descriptor.primitive]
        if isinstance(descriptor, ArrayType):
            return list[self.annotation(descriptor.element)]  # type: ignore[misc]
        if isinstance(descriptor, ObjectType):
            return self.model_for(descriptor)
        if isinstance(descriptor, EnumType):
            return Literal[tuple(_enum_literals(descriptor))] if descriptor.values else str
        return Any

    def model_for(self, descriptor: ObjectType) -> type[BaseModel]:
        key = descriptor.ref or descriptor.name
        model = self._models.get(key)
        if model is not None:
            return model

        taken: set[str] = set()
        fields: dict[str, Any] = {}
        for name, field_type in descriptor.properties.items():
            attr = _attribute_name(name, taken)
            annotation = self.annotation(field_type)
            if name in descriptor.required:
                fields[attr] = (annotation, Field(alias=name))
            else:
                fields[attr] = (Optional[annotation], Field(default=None, alias=name))

        model = create_model(
            descriptor.name,
            __config__=ConfigDict(populate_by_name=True, extra="allow"),
            __doc__=descriptor.description,
            **fields,
        )
        self._models[key] = model
        return model

    def decode(self, descriptor: Optional[TypeDescriptor], data: Any) -> Any:
        """Validate decoded JSON *data* against *descriptor*.

        ``Untyped`` (and a missing descriptor) wraps *data* in untyped nodes.

        Raises:
            pydantic.ValidationError: If *data* does not fit the descriptor.
        """
        if descriptor is None or isinstance(descriptor, UntypedType):
            return to_untyped(data)
        if isinstance(descriptor, ObjectType) and not (data is None and descriptor.nullable):
            return self.model_for(descriptor).model_validate(data)
        return TypeAdapter(self.annotation(descriptor)).validate_python(data)


def _attribute_name(name: str, taken: set[str]) -> str:
    attr = sanitize_name(name, "field")
    # Leading underscores are private in Pydantic; BaseModel attributes must not be shadowed.
    if attr.startswith("_"):
        attr = "field" + attr
    if hasattr(BaseModel, attr) or attr.startswith("model_"):
        attr += "_"
    return unique_name(attr, taken, "_")


def _enum_literals(descriptor: EnumType) -> list[Any]:
    """Read stringified enum values back as the JSON type they were declared with."""
    if descriptor.primitive == PrimitiveKind.STRING:
        return list(descriptor.values)
    return [json.loads(value) for value in descriptor.values]
