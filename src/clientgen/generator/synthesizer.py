"""Map resolved schema nodes onto type descriptors.

The synthesizer is the single place that decides whether a schema becomes a
typed model or an ``Untyped`` dynamic value. The policy is applied in order:

1. absent, ``null``, ``{}``, ``true`` or unresolvable schema -- ``Untyped``
2. back-reference (cycle) -- :class:`~clientgen.models.TypeReference`
3. ``allOf`` -- field union of the members, later members win on a name
   collision, own ``properties`` merged last, ``required`` is the union
4. ``oneOf`` / ``anyOf`` -- ``Untyped`` unless every branch has the same
   object shape
5. ``properties`` with ``type: object`` or no type -- ``Object``
6. ``type: array`` -- ``Array``; a missing ``items`` gives ``Array(Untyped)``
7. ``enum`` -- ``Enum`` with the values stringified in declared order
8. ``string``/``integer``/``number``/``boolean`` -- ``Primitive``
9. anything else (free-form objects, description-only schemas) -- ``Untyped``

``nullable: true`` and a 3.1 ``"null"`` type mark the descriptor
``nullable`` without changing its tag.

Every node is synthesized at most once: results are cached by JSON pointer,
so the same pointer always yields the same descriptor instance. Named
objects and enums are registered in a :class:`TypeRegistry`, which is also
how a :class:`~clientgen.models.TypeReference` is resolved back to its
target.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Optional, Union

from clientgen.generator.naming import pascal_case, unique_name
from clientgen.models import (
    UNTYPED,
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TypeDescriptor,
    TypeReference,
)
from clientgen.parser.resolver import (
    BackReference,
    SchemaLike,
    SchemaNode,
    SchemaTable,
    UnresolvedSchema,
)


_PRIMITIVES = frozenset(k.value for k in PrimitiveKind)
_NULLABLE_TYPES = (PrimitiveType, ArrayType, ObjectType, EnumType)

NamedType = Union[ObjectType, EnumType]


class TypeRegistry:
    """Named object and enum types, keyed by the pointer they were built from.

    Component schemas hold their slot from the start, so iteration follows
    their declaration order; inline types follow in the order they were
    first synthesized.
    """

    def __init__(self) -> None:
        self._order: list[str] = []
        self._types: dict[str, NamedType] = {}

    def reserve(self, pointer: str) -> None:
        if pointer not in self._order:
            self._order.append(pointer)

    def register(self, descriptor: NamedType) -> None:
        assert descriptor.ref is not None
        self.reserve(descriptor.ref)
        self._types[descriptor.ref] = descriptor

    def get(self, pointer: str) -> Optional[NamedType]:
        return self._types.get(pointer)

    def resolve(self, reference: TypeReference | str) -> NamedType:
        """Return the named type a back-reference points at.

        Raises:
            KeyError: If nothing was registered under the reference.
        """
        pointer = reference if isinstance(reference, str) else reference.ref
        try:
            return self._types[pointer]
        except KeyError:
            raise KeyError(f"No type registered for {pointer}") from None

    def __iter__(self) -> Iterator[NamedType]:
        for pointer in self._order:
            descriptor = self._types.get(pointer)
            if descriptor is not None:
                yield descriptor

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, pointer: object) -> bool:
        return pointer in self._types


class TypeSynthesizer:
    """Turn the nodes of one :class:`SchemaTable` into type descriptors.

    Args:
        table: The resolved schema table of the document.

    Example::

        synth = TypeSynthesizer(table)
        synth.synthesize_components()
        search = synth.synthesize_pointer("#/components/schemas/SearchResponse")
    """

    def __init__(self, table: SchemaTable) -> None:
        self._table = table
        self.registry = TypeRegistry()
        self._cache: dict[str, TypeDescriptor] = {}
        self._names: dict[str, str] = {}
        self._taken: set[str] = set()
        # Pointers whose descriptor is being built, and pending bases being expanded.
        self._active: set[str] = set()
        self._expanding: set[str] = set()

        for pointer, node in table.named_nodes():
            # Aliases (``B: {$ref: A}``) share their target's node and name.
            if isinstance(node, SchemaNode) and node.pointer == pointer and node.name:
                self._names[pointer] = unique_name(pascal_case(node.name), self._taken)
                self.registry.reserve(pointer)

    # -- public API ---------------------------------------------------------

    def synthesize_components(self) -> TypeRegistry:
        """Synthesize every ``components/schemas`` entry in declaration order."""
        for pointer, node in self._table.named_nodes():
            self.synthesize(node, hint=pascal_case(pointer.rsplit("/", 1)[-1]))
        return self.registry

    def synthesize_pointer(self, pointer: str, hint: str = "Model") -> TypeDescriptor:
        """Synthesize the schema declared at *pointer*; absent means ``Untyped``."""
        return self.synthesize(self._table.get(pointer), hint)

    def synthesize(self, node: Optional[SchemaLike], hint: str = "Model") -> TypeDescriptor:
        """Return the descriptor for *node*.

        Args:
            node: A resolved node, a cycle or unresolved marker, or ``None``
                for an absent schema.
            hint: Name source for inline objects and enums, e.g.
                ``"SearchResponseDocs"``.
        """
        if node is None or isinstance(node, UnresolvedSchema):
            return UNTYPED
        if isinstance(node, BackReference):
            pointer = node.target.pointer
            name = self._names.get(pointer) or pascal_case(node.target.name or hint)
            return TypeReference(ref=pointer, name=name)

        cached = self._cache.get(node.pointer)
        if cached is not None:
            return cached

        if node.pointer in self._active:
            return TypeReference(ref=node.pointer, name=self._name_for(node, hint))

        self._active.add(node.pointer)
        try:
            descriptor = self._build(node, hint)
        finally:
            self._active.discard(node.pointer)
        self._cache[node.pointer] = descriptor
        if isinstance(descriptor, (ObjectType, EnumType)) and descriptor.ref == node.pointer:
            self.registry.register(descriptor)
        return descriptor

    # -- policy -------------------------------------------------------------

    def _build(self, node: SchemaNode, hint: str) -> TypeDescriptor:
        descriptor = self._build_type(node, hint)
        if _admits_null(node.raw) and isinstance(descriptor, _NULLABLE_TYPES):
            descriptor = descriptor.model_copy(update={"nullable": True})
        return descriptor

    def _build_type(self, node: SchemaNode, hint: str) -> TypeDescriptor:
        raw = node.raw
        if not raw:
            return UNTYPED
        if node.all_of:
            return self._all_of(node, hint)
        if node.one_of or node.any_of:
            return self._union(node, hint)

        schema_type = _schema_type(raw)
        if node.properties and schema_type in (None, "object"):
            name = self._name_for(node, hint)
            properties, required = self._object_fields(node, name)
            return ObjectType(
                name=name,
                ref=node.pointer,
                description=raw.get("description"),
                properties=properties,
                required=required,
            )

        if schema_type == "array":
            element = self.synthesize(node.items, f"{hint}Item") if node.items else UNTYPED
            return ArrayType(element=element)

        values = raw.get("enum")
        if isinstance(values, list) and any(v is not None for v in values):
            declared = [v for v in values if v is not None]
            return EnumType(
                name=self._name_for(node, hint),
                ref=node.pointer,
                description=raw.get("description"),
                values=[_stringify(v) for v in declared],
                primitive=_enum_kind(declared),
            )

        if schema_type in _PRIMITIVES:
            fmt = raw.get("format")
            return PrimitiveType(
                primitive=PrimitiveKind(schema_type),
                format=fmt if isinstance(fmt, str) else None,
            )

        return UNTYPED

    def _all_of(self, node: SchemaNode, hint: str) -> TypeDescriptor:
        members = node.all_of
        if len(members) == 1 and not node.properties:
            single = self.synthesize(members[0], hint)
            # ``allOf: [{$ref: X}]`` decorating a property passes X through.
            if not isinstance(single, ObjectType) or node.name is None:
                return single

        # The name is only reserved once the merge yields fields.
        owner = self._names.get(node.pointer) or pascal_case(node.name or hint)
        properties, required = self._merged_fields(node, owner)
        if not properties:
            return UNTYPED
        return ObjectType(
            name=self._name_for(node, hint),
            ref=node.pointer,
            description=node.raw.get("description"),
            properties=properties,
            required=required,
        )

    def _union(self, node: SchemaNode, hint: str) -> TypeDescriptor:
        branches = node.one_of or node.any_of
        shapes = [self._shape(branch, f"{hint}Option") for branch in branches]
        if any(shape is None for shape in shapes):
            return UNTYPED

        first = shapes[0]
        assert first is not None
        if not all(first.same_shape(shape) for shape in shapes[1:] if shape is not None):
            return UNTYPED
        if all(shape is first for shape in shapes):
            return first

        name = self._name_for(node, hint)
        return ObjectType(
            name=name,
            ref=node.pointer,
            description=node.raw.get("description") or first.description,
            properties=dict(first.properties),
            required=list(first.required),
        )

    # -- helpers ------------------------------------------------------------

    def _shape(self, member: SchemaLike, owner: str) -> Optional[ObjectType]:
        """Return the object shape *member* contributes, or ``None`` if it is not an object.

        Inline object members are read without being registered as models of
        their own.
        """
        if (
            isinstance(member, SchemaNode)
            and member.name is None
            and not member.all_of
            and not member.one_of
            and not member.any_of
            and member.properties
            and _schema_type(member.raw) in (None, "object")
        ):
            properties, required = self._object_fields(member, owner)
            return ObjectType(
                name=owner,
                ref=member.pointer,
                description=member.raw.get("description"),
                properties=properties,
                required=required,
            )

        descriptor = self.synthesize(member, owner)
        if isinstance(descriptor, TypeReference):
            target = self.registry.get(descriptor.ref)
            if target is None:
                return self._pending_shape(descriptor)
            return target if isinstance(target, ObjectType) else None
        return descriptor if isinstance(descriptor, ObjectType) else None

    def _pending_shape(self, reference: TypeReference) -> Optional[ObjectType]:
        """Expand a referenced type that is still being built from its schema node.

        Happens when ``Derived: allOf[$ref Base]`` is reached from inside
        ``Base`` itself (``Base.child: $ref Derived``).
        """
        node = self._table.get(reference.ref)
        if not isinstance(node, SchemaNode) or node.pointer in self._expanding:
            return None

        self._expanding.add(node.pointer)
        try:
            if node.all_of:
                properties, required = self._merged_fields(node, reference.name)
            elif node.properties and _schema_type(node.raw) in (None, "object"):
                properties, required = self._object_fields(node, reference.name)
            else:
                return None
        finally:
            self._expanding.discard(node.pointer)

        if not properties:
            return None
        return ObjectType(
            name=reference.name,
            ref=reference.ref,
            description=node.raw.get("description"),
            properties=properties,
            required=required,
        )

    def _merged_fields(
        self, node: SchemaNode, owner: str
    ) -> tuple[dict[str, TypeDescriptor], list[str]]:
        properties: dict[str, TypeDescriptor] = {}
        required: list[str] = []
        for member in node.all_of:
            shape = self._shape(member, owner)
            if shape is None:
                continue
            properties.update(shape.properties)
            required.extend(r for r in shape.required if r not in required)

        own_properties, own_required = self._object_fields(node, owner)
        properties.update(own_properties)
        required.extend(r for r in own_required if r not in required)
        return properties, [p for p in properties if p in required]

    def _object_fields(
        self, node: SchemaNode, owner: str
    ) -> tuple[dict[str, TypeDescriptor], list[str]]:
        properties = {
            name: self.synthesize(prop, owner + pascal_case(name, "Field"))
            for name, prop in node.properties.items()
        }
        declared = node.raw.get("required")
        wanted = {r for r in declared if isinstance(r, str)} if isinstance(declared, list) else set()
        return properties, [name for name in properties if name in wanted]

    def _name_for(self, node: SchemaNode, hint: str) -> str:
        name = self._names.get(node.pointer)
        if name is None:
            base = pascal_case(node.name) if node.name else pascal_case(hint)
            name = unique_name(base, self._taken)
            self._names[node.pointer] = name
        return name


def _schema_type(raw: dict[str, Any]) -> Optional[str]:
    """Return the schema's ``type``; 3.1 type arrays yield their first non-null entry."""
    value = raw.get("type")
    if isinstance(value, list):
        non_null = [t for t in value if isinstance(t, str) and t != "null"]
        return non_null[0] if non_null else None
    return value if isinstance(value, str) else None


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _admits_null(raw: dict[str, Any]) -> bool:
    """``nullable: true`` (3.0), ``"null"`` in a type array (3.1) or a ``null`` enum value."""
    if raw.get("nullable") is True:
        return True
    value = raw.get("type")
    if value == "null" or (isinstance(value, list) and "null" in value):
        return True
    values = raw.get("enum")
    return isinstance(values, list) and None in values


def _enum_kind(values: list[Any]) -> PrimitiveKind:
    if all(isinstance(v, bool) for v in values):
        return PrimitiveKind.BOOLEAN
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return PrimitiveKind.INTEGER
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return PrimitiveKind.NUMBER
    return PrimitiveKind.STRING
