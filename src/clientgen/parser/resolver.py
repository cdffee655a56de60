"""Resolve ``$ref`` pointers into a flat table of normalized schema nodes.

OpenAPI documents use ``$ref`` pointers (``{"$ref": "#/components/schemas/Pet"}``)
to share schemas. The resolver walks every schema position in the document
and builds a :class:`SchemaTable` that maps each distinct location (a JSON
pointer) to a :class:`SchemaNode`. A ``$ref`` is replaced by the node of its
target, and the same target pointer always yields the **same** node instance,
which is what lets the type synthesizer emit each named type exactly once.

Cycles are broken rather than followed: a ``$ref`` to a pointer that is still
on the resolution stack becomes a :class:`BackReference` marker. References
that cannot be followed (dangling or external) become
:class:`UnresolvedSchema` markers plus a warning diagnostic; they are never
raised. The synthesizer maps both markers onto type descriptors.

Schema positions are visited in document declaration order:

1. ``components/schemas``
2. ``components/parameters``, ``components/requestBodies``,
   ``components/responses``
3. every path item's parameters, request bodies and responses

Structural problems that make the document unusable (``paths`` that is not a
mapping, for example) raise :class:`~clientgen.exceptions.DocumentParseError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union
from urllib.parse import unquote

from clientgen.exceptions import DocumentParseError
from clientgen.models import Diagnostic, HTTPMethod, Severity

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)
_SCHEMAS_PREFIX = "#/components/schemas/"


# ---------------------------------------------------------------------------
# JSON pointers
# ---------------------------------------------------------------------------


class PointerError(LookupError):
    """A JSON pointer does not address anything in the document."""


def escape_token(token: str) -> str:
    """Escape one pointer token per RFC 6901 (``~`` -> ``~0``, ``/`` -> ``~1``)."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join_pointer(pointer: str, *tokens: str | int) -> str:
    """Append escaped *tokens* to *pointer*."""
    parts = [pointer]
    parts.extend(escape_token(str(t)) for t in tokens)
    return "/".join(parts)


def resolve_pointer(document: Any, ref: str) -> Any:
    """Navigate *document* to the value addressed by an internal ``$ref``.

    Args:
        document: The root document.
        ref: A ``#/...`` reference. Percent-encoding in the fragment is
            decoded before the RFC 6901 unescaping.

    Raises:
        PointerError: If the reference is external or any token is missing.
    """
    if not ref.startswith("#"):
        raise PointerError(f"External $ref not supported: {ref}")
    fragment = unquote(ref[1:])
    if fragment in ("", "/"):
        return document
    if not fragment.startswith("/"):
        raise PointerError(f"Malformed $ref: {ref}")

    current: Any = document
    for raw_token in fragment[1:].split("/"):
        token = unescape_token(raw_token)
        if isinstance(current, dict):
            if token not in current:
                raise PointerError(f"Cannot resolve $ref '{ref}': key '{token}' not found")
            current = current[token]
        elif isinstance(current, list):
            try:
                current = current[int(token)]
            except (ValueError, IndexError) as exc:
                raise PointerError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{token}'"
                ) from exc
        else:
            raise PointerError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )
    return current


def canonical_pointer(ref: str) -> str:
    """Normalize a ``$ref`` string into the pointer form used as table key."""
    return "#" + unquote(ref[1:]).rstrip("/")


def deref(document: dict[str, Any], obj: Any, pointer: str) -> Optional[tuple[str, Any]]:
    """Follow a chain of ``$ref`` objects (parameters, responses, bodies).

    Returns:
        ``(pointer, value)`` of the first non-reference object, or ``None``
        when the chain is dangling, external or circular.
    """
    seen: set[str] = set()
    while isinstance(obj, dict) and "$ref" in obj:
        ref = obj["$ref"]
        if not isinstance(ref, str):
            return None
        target = canonical_pointer(ref) if ref.startswith("#") else ref
        if target in seen:
            return None
        seen.add(target)
        try:
            obj = resolve_pointer(document, ref)
        except PointerError:
            return None
        pointer = target
    return pointer, obj


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaRef:
    """Identity of a schema location: source document plus JSON pointer."""

    document: str
    pointer: str

    @property
    def name(self) -> Optional[str]:
        """Component name when the pointer addresses ``#/components/schemas/<name>``."""
        if self.pointer.startswith(_SCHEMAS_PREFIX):
            rest = self.pointer[len(_SCHEMAS_PREFIX):]
            if "/" not in rest:
                return unescape_token(rest)
        return None


@dataclass(eq=False)
class SchemaNode:
    """A schema with every nested ``$ref`` replaced by its resolved node."""

    ref: SchemaRef
    raw: dict[str, Any]
    properties: dict[str, SchemaLike] = field(default_factory=dict)
    items: Optional[SchemaLike] = None
    all_of: list[SchemaLike] = field(default_factory=list)
    one_of: list[SchemaLike] = field(default_factory=list)
    any_of: list[SchemaLike] = field(default_factory=list)
    additional_properties: Optional[SchemaLike] = None

    @property
    def name(self) -> Optional[str]:
        return self.ref.name

    @property
    def pointer(self) -> str:
        return self.ref.pointer

    @property
    def is_empty(self) -> bool:
        return not self.raw


@dataclass(eq=False)
class BackReference:
    """Marker for a ``$ref`` that points back into a schema still being resolved."""

    target: SchemaRef

    @property
    def name(self) -> Optional[str]:
        return self.target.name


@dataclass(eq=False)
class UnresolvedSchema:
    """Marker for a ``$ref`` that could not be followed."""

    ref: SchemaRef
    target: str
    reason: str


SchemaLike = Union[SchemaNode, BackReference, UnresolvedSchema]


@dataclass
class SchemaTable:
    """Every schema location of one document, mapped to its resolved node.

    ``named`` lists the pointers of ``components/schemas`` entries in
    declaration order; it drives the order in which named types are emitted.
    """

    source: str
    document: dict[str, Any]
    nodes: dict[str, SchemaLike] = field(default_factory=dict)
    named: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def get(self, pointer: str) -> Optional[SchemaLike]:
        """Return the node at *pointer*, or ``None`` when no schema is declared there."""
        return self.nodes.get(pointer)

    def named_nodes(self) -> Iterator[tuple[str, SchemaLike]]:
        for pointer in self.named:
            yield pointer, self.nodes[pointer]

    def deref(self, obj: Any, pointer: str) -> Optional[tuple[str, Any]]:
        return deref(self.document, obj, pointer)

    def __len__(self) -> int:
        return len(self.nodes)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class SchemaResolver:
    """Build a :class:`SchemaTable` for one document.

    The resolver is single-use: create one per generation run.

    Args:
        document: The parsed OpenAPI document.
        source: Name of the document (file path or URL) recorded in every
            :class:`SchemaRef`.

    Example::

        table = SchemaResolver(document, "openapi.yaml").resolve()
        node = table.get("#/components/schemas/SearchResponse")
    """

    def __init__(self, document: dict[str, Any], source: str = "<document>") -> None:
        self._document = document
        self._table = SchemaTable(source=source, document=document)
        self._stack: list[str] = []

    def resolve(self) -> SchemaTable:
        """Walk all schema positions and return the completed table.

        Raises:
            DocumentParseError: If ``paths``, ``components`` or one of their
                sections is not a mapping.
        """
        components = _mapping_at(self._document, "components", "#/components")
        schemas = _mapping_at(components, "schemas", "#/components/schemas")
        for name, raw in schemas.items():
            pointer = join_pointer("#/components/schemas", name)
            self._table.named.append(pointer)
            self._resolve_at(pointer, raw)

        for name, raw in _mapping_at(components, "parameters", "#/components/parameters").items():
            self._walk_parameter(raw, join_pointer("#/components/parameters", name))
        for name, raw in _mapping_at(
            components, "requestBodies", "#/components/requestBodies"
        ).items():
            self._walk_body(raw, join_pointer("#/components/requestBodies", name))
        for name, raw in _mapping_at(components, "responses", "#/components/responses").items():
            self._walk_body(raw, join_pointer("#/components/responses", name))

        for path, item in _mapping_at(self._document, "paths", "#/paths").items():
            self._walk_path_item(item, join_pointer("#/paths", path))

        return self._table

    # -- walkers ------------------------------------------------------------

    def _walk_path_item(self, item: Any, pointer: str) -> None:
        target = self._follow(item, pointer)
        if target is None:
            return
        pointer, item = target
        if not isinstance(item, dict):
            raise DocumentParseError("Path item must be an object", pointer=pointer)

        for index, param in enumerate(_list_at(item, "parameters", pointer)):
            self._walk_parameter(param, join_pointer(pointer, "parameters", index))

        for method, operation in item.items():
            if method not in _HTTP_METHODS:
                continue
            op_pointer = join_pointer(pointer, method)
            if not isinstance(operation, dict):
                raise DocumentParseError("Operation must be an object", pointer=op_pointer)
            for index, param in enumerate(_list_at(operation, "parameters", op_pointer)):
                self._walk_parameter(param, join_pointer(op_pointer, "parameters", index))
            if "requestBody" in operation:
                self._walk_body(operation["requestBody"], join_pointer(op_pointer, "requestBody"))
            responses = _mapping_at(operation, "responses", join_pointer(op_pointer, "responses"))
            for status, response in responses.items():
                self._walk_body(response, join_pointer(op_pointer, "responses", status))

    def _walk_parameter(self, param: Any, pointer: str) -> None:
        target = self._follow(param, pointer)
        if target is None:
            return
        pointer, param = target
        if not isinstance(param, dict):
            return
        if "schema" in param:
            self._resolve_at(join_pointer(pointer, "schema"), param["schema"])
        self._walk_content(param.get("content"), join_pointer(pointer, "content"))

    def _walk_body(self, body: Any, pointer: str) -> None:
        """Walk a request body or response object."""
        target = self._follow(body, pointer)
        if target is None:
            return
        pointer, body = target
        if isinstance(body, dict):
            self._walk_content(body.get("content"), join_pointer(pointer, "content"))

    def _walk_content(self, content: Any, pointer: str) -> None:
        if not isinstance(content, dict):
            return
        for media_type, media in content.items():
            if isinstance(media, dict) and "schema" in media:
                self._resolve_at(join_pointer(pointer, media_type, "schema"), media["schema"])

    def _follow(self, obj: Any, pointer: str) -> Optional[tuple[str, Any]]:
        """Dereference a non-schema object, recording a warning when it dangles."""
        target = self._table.deref(obj, pointer)
        if target is None:
            self._warn(
                "unresolved-ref",
                f"Cannot resolve reference {obj.get('$ref')!r}",
                pointer,
            )
        return target

    # -- schemas ------------------------------------------------------------

    def _resolve_at(
        self,
        pointer: str,
        raw: Any,
        aliases: tuple[str, ...] = (),
    ) -> SchemaLike:
        """Resolve the schema *raw* found at *pointer*, memoized by pointer.

        *aliases* holds the pointers of ``$ref``-only schemas traversed to
        get here, so that a chain of references without content in between
        is reported instead of being turned into a self-loop.
        """
        existing = self._table.nodes.get(pointer)
        if existing is not None:
            return existing
        if pointer in self._stack:
            return BackReference(target=self._ref(pointer))

        if isinstance(raw, dict) and "$ref" in raw:
            node = self._resolve_reference(pointer, raw["$ref"], aliases)
        else:
            node = self._build_node(pointer, raw)
        self._table.nodes[pointer] = node
        return node

    def _resolve_reference(
        self, pointer: str, ref: Any, aliases: tuple[str, ...]
    ) -> SchemaLike:
        if not isinstance(ref, str):
            return self._unresolved(pointer, repr(ref), "$ref must be a string")
        if not ref.startswith("#"):
            return self._unresolved(pointer, ref, "external references are not supported")

        target = canonical_pointer(ref)
        if target == pointer or target in aliases:
            return self._unresolved(pointer, ref, "circular $ref alias")
        try:
            target_raw = resolve_pointer(self._document, ref)
        except PointerError as exc:
            return self._unresolved(pointer, ref, str(exc))
        return self._resolve_at(target, target_raw, aliases + (pointer,))

    def _build_node(self, pointer: str, raw: Any) -> SchemaNode:
        # null, true and false schemas carry no shape.
        node = SchemaNode(ref=self._ref(pointer), raw=raw if isinstance(raw, dict) else {})
        raw = node.raw

        self._stack.append(pointer)
        try:
            properties = raw.get("properties")
            if isinstance(properties, dict):
                for name, prop in properties.items():
                    node.properties[name] = self._resolve_at(
                        join_pointer(pointer, "properties", name), prop
                    )
            if isinstance(raw.get("items"), dict):
                node.items = self._resolve_at(join_pointer(pointer, "items"), raw["items"])
            for keyword, target in (
                ("allOf", node.all_of),
                ("oneOf", node.one_of),
                ("anyOf", node.any_of),
            ):
                members = raw.get(keyword)
                if isinstance(members, list):
                    for index, member in enumerate(members):
                        target.append(
                            self._resolve_at(join_pointer(pointer, keyword, index), member)
                        )
            if isinstance(raw.get("additionalProperties"), dict):
                node.additional_properties = self._resolve_at(
                    join_pointer(pointer, "additionalProperties"), raw["additionalProperties"]
                )
        finally:
            self._stack.pop()
        return node

    # -- helpers ------------------------------------------------------------

    def _ref(self, pointer: str) -> SchemaRef:
        return SchemaRef(document=self._table.source, pointer=pointer)

    def _unresolved(self, pointer: str, target: str, reason: str) -> UnresolvedSchema:
        self._warn("unresolved-ref", f"Cannot resolve $ref {target!r}: {reason}", pointer)
        return UnresolvedSchema(ref=self._ref(pointer), target=target, reason=reason)

    def _warn(self, code: str, message: str, pointer: str) -> None:
        self._table.diagnostics.append(
            Diagnostic(severity=Severity.WARNING, code=code, message=message, pointer=pointer)
        )


def _mapping_at(parent: dict[str, Any], key: str, pointer: str) -> dict[str, Any]:
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DocumentParseError(
            f"'{key}' must be an object (got {type(value).__name__})", pointer=pointer
        )
    return value


def _list_at(parent: dict[str, Any], key: str, pointer: str) -> list[Any]:
    value = parent.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DocumentParseError(
            f"'{key}' must be an array (got {type(value).__name__})",
            pointer=join_pointer(pointer, key),
        )
    return value


def resolve_schemas(document: dict[str, Any], source: str = "<document>") -> SchemaTable:
    """Convenience wrapper: ``SchemaResolver(document, source).resolve()``."""
    return SchemaResolver(document, source).resolve()
