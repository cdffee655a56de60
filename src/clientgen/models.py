"""Canonical Pydantic models shared across all clientgen modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration models** -- read from settings files, the environment and CLI
flags:
    :class:`ClientSettings` and :class:`GeneratorConfig`.

**Type descriptors** -- produced by the type synthesizer, one per schema:
    :class:`PrimitiveType`, :class:`ArrayType`, :class:`ObjectType`,
    :class:`EnumType`, :class:`UntypedType` and :class:`TypeReference`,
    joined in the :data:`TypeDescriptor` tagged union.

**Binding models** -- produced by the operation binder and the tree
assembler:
    :class:`ParameterBinding`, :class:`ResponseBinding`,
    :class:`OperationDescriptor` and :class:`PathSegment`.

**Emission models** -- the artifact set handed to a renderer:
    :class:`FieldUnit`, :class:`ModelUnit`, :class:`ParameterUnit`,
    :class:`OperationUnit`, :class:`BuilderUnit`, :class:`ArtifactSet`,
    plus :class:`Diagnostic` which travels alongside every result.

All models use Pydantic v2. Every collection whose order reaches the output
is a ``list`` or an insertion-ordered ``dict`` filled in document order, so
serialising a model twice yields the same bytes.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class ClientSettings(BaseModel):
    """Settings for a generated client's transport and authentication.

    Mirrors the ``OpenApi`` section of a settings file. Keys are accepted in
    camelCase (``baseUrl``, ``timeoutSeconds``) as well as by field name.

    Example::

        ClientSettings.model_validate(
            {"baseUrl": "https://api.example.com", "timeoutSeconds": 60}
        )
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: str = Field(
        default="https://openlibrary.org", alias="baseUrl", description="API base URL"
    )
    timeout_seconds: int = Field(
        default=30, alias="timeoutSeconds", ge=0, description="Request timeout in seconds"
    )
    max_retries: int = Field(
        default=3, alias="maxRetries", ge=0, description="Connection retry attempts"
    )
    custom_headers: dict[str, str] = Field(
        default_factory=dict,
        alias="customHeaders",
        description="Headers added to every request",
    )
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_key_header: str = Field(default="X-API-Key", alias="apiKeyHeader")
    bearer_token: Optional[str] = Field(default=None, alias="bearerToken")


class GeneratorConfig(BaseModel):
    """Generator options, read from ``./clientgen.json`` and overridable by flags."""

    client_name: str = Field(default="ApiClient", description="Root builder class name")
    namespace: str = Field(default="api_client", description="Target package/namespace")
    output: str = Field(default="client.json", description="Artifact manifest path")
    include_deprecated: bool = Field(
        default=True, description="Emit operations marked deprecated"
    )
    strict: bool = Field(
        default=False, description="Fail the run when any operation is dropped"
    )


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class PrimitiveKind(str, enum.Enum):
    """Scalar JSON Schema types."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class Severity(str, enum.Enum):
    WARNING = "warning"
    ERROR = "error"


class SegmentKind(str, enum.Enum):
    """Kinds of request-builder tree nodes."""

    ROOT = "root"
    LITERAL = "literal"
    TEMPLATE = "template"


# --- Type descriptors ---


class PrimitiveType(BaseModel):
    """A scalar. ``format`` (``int64``, ``date-time``) refines but never retags."""

    kind: Literal["primitive"] = "primitive"
    primitive: PrimitiveKind
    format: Optional[str] = None
    nullable: bool = False


class ArrayType(BaseModel):
    kind: Literal["array"] = "array"
    element: TypeDescriptor
    nullable: bool = False


class ObjectType(BaseModel):
    """An object with an ordered field list.

    ``ref`` is the JSON pointer of the schema this type was built from.
    Inline objects get a ``name`` derived from their context
    (``SearchResponseDocsItem``).
    """

    kind: Literal["object"] = "object"
    name: str
    ref: Optional[str] = None
    description: Optional[str] = None
    properties: dict[str, TypeDescriptor] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    nullable: bool = False

    def same_shape(self, other: ObjectType) -> bool:
        """Return ``True`` when *other* has the same fields and required set."""
        return self.properties == other.properties and set(self.required) == set(
            other.required
        )


class EnumType(BaseModel):
    """An enumeration; ``values`` keep their declared order.

    Values are stored as text. ``primitive`` records the JSON type they were
    declared with, so ``["1", "2"]`` from ``enum: [1, 2]`` reads back as integers.
    """

    kind: Literal["enum"] = "enum"
    name: str
    ref: Optional[str] = None
    description: Optional[str] = None
    values: list[str] = Field(default_factory=list)
    primitive: PrimitiveKind = PrimitiveKind.STRING
    nullable: bool = False


class UntypedType(BaseModel):
    """No usable schema: consumers fall back to a dynamic untyped value."""

    kind: Literal["untyped"] = "untyped"


class TypeReference(BaseModel):
    """Back-reference to a named type whose expansion is still in progress.

    Produced for self-referential and mutually recursive schemas. Resolve it
    with :meth:`clientgen.generator.synthesizer.TypeRegistry.resolve`.
    """

    kind: Literal["reference"] = "reference"
    ref: str
    name: str


TypeDescriptor = Annotated[
    Union[PrimitiveType, ArrayType, ObjectType, EnumType, UntypedType, TypeReference],
    Field(discriminator="kind"),
]
"""Tagged union over every type descriptor, discriminated by ``kind``."""

ArrayType.model_rebuild()
ObjectType.model_rebuild()

UNTYPED = UntypedType()
"""Shared ``Untyped`` instance."""


# --- Diagnostics ---


class Diagnostic(BaseModel):
    """A non-fatal problem found during generation."""

    severity: Severity = Severity.WARNING
    code: str
    message: str
    pointer: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None


# --- Bindings ---


class ParameterBinding(BaseModel):
    """A single parameter bound to its type descriptor."""

    name: str
    location: ParameterLocation
    type: TypeDescriptor = Field(default_factory=UntypedType)
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False


class ResponseBinding(BaseModel):
    """One declared response. ``type`` is ``None`` when it carries no body."""

    status_code: str
    description: Optional[str] = None
    content_type: Optional[str] = None
    type: Optional[TypeDescriptor] = None


class OperationDescriptor(BaseModel):
    """One (path, method) pair with every binding resolved."""

    path: str
    method: HTTPMethod
    pointer: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False
    parameters: list[ParameterBinding] = Field(default_factory=list)
    request_body: Optional[TypeDescriptor] = None
    request_body_required: bool = False
    request_content_type: Optional[str] = None
    responses: dict[str, ResponseBinding] = Field(default_factory=dict)
    primary_status: Optional[str] = None
    primary_response: Optional[TypeDescriptor] = None

    def parameters_in(self, location: ParameterLocation) -> list[ParameterBinding]:
        """Return the bindings at *location*, in declaration order."""
        return [p for p in self.parameters if p.location == location]

    @property
    def returns_untyped(self) -> bool:
        return isinstance(self.primary_response, UntypedType)


class PathSegment(BaseModel):
    """A node in the request-builder tree.

    ``children`` keep document declaration order. ``operations`` are the
    methods available at exactly this path.
    """

    segment: str
    kind: SegmentKind
    path: str
    parameters: list[str] = Field(default_factory=list)
    accessor: str = ""
    builder_name: str = ""
    children: list[PathSegment] = Field(default_factory=list)
    operations: list[OperationDescriptor] = Field(default_factory=list)

    @property
    def is_template(self) -> bool:
        return self.kind == SegmentKind.TEMPLATE

    def child(self, segment: str) -> Optional[PathSegment]:
        """Return the direct child whose raw segment text equals *segment*."""
        for node in self.children:
            if node.segment == segment:
                return node
        return None

    def templated_child(self) -> Optional[PathSegment]:
        for node in self.children:
            if node.is_template:
                return node
        return None

    def find(self, path: str) -> Optional[PathSegment]:
        """Look up a descendant by path, e.g. ``"authors/{olid}"``."""
        node: Optional[PathSegment] = self
        for part in (p for p in path.split("/") if p):
            assert node is not None
            node = node.child(part)
            if node is None:
                return None
        return node

    def operation(self, method: HTTPMethod | str) -> Optional[OperationDescriptor]:
        wanted = HTTPMethod(method.lower() if isinstance(method, str) else method)
        for op in self.operations:
            if op.method == wanted:
                return op
        return None

    def walk(self) -> Iterator[PathSegment]:
        """Yield this node and its descendants in pre-order."""
        yield self
        for node in self.children:
            yield from node.walk()


# --- Emission artifacts ---


class FieldUnit(BaseModel):
    name: str
    python_name: str
    type_expr: str
    required: bool = False


class ModelUnit(BaseModel):
    """One emitted model: a named object or enumeration."""

    name: str
    kind: Literal["object", "enum"]
    ref: Optional[str] = None
    description: Optional[str] = None
    fields: list[FieldUnit] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)


class ParameterUnit(BaseModel):
    name: str
    python_name: str
    location: ParameterLocation
    type_expr: str
    required: bool = False


class OperationUnit(BaseModel):
    """One invocable method on a builder."""

    method: HTTPMethod
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    deprecated: bool = False
    parameters: list[ParameterUnit] = Field(default_factory=list)
    request_body: Optional[str] = None
    request_content_type: Optional[str] = None
    returns: Optional[str] = None
    returns_untyped: bool = False
    responses: dict[str, Optional[str]] = Field(default_factory=dict)


class BuilderUnit(BaseModel):
    """One navigation node of the generated client."""

    class_name: str
    path: str
    accessor: str
    url_template: str
    parent: Optional[str] = None
    templated: bool = False
    path_parameters: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    operations: list[OperationUnit] = Field(default_factory=list)


class ArtifactSet(BaseModel):
    """The full, deterministic output of one generation run."""

    client_name: str
    namespace: str
    title: str
    version: str
    base_url: Optional[str] = None
    models: list[ModelUnit] = Field(default_factory=list)
    builders: list[BuilderUnit] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    def model(self, name: str) -> Optional[ModelUnit]:
        for unit in self.models:
            if unit.name == name:
                return unit
        return None

    def builder(self, path: str) -> Optional[BuilderUnit]:
        for unit in self.builders:
            if unit.path == path:
                return unit
        return None

    def to_manifest(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
