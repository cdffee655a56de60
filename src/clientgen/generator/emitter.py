"""Turn the type registry and the request-builder tree into an artifact set.

The emitter produces one :class:`~clientgen.models.ModelUnit` per named
object or enum (registry order) and one :class:`~clientgen.models.BuilderUnit`
per tree node (pre-order, document declaration order). Everything it emits
is ordered by declaration, so :func:`render_json` returns byte-identical
output for the same input document.

Types are written as compact expressions:

=====================  ==================================
Descriptor             ``type_expr``
=====================  ==================================
Primitive              ``string``, ``integer(int64)``
Array                  ``array<SearchDoc>``
Object / Enum          the type name, ``SearchResponse``
TypeReference          the referenced name
Untyped                ``untyped``
=====================  ==================================
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Optional

from clientgen.config import atomic_write
from clientgen.generator.naming import placeholders, sanitize_name, unique_name
from clientgen.generator.synthesizer import TypeRegistry
from clientgen.models import (
    ArrayType,
    ArtifactSet,
    BuilderUnit,
    Diagnostic,
    EnumType,
    FieldUnit,
    GeneratorConfig,
    ModelUnit,
    ObjectType,
    OperationDescriptor,
    OperationUnit,
    ParameterLocation,
    ParameterUnit,
    PathSegment,
    PrimitiveType,
    SegmentKind,
    TypeDescriptor,
    TypeReference,
)

UNTYPED_EXPR = "untyped"


def type_expr(descriptor: Optional[TypeDescriptor]) -> Optional[str]:
    """Render *descriptor* as a compact type expression; ``None`` stays ``None``."""
    if descriptor is None:
        return None
    if isinstance(descriptor, PrimitiveType):
        kind = descriptor.primitive.value
        return f"{kind}({descriptor.format})" if descriptor.format else kind
    if isinstance(descriptor, ArrayType):
        return f"array<{type_expr(descriptor.element)}>"
    if isinstance(descriptor, (ObjectType, EnumType, TypeReference)):
        return descriptor.name
    return UNTYPED_EXPR


def url_template(node: PathSegment) -> str:
    """Build a Kiota-style URL template for *node*.

    Query parameters of every operation at the node are listed once, in
    first-seen order::

        {+baseurl}/search.json{?q,page}
    """
    template = "{+baseurl}" + ("" if node.kind == SegmentKind.ROOT else node.path)
    query: list[str] = []
    for operation in node.operations:
        for param in operation.parameters_in(ParameterLocation.QUERY):
            if param.name not in query:
                query.append(param.name)
    if query:
        template += "{?" + ",".join(query) + "}"
    return template


def emit_models(registry: TypeRegistry) -> list[ModelUnit]:
    units: list[ModelUnit] = []
    for descriptor in registry:
        if isinstance(descriptor, EnumType):
            units.append(
                ModelUnit(
                    name=descriptor.name,
                    kind="enum",
                    ref=descriptor.ref,
                    description=descriptor.description,
                    values=list(descriptor.values),
                )
            )
            continue

        taken: set[str] = set()
        fields: list[FieldUnit] = []
        for name, field_type in descriptor.properties.items():
            fields.append(
                FieldUnit(
                    name=name,
                    python_name=unique_name(sanitize_name(name), taken, "_"),
                    type_expr=type_expr(field_type) or UNTYPED_EXPR,
                    required=name in descriptor.required,
                )
            )
        units.append(
            ModelUnit(
                name=descriptor.name,
                kind="object",
                ref=descriptor.ref,
                description=descriptor.description,
                fields=fields,
            )
        )
    return units


def emit_operation(operation: OperationDescriptor) -> OperationUnit:
    taken: set[str] = set()
    parameters = [
        ParameterUnit(
            name=param.name,
            python_name=unique_name(sanitize_name(param.name), taken, "_"),
            location=param.location,
            type_expr=type_expr(param.type) or UNTYPED_EXPR,
            required=param.required,
        )
        for param in operation.parameters
    ]
    return OperationUnit(
        method=operation.method,
        operation_id=operation.operation_id,
        summary=operation.summary,
        deprecated=operation.deprecated,
        parameters=parameters,
        request_body=type_expr(operation.request_body),
        request_content_type=operation.request_content_type,
        returns=type_expr(operation.primary_response),
        returns_untyped=operation.returns_untyped,
        responses={status: type_expr(r.type) for status, r in operation.responses.items()},
    )


def emit_builders(root: PathSegment) -> list[BuilderUnit]:
    """One builder per node, pre-order, children in declaration order."""
    units: list[BuilderUnit] = []
    _emit_builder(root, None, units)
    return units


def _emit_builder(node: PathSegment, parent: Optional[str], units: list[BuilderUnit]) -> None:
    units.append(
        BuilderUnit(
            class_name=node.builder_name,
            path=node.path,
            accessor=node.accessor,
            url_template=url_template(node),
            parent=parent,
            templated=node.is_template,
            path_parameters=_path_parameters(node),
            children=[child.accessor for child in node.children],
            operations=[emit_operation(op) for op in node.operations],
        )
    )
    for child in node.children:
        _emit_builder(child, node.builder_name, units)


def _path_parameters(node: PathSegment) -> list[str]:
    """Placeholder names bound on the way from the root to *node*."""
    return placeholders(node.path)


def emit(
    root: PathSegment,
    registry: TypeRegistry,
    document: dict[str, Any],
    config: GeneratorConfig,
    diagnostics: Iterable[Diagnostic] = (),
) -> ArtifactSet:
    """Build the complete :class:`ArtifactSet` for one run."""
    info = document.get("info") if isinstance(document.get("info"), dict) else {}
    servers = document.get("servers") or []
    base_url = None
    if servers and isinstance(servers[0], dict):
        base_url = servers[0].get("url")

    return ArtifactSet(
        client_name=root.builder_name,
        namespace=config.namespace,
        title=str(info.get("title", "Untitled API")),
        version=str(info.get("version", "0.0.0")),
        base_url=base_url,
        models=emit_models(registry),
        builders=emit_builders(root),
        diagnostics=list(diagnostics),
    )


def render_json(artifacts: ArtifactSet) -> str:
    """Serialise *artifacts* to JSON; same artifacts, same bytes."""
    return json.dumps(artifacts.to_manifest(), indent=2, ensure_ascii=False) + "\n"


def write_artifacts(artifacts: ArtifactSet, path: str | Path) -> Path:
    """Write the rendered manifest to *path* atomically and return the path."""
    target = Path(path)
    atomic_write(target, render_json(artifacts))
    return target

