"""Bind every (path, method) pair to an :class:`~clientgen.models.OperationDescriptor`.

The binder walks the document's ``paths`` object in declaration order and,
for each operation:

* merges path-level and operation-level parameters (operation-level wins
  when ``name`` and ``in`` match, per OpenAPI),
* cross-checks path parameters against the ``{name}`` placeholders of the
  path template,
* synthesizes a type descriptor for every parameter, the request body and
  every declared response,
* selects the primary response: ``200``, else ``201``, else the first
  declared 2xx (``2XX`` included).

An inconsistent operation raises :class:`~clientgen.exceptions.BindingError`
internally; :func:`bind_operations` turns each one into an error
:class:`~clientgen.models.Diagnostic` and leaves the operation out, so one
bad operation never blocks the rest of the API surface.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from clientgen.exceptions import BindingError
from clientgen.generator.naming import (
    is_template,
    pascal_case,
    placeholders,
    split_segments,
)
from clientgen.generator.synthesizer import TypeSynthesizer
from clientgen.models import (
    UNTYPED,
    Diagnostic,
    HTTPMethod,
    OperationDescriptor,
    ParameterBinding,
    ParameterLocation,
    ResponseBinding,
    Severity,
    TypeDescriptor,
)
from clientgen.parser.resolver import SchemaTable, join_pointer

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)
_SUCCESS_RE = re.compile(r"2(\d\d|XX)", re.IGNORECASE)

Located = tuple[str, dict[str, Any]]
"""A parameter/body/response object paired with its JSON pointer."""


@dataclass
class BindingResult:
    """Operations that bound cleanly plus diagnostics for those that did not."""

    operations: list[OperationDescriptor] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class OperationBinder:
    """Produce operation descriptors for one document.

    Args:
        table: The resolved schema table.
        synthesizer: The synthesizer holding the document's type registry;
            inline schemas found on operations are registered there too.
        include_deprecated: When ``False``, operations marked
            ``deprecated: true`` are skipped.
    """

    def __init__(
        self,
        table: SchemaTable,
        synthesizer: TypeSynthesizer,
        include_deprecated: bool = True,
    ) -> None:
        self._table = table
        self._synth = synthesizer
        self._include_deprecated = include_deprecated

    def bind_all(self) -> BindingResult:
        result = BindingResult()
        paths = self._table.document.get("paths") or {}

        for path, item in paths.items():
            located = self._table.deref(item, join_pointer("#/paths", path))
            if located is None or not isinstance(located[1], dict):
                # Dangling path-item references were reported by the resolver.
                continue
            item_pointer, path_item = located

            for method, operation in path_item.items():
                if method not in _HTTP_METHODS or not isinstance(operation, dict):
                    continue
                if operation.get("deprecated") and not self._include_deprecated:
                    continue
                try:
                    result.operations.append(
                        self.bind(path, method, path_item, operation, item_pointer)
                    )
                except BindingError as exc:
                    result.diagnostics.append(
                        Diagnostic(
                            severity=Severity.ERROR,
                            code="binding-error",
                            message=exc.message,
                            pointer=exc.pointer,
                            path=exc.path,
                            method=exc.method,
                        )
                    )
        return result

    def bind(
        self,
        path: str,
        method: str,
        path_item: dict[str, Any],
        operation: dict[str, Any],
        item_pointer: str,
    ) -> OperationDescriptor:
        """Bind one operation.

        Raises:
            BindingError: If a parameter is malformed or disagrees with the
                path template, or a response reference cannot be resolved.
        """
        pointer = join_pointer(item_pointer, method)
        context = _Context(path=path, method=method, pointer=pointer)
        base_name = _operation_name(path, method, operation)

        merged = _merge_parameters(
            self._located_list(path_item, item_pointer, "parameters", context),
            self._located_list(operation, pointer, "parameters", context),
        )
        parameters = [self._bind_parameter(p, base_name, context) for p in merged]
        _check_path_parameters(path, parameters, context)

        request_body: Optional[TypeDescriptor] = None
        request_content_type: Optional[str] = None
        body_required = False
        if "requestBody" in operation:
            body_pointer, body = self._deref(
                operation["requestBody"], join_pointer(pointer, "requestBody"), context
            )
            body_required = bool(body.get("required", False))
            request_content_type, request_body = self._bind_content(
                body, body_pointer, f"{base_name}Body"
            )

        responses: dict[str, ResponseBinding] = {}
        raw_responses = operation.get("responses") or {}
        for status, response in raw_responses.items():
            status_code = str(status)
            response_pointer, response = self._deref(
                response, join_pointer(pointer, "responses", status_code), context
            )
            content_type, descriptor = self._bind_content(
                response, response_pointer, f"{base_name}Response"
            )
            responses[status_code] = ResponseBinding(
                status_code=status_code,
                description=response.get("description"),
                content_type=content_type,
                type=descriptor,
            )

        primary = select_primary_status(list(responses))
        return OperationDescriptor(
            path=path,
            method=HTTPMethod(method),
            pointer=pointer,
            operation_id=operation.get("operationId"),
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=list(operation.get("tags") or []),
            deprecated=bool(operation.get("deprecated", False)),
            parameters=parameters,
            request_body=request_body,
            request_body_required=body_required,
            request_content_type=request_content_type,
            responses=responses,
            primary_status=primary,
            primary_response=responses[primary].type if primary else None,
        )

    # -- helpers ------------------------------------------------------------

    def _located_list(
        self, parent: dict[str, Any], pointer: str, key: str, context: _Context
    ) -> list[Located]:
        located: list[Located] = []
        for index, param in enumerate(parent.get(key) or []):
            located.append(self._deref(param, join_pointer(pointer, key, index), context))
        return located

    def _deref(self, obj: Any, pointer: str, context: _Context) -> Located:
        target = self._table.deref(obj, pointer)
        if target is None or not isinstance(target[1], dict):
            raise context.error(f"Cannot resolve {pointer.rsplit('/', 1)[-1]!r} reference", pointer)
        return target

    def _bind_parameter(
        self, located: Located, base_name: str, context: _Context
    ) -> ParameterBinding:
        pointer, param = located
        name = param.get("name")
        if not isinstance(name, str) or not name:
            raise context.error("Parameter has no name", pointer)
        try:
            location = ParameterLocation(param.get("in"))
        except ValueError:
            raise context.error(
                f"Parameter '{name}' has unknown location {param.get('in')!r}", pointer
            ) from None

        hint = base_name + pascal_case(name, "Param")
        if "schema" in param:
            descriptor = self._synth.synthesize_pointer(join_pointer(pointer, "schema"), hint)
        else:
            _, content_descriptor = self._bind_content(param, pointer, hint)
            descriptor = content_descriptor if content_descriptor is not None else UNTYPED

        return ParameterBinding(
            name=name,
            location=location,
            type=descriptor,
            # Path parameters are always required.
            required=location == ParameterLocation.PATH or bool(param.get("required", False)),
            description=param.get("description"),
            deprecated=bool(param.get("deprecated", False)),
        )

    def _bind_content(
        self, obj: dict[str, Any], pointer: str, hint: str
    ) -> tuple[Optional[str], Optional[TypeDescriptor]]:
        """Pick the preferred media type of *obj* and synthesize its schema.

        Returns ``(None, None)`` when no content is declared. Content with
        an absent or empty schema yields ``Untyped``.
        """
        content = obj.get("content")
        if not isinstance(content, dict) or not content:
            return None, None
        content_type = select_content_type(list(content))
        schema_pointer = join_pointer(pointer, "content", content_type, "schema")
        return content_type, self._synth.synthesize_pointer(schema_pointer, hint)


@dataclass
class _Context:
    path: str
    method: str
    pointer: str

    def error(self, message: str, pointer: Optional[str] = None) -> BindingError:
        return BindingError(
            f"{self.method.upper()} {self.path}: {message}",
            pointer=pointer or self.pointer,
            path=self.path,
            method=self.method,
        )


def bind_operations(
    table: SchemaTable,
    synthesizer: TypeSynthesizer,
    include_deprecated: bool = True,
) -> BindingResult:
    """Bind every operation in the document. See :class:`OperationBinder`."""
    return OperationBinder(table, synthesizer, include_deprecated).bind_all()


def select_primary_status(statuses: list[str]) -> Optional[str]:
    """Return ``200``, else ``201``, else the first 2xx (or ``2XX``), else ``None``.

    Example::

        >>> select_primary_status(["404", "202", "201"])
        '201'
        >>> select_primary_status(["default", "2XX"])
        '2XX'
    """
    for preferred in ("200", "201"):
        if preferred in statuses:
            return preferred
    for status in statuses:
        if _SUCCESS_RE.fullmatch(status):
            return status
    return None


def select_content_type(content_types: list[str]) -> str:
    """Prefer ``application/json``, then any ``+json`` type, then the first declared."""
    for content_type in content_types:
        if content_type.split(";")[0].strip().lower() == "application/json":
            return content_type
    for content_type in content_types:
        if content_type.split(";")[0].strip().lower().endswith("+json"):
            return content_type
    return content_types[0]


def _merge_parameters(path_params: list[Located], op_params: list[Located]) -> list[Located]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field). Path-level parameters keep their
    position ahead of the operation's own.
    """
    op_keys = {(param.get("name", ""), param.get("in", "")) for _, param in op_params}

    merged = [
        located
        for located in path_params
        if (located[1].get("name", ""), located[1].get("in", "")) not in op_keys
    ]
    merged.extend(op_params)
    return merged


def _check_path_parameters(
    path: str, parameters: list[ParameterBinding], context: _Context
) -> None:
    declared = [p.name for p in parameters if p.location == ParameterLocation.PATH]
    expected = placeholders(path)

    missing = [name for name in expected if name not in declared]
    if missing:
        raise context.error(
            f"Placeholder(s) {', '.join('{' + n + '}' for n in missing)} have no declared path parameter"
        )
    extra = [name for name in declared if name not in expected]
    if extra:
        raise context.error(
            f"Path parameter(s) {', '.join(extra)} do not appear in the path template"
        )


def _operation_name(path: str, method: str, operation: dict[str, Any]) -> str:
    """Name source for inline types of an operation.

    ``operationId`` when present, otherwise method plus path:
    ``GET /authors/{olid}`` -> ``GetAuthorsByOlid``.
    """
    operation_id = operation.get("operationId")
    if isinstance(operation_id, str) and operation_id:
        return pascal_case(operation_id)
    parts = [pascal_case(method)]
    for segment in split_segments(path):
        if is_template(segment):
            parts.append("By" + "".join(pascal_case(n) for n in placeholders(segment)))
        else:
            parts.append(pascal_case(segment, ""))
    return "".join(parts)
