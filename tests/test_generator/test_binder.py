"""Tests for clientgen.generator.binder.

Covers:
- Operations bound in declaration order with parameters, body and responses
- Path-level and operation-level parameter merging
- Path placeholder cross-checks and malformed parameters as diagnostics
- Primary status and content type selection
- Inline type naming from operationId or method plus path
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from clientgen.generator.binder import (
    BindingResult,
    bind_operations,
    select_content_type,
    select_primary_status,
)
from clientgen.generator.synthesizer import TypeSynthesizer
from clientgen.models import (
    ArrayType,
    HTTPMethod,
    ObjectType,
    ParameterLocation,
    PrimitiveKind,
    PrimitiveType,
    Severity,
    UntypedType,
)
from clientgen.parser.resolver import resolve_schemas


def _bind_doc(document: dict[str, Any], include_deprecated: bool = True) -> BindingResult:
    table = resolve_schemas(document)
    synthesizer = TypeSynthesizer(table)
    synthesizer.synthesize_components()
    return bind_operations(table, synthesizer, include_deprecated)


def _ok(description: str = "ok", schema: Any = None) -> dict[str, Any]:
    response: dict[str, Any] = {"description": description}
    if schema is not None:
        response["content"] = {"application/json": {"schema": schema}}
    return response


# ---------------------------------------------------------------------------
# Typed document
# ---------------------------------------------------------------------------


class TestTypedDocument:
    @pytest.fixture
    def result(self, typed_doc: dict[str, Any]) -> BindingResult:
        return _bind_doc(typed_doc)

    def test_declaration_order(self, result: BindingResult) -> None:
        assert [(op.method, op.path) for op in result.operations] == [
            (HTTPMethod.GET, "/search.json"),
            (HTTPMethod.GET, "/authors/{olid}"),
            (HTTPMethod.POST, "/lists"),
        ]
        assert result.diagnostics == []

    def test_search_parameters(self, result: BindingResult) -> None:
        search = result.operations[0]
        assert search.operation_id == "search_books"
        assert search.tags == ["search"]
        q, page = search.parameters
        assert (q.name, q.location, q.required) == ("q", ParameterLocation.QUERY, True)
        assert q.type == PrimitiveType(primitive=PrimitiveKind.STRING)
        assert page.required is False
        assert page.type == PrimitiveType(primitive=PrimitiveKind.INTEGER, format="int32")

    def test_search_primary_response_is_typed(self, result: BindingResult) -> None:
        search = result.operations[0]
        assert search.primary_status == "200"
        assert isinstance(search.primary_response, ObjectType)
        assert search.primary_response.name == "SearchResponse"
        assert not search.returns_untyped

    def test_path_level_parameter_applies(self, result: BindingResult) -> None:
        author = result.operations[1]
        assert [p.name for p in author.parameters_in(ParameterLocation.PATH)] == ["olid"]
        assert author.parameters[0].required is True

    def test_all_statuses_recorded(self, result: BindingResult) -> None:
        author = result.operations[1]
        assert list(author.responses) == ["200", "404"]
        assert author.responses["404"].type is None
        assert author.responses["404"].description == "No such author"
        assert author.primary_response.name == "Author"

    def test_request_body_and_created_response(self, result: BindingResult) -> None:
        create = result.operations[2]
        assert create.request_body_required is True
        assert create.request_content_type == "application/json"
        assert isinstance(create.request_body, ObjectType)
        assert create.request_body.name == "CreateListBody"
        assert create.request_body.required == ["name"]
        assert create.request_body.properties["seeds"] == ArrayType(
            element=PrimitiveType(primitive=PrimitiveKind.STRING)
        )
        assert create.primary_status == "201"
        assert create.primary_response.name == "CreateListResponse"

    def test_pointer_addresses_operation(self, result: BindingResult) -> None:
        assert result.operations[1].pointer == "#/paths/~1authors~1{olid}/get"


# ---------------------------------------------------------------------------
# Untyped responses
# ---------------------------------------------------------------------------


class TestUntypedResponses:
    def test_every_operation_is_untyped(self, untyped_doc: dict[str, Any]) -> None:
        result = _bind_doc(untyped_doc)
        assert len(result.operations) == 4
        for op in result.operations:
            assert isinstance(op.primary_response, UntypedType), op.path
            assert op.returns_untyped

    def test_no_content_means_no_body(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        result = _bind_doc(minimal_doc(paths={"/ping": {"delete": {"responses": {"204": _ok()}}}}))
        op = result.operations[0]
        assert op.primary_status == "204"
        assert op.primary_response is None
        assert not op.returns_untyped

    def test_no_success_response(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        result = _bind_doc(minimal_doc(paths={"/x": {"get": {"responses": {"default": _ok(schema={})}}}}))
        op = result.operations[0]
        assert op.primary_status is None
        assert op.primary_response is None
        assert isinstance(op.responses["default"].type, UntypedType)

    def test_inline_name_without_operation_id(
        self, minimal_doc: Callable[..., dict[str, Any]]
    ) -> None:
        document = minimal_doc(
            paths={
                "/authors/{olid}": {
                    "get": {
                        "parameters": [{"name": "olid", "in": "path", "schema": {"type": "string"}}],
                        "responses": {"200": _ok(schema={"properties": {"name": {"type": "string"}}})},
                    }
                }
            }
        )
        op = _bind_doc(document).operations[0]
        assert op.primary_response.name == "GetAuthorsByOlidResponse"
        # Path parameters are required even when the document omits it.
        assert op.parameters[0].required is True


# ---------------------------------------------------------------------------
# Parameter merging
# ---------------------------------------------------------------------------


class TestParameterMerging:
    def test_operation_overrides_path_level(
        self, minimal_doc: Callable[..., dict[str, Any]]
    ) -> None:
        document = minimal_doc(
            paths={
                "/search.json": {
                    "parameters": [
                        {"name": "q", "in": "query", "schema": {"type": "string"}},
                        {"name": "lang", "in": "query", "schema": {"type": "string"}},
                    ],
                    "get": {
                        "parameters": [
                            {"name": "q", "in": "query", "required": True, "schema": {"type": "integer"}},
                            {"name": "q", "in": "header", "schema": {"type": "string"}},
                        ],
                        "responses": {"200": _ok()},
                    },
                }
            }
        )
        op = _bind_doc(document).operations[0]
        assert [(p.name, p.location.value) for p in op.parameters] == [
            ("lang", "query"),
            ("q", "query"),
            ("q", "header"),
        ]
        assert op.parameters[1].type == PrimitiveType(primitive=PrimitiveKind.INTEGER)
        assert op.parameters[1].required is True

    def test_component_parameter_reference(
        self, minimal_doc: Callable[..., dict[str, Any]]
    ) -> None:
        document = minimal_doc(
            paths={
                "/works": {
                    "get": {
                        "parameters": [{"$ref": "#/components/parameters/Limit"}],
                        "responses": {"200": _ok()},
                    }
                }
            },
            schemas={},
        )
        document["components"]["parameters"] = {
            "Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}}
        }
        op = _bind_doc(document).operations[0]
        assert op.parameters[0].name == "limit"
        assert op.parameters[0].type == PrimitiveType(primitive=PrimitiveKind.INTEGER)

    def test_content_parameter(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        document = minimal_doc(
            paths={
                "/q": {
                    "get": {
                        "parameters": [
                            {
                                "name": "filter",
                                "in": "query",
                                "content": {"application/json": {"schema": {"type": "array"}}},
                            }
                        ],
                        "responses": {"200": _ok()},
                    }
                }
            }
        )
        op = _bind_doc(document).operations[0]
        assert op.parameters[0].type == ArrayType(element=UntypedType())


# ---------------------------------------------------------------------------
# Binding errors
# ---------------------------------------------------------------------------


def _single_path_doc(
    minimal_doc: Callable[..., dict[str, Any]], path: str, parameters: list[Any]
) -> dict[str, Any]:
    return minimal_doc(
        paths={
            path: {"get": {"parameters": parameters, "responses": {"200": _ok()}}},
            "/healthy": {"get": {"responses": {"200": _ok()}}},
        }
    )


class TestBindingErrors:
    def test_missing_path_parameter(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        result = _bind_doc(_single_path_doc(minimal_doc, "/authors/{olid}", []))
        assert [op.path for op in result.operations] == ["/healthy"]
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.code == "binding-error"
        assert diagnostic.path == "/authors/{olid}"
        assert diagnostic.method == "get"
        assert diagnostic.message.startswith("GET /authors/{olid}: ")
        assert "{olid}" in diagnostic.message

    def test_undeclared_placeholder_parameter(
        self, minimal_doc: Callable[..., dict[str, Any]]
    ) -> None:
        result = _bind_doc(
            _single_path_doc(minimal_doc, "/authors", [{"name": "olid", "in": "path"}])
        )
        assert "do not appear in the path template" in result.diagnostics[0].message

    def test_parameter_without_name(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        result = _bind_doc(_single_path_doc(minimal_doc, "/a", [{"in": "query"}]))
        assert "no name" in result.diagnostics[0].message
        assert result.diagnostics[0].pointer == "#/paths/~1a/get/parameters/0"

    def test_unknown_location(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        result = _bind_doc(_single_path_doc(minimal_doc, "/a", [{"name": "x", "in": "body"}]))
        assert "unknown location 'body'" in result.diagnostics[0].message

    def test_dangling_parameter_reference(
        self, minimal_doc: Callable[..., dict[str, Any]]
    ) -> None:
        result = _bind_doc(
            _single_path_doc(minimal_doc, "/a", [{"$ref": "#/components/parameters/Gone"}])
        )
        assert "Cannot resolve" in result.diagnostics[0].message
        assert [op.path for op in result.operations] == ["/healthy"]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestDeprecated:
    def test_deprecated_included_by_default(
        self, minimal_doc: Callable[..., dict[str, Any]]
    ) -> None:
        document = minimal_doc(
            paths={"/old": {"get": {"deprecated": True, "responses": {"200": _ok()}}}}
        )
        ops = _bind_doc(document).operations
        assert len(ops) == 1
        assert ops[0].deprecated is True

    def test_deprecated_excluded(self, minimal_doc: Callable[..., dict[str, Any]]) -> None:
        document = minimal_doc(
            paths={"/old": {"get": {"deprecated": True, "responses": {"200": _ok()}}}}
        )
        assert _bind_doc(document, include_deprecated=False).operations == []


# ---------------------------------------------------------------------------
# Selection helpers
# ---------------------------------------------------------------------------


class TestSelectPrimaryStatus:
    @pytest.mark.parametrize(
        ("statuses", "expected"),
        [
            (["404", "200", "201"], "200"),
            (["404", "202", "201"], "201"),
            (["default", "204"], "204"),
            (["default", "2XX"], "2XX"),
            (["400", "default"], None),
            ([], None),
        ],
    )
    def test_selection(self, statuses: list[str], expected: str | None) -> None:
        assert select_primary_status(statuses) == expected


class TestSelectContentType:
    def test_prefers_application_json(self) -> None:
        assert select_content_type(["text/plain", "application/json"]) == "application/json"

    def test_json_with_parameters(self) -> None:
        assert (
            select_content_type(["text/html", "application/json; charset=utf-8"])
            == "application/json; charset=utf-8"
        )

    def test_then_plus_json(self) -> None:
        assert (
            select_content_type(["text/plain", "application/vnd.api+json"])
            == "application/vnd.api+json"
        )

    def test_then_first_declared(self) -> None:
        assert select_content_type(["text/csv", "text/plain"]) == "text/csv"
