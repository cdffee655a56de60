"""Tests for clientgen.generator.emitter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from clientgen.generator.emitter import render_json, type_expr, url_template, write_artifacts
from clientgen.generator.pipeline import generate
from clientgen.generator.tree import assemble_tree
from clientgen.models import (
    ArrayType,
    ArtifactSet,
    EnumType,
    HTTPMethod,
    ObjectType,
    OperationDescriptor,
    ParameterBinding,
    ParameterLocation,
    PrimitiveKind,
    PrimitiveType,
    TypeReference,
    UntypedType,
)


@pytest.fixture
def artifacts(typed_doc: dict[str, Any]) -> ArtifactSet:
    return generate(typed_doc).artifacts


# ---------------------------------------------------------------------------
# Type expressions
# ---------------------------------------------------------------------------


class TestTypeExpr:
    @pytest.mark.parametrize(
        ("descriptor", "expected"),
        [
            (PrimitiveType(primitive=PrimitiveKind.STRING), "string"),
            (PrimitiveType(primitive=PrimitiveKind.INTEGER, format="int64"), "integer(int64)"),
            (ArrayType(element=PrimitiveType(primitive=PrimitiveKind.NUMBER)), "array<number>"),
            (ArrayType(element=ArrayType(element=UntypedType())), "array<array<untyped>>"),
            (ObjectType(name="SearchDoc"), "SearchDoc"),
            (EnumType(name="EbookAccess", values=["public"]), "EbookAccess"),
            (TypeReference(ref="#/components/schemas/Node", name="Node"), "Node"),
            (UntypedType(), "untyped"),
        ],
    )
    def test_expressions(self, descriptor: Any, expected: str) -> None:
        assert type_expr(descriptor) == expected

    def test_none_stays_none(self) -> None:
        assert type_expr(None) is None


# ---------------------------------------------------------------------------
# URL templates
# ---------------------------------------------------------------------------


def _query(name: str) -> ParameterBinding:
    return ParameterBinding(name=name, location=ParameterLocation.QUERY)


class TestUrlTemplate:
    def test_root(self) -> None:
        root = assemble_tree([], [])
        assert url_template(root) == "{+baseurl}"

    def test_query_parameters_listed_once_in_first_seen_order(self) -> None:
        operations = [
            OperationDescriptor(
                path="/search.json",
                method=HTTPMethod.GET,
                pointer="#/a",
                parameters=[_query("q"), _query("page")],
            ),
            OperationDescriptor(
                path="/search.json",
                method=HTTPMethod.HEAD,
                pointer="#/b",
                parameters=[_query("lang"), _query("q")],
            ),
        ]
        root = assemble_tree(["/search.json"], operations)
        node = root.find("search.json")
        assert url_template(node) == "{+baseurl}/search.json{?q,page,lang}"

    def test_templated_path_without_query(self) -> None:
        root = assemble_tree(["/authors/{olid}"], [])
        assert url_template(root.find("authors/{olid}")) == "{+baseurl}/authors/{olid}"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    def test_registry_order(self, artifacts: ArtifactSet) -> None:
        assert [m.name for m in artifacts.models] == [
            "SearchResponse",
            "SearchDoc",
            "Author",
            "SearchDocEbookAccess",
            "CreateListBody",
            "CreateListResponse",
        ]

    def test_object_fields(self, artifacts: ArtifactSet) -> None:
        unit = artifacts.model("SearchResponse")
        assert unit is not None
        assert unit.kind == "object"
        assert unit.ref == "#/components/schemas/SearchResponse"
        assert unit.description == "One page of search results"
        fields = {f.name: f for f in unit.fields}
        assert list(fields) == ["numFound", "start", "q", "docs"]
        assert fields["numFound"].python_name == "num_found"
        assert fields["numFound"].required is True
        assert fields["start"].required is False
        assert fields["docs"].type_expr == "array<SearchDoc>"

    def test_enum_unit(self, artifacts: ArtifactSet) -> None:
        unit = artifacts.model("SearchDocEbookAccess")
        assert unit.kind == "enum"
        assert unit.values == ["no_ebook", "printdisabled", "borrowable", "public"]
        assert unit.fields == []
        doc = artifacts.model("SearchDoc")
        assert {f.name: f.type_expr for f in doc.fields}["ebook_access"] == "SearchDocEbookAccess"

    def test_missing_model(self, artifacts: ArtifactSet) -> None:
        assert artifacts.model("Nope") is None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


class TestBuilders:
    def test_pre_order(self, artifacts: ArtifactSet) -> None:
        assert [(b.path, b.class_name) for b in artifacts.builders] == [
            ("/", "ApiClient"),
            ("/search.json", "SearchJsonRequestBuilder"),
            ("/authors", "AuthorsRequestBuilder"),
            ("/authors/{olid}", "AuthorsByOlidRequestBuilder"),
            ("/lists", "ListsRequestBuilder"),
        ]

    def test_root_builder(self, artifacts: ArtifactSet) -> None:
        root = artifacts.builder("/")
        assert root.parent is None
        assert root.children == ["search_json", "authors", "lists"]
        assert root.url_template == "{+baseurl}"

    def test_templated_builder(self, artifacts: ArtifactSet) -> None:
        olid = artifacts.builder("/authors/{olid}")
        assert olid.templated is True
        assert olid.accessor == "by_olid"
        assert olid.parent == "AuthorsRequestBuilder"
        assert olid.path_parameters == ["olid"]
        assert olid.url_template == "{+baseurl}/authors/{olid}"

    def test_search_operation_unit(self, artifacts: ArtifactSet) -> None:
        search = artifacts.builder("/search.json")
        assert search.url_template == "{+baseurl}/search.json{?q,page}"
        (op,) = search.operations
        assert op.method == HTTPMethod.GET
        assert op.operation_id == "search_books"
        assert op.returns == "SearchResponse"
        assert op.returns_untyped is False
        assert [(p.name, p.type_expr, p.required) for p in op.parameters] == [
            ("q", "string", True),
            ("page", "integer(int32)", False),
        ]

    def test_body_and_response_units(self, artifacts: ArtifactSet) -> None:
        (create,) = artifacts.builder("/lists").operations
        assert create.request_body == "CreateListBody"
        assert create.request_content_type == "application/json"
        assert create.returns == "CreateListResponse"

        (author,) = artifacts.builder("/authors/{olid}").operations
        assert author.responses == {"200": "Author", "404": None}

    def test_intermediate_builder_has_no_operations(self, artifacts: ArtifactSet) -> None:
        assert artifacts.builder("/authors").operations == []


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_document_metadata(self, artifacts: ArtifactSet) -> None:
        assert artifacts.title == "Open Library API"
        assert artifacts.version == "1.2.0"
        assert artifacts.base_url == "https://openlibrary.org"
        assert artifacts.namespace == "api_client"

    def test_render_is_deterministic(self, typed_doc: dict[str, Any]) -> None:
        first = render_json(generate(typed_doc).artifacts)
        second = render_json(generate(typed_doc).artifacts)
        assert first == second
        assert first.endswith("}\n")

    def test_render_is_valid_json(self, artifacts: ArtifactSet) -> None:
        manifest = json.loads(render_json(artifacts))
        assert manifest["client_name"] == "ApiClient"
        assert [b["path"] for b in manifest["builders"]][:2] == ["/", "/search.json"]

    def test_write_artifacts(self, artifacts: ArtifactSet, tmp_path: Path) -> None:
        target = write_artifacts(artifacts, tmp_path / "out" / "client.json")
        assert target.read_text(encoding="utf-8") == render_json(artifacts)
