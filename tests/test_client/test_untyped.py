"""Tests for clientgen.client.untyped."""

from __future__ import annotations

import pytest

from clientgen.client.untyped import (
    UntypedArray,
    UntypedBoolean,
    UntypedFloat,
    UntypedInteger,
    UntypedNull,
    UntypedObject,
    UntypedString,
    to_untyped,
)


class TestToUntyped:
    @pytest.mark.parametrize(
        ("value", "node"),
        [
            (None, UntypedNull()),
            (True, UntypedBoolean(True)),
            (0, UntypedInteger(0)),
            (1.5, UntypedFloat(1.5)),
            ("dune", UntypedString("dune")),
        ],
    )
    def test_scalars(self, value: object, node: object) -> None:
        assert to_untyped(value) == node

    def test_bool_is_not_integer(self) -> None:
        assert isinstance(to_untyped(False), UntypedBoolean)

    def test_nested_document(self) -> None:
        node = to_untyped({"numFound": 2, "docs": [{"title": "Dune"}, None]})
        assert isinstance(node, UntypedObject)
        assert node.keys() == ["numFound", "docs"]
        assert "docs" in node
        docs = node["docs"]
        assert isinstance(docs, UntypedArray)
        assert len(docs) == 2
        assert docs[0] == UntypedObject({"title": UntypedString("Dune")})
        assert isinstance(docs[1], UntypedNull)

    def test_unsupported_value(self) -> None:
        with pytest.raises(TypeError, match="set"):
            to_untyped({1, 2})


class TestUntypedObject:
    def test_try_get_value(self) -> None:
        node = to_untyped({"q": "dune"})
        assert node.try_get_value("q") == UntypedString("dune")
        assert node.try_get_value("missing") is None

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            to_untyped({})["missing"]


class TestToPython:
    def test_round_trip_preserves_order(self) -> None:
        data = {"b": [1, 2.5, "x", None, True], "a": {"nested": []}}
        result = to_untyped(data).to_python()
        assert result == data
        assert list(result) == ["b", "a"]

    def test_iteration(self) -> None:
        assert [item.to_python() for item in to_untyped([1, 2, 3])] == [1, 2, 3]
