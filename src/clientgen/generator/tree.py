"""Assemble the request-builder tree from the document's paths.

Every path is split into segments and inserted under a single root, sharing
common prefixes. Literal segments (``search.json``) and templated segments
(``{olid}``) become :class:`~clientgen.models.PathSegment` nodes whose
children keep the order in which the document declared them::

    /search.json          root
    /authors/{olid}   ->  +-- search.json      GET
                          +-- authors
                              +-- {olid}       GET

Paths are normalized first (empty segments collapsed, trailing slash
dropped). Two declarations that normalize to the same segments, or two
templated siblings with different placeholders (``/a/{id}`` next to
``/a/{key}``), make the tree ambiguous and raise
:class:`~clientgen.exceptions.DuplicatePathError`.

A literal segment spelled like an HTTP method (``/jobs/get``) gets the
accessor ``get_`` so ``jobs.get`` still names the operation.
"""

from __future__ import annotations

from typing import Iterable, Optional

from clientgen.exceptions import DuplicatePathError
from clientgen.generator.naming import (
    is_template,
    normalize_path,
    pascal_case,
    placeholders,
    sanitize_name,
    split_segments,
    unique_name,
)
from clientgen.models import HTTPMethod, OperationDescriptor, PathSegment, SegmentKind
from clientgen.parser.resolver import join_pointer

_BUILDER_SUFFIX = "RequestBuilder"
# Builders expose operations under these names; children must not shadow them.
_METHOD_NAMES = frozenset(m.value for m in HTTPMethod)


class TreeAssembler:
    """Incrementally build one request-builder tree.

    Args:
        client_name: Class name of the root builder.
    """

    def __init__(self, client_name: str = "ApiClient") -> None:
        self.root = PathSegment(
            segment="",
            kind=SegmentKind.ROOT,
            path="/",
            builder_name=pascal_case(client_name, "ApiClient"),
        )
        self._declared: dict[tuple[str, ...], str] = {}

    def insert(self, path: str) -> PathSegment:
        """Insert *path* and return the node for its last segment.

        Raises:
            DuplicatePathError: If *path* collides with an earlier declaration.
        """
        segments = tuple(split_segments(path))
        pointer = join_pointer("#/paths", path)
        previous = self._declared.get(segments)
        if previous is not None:
            raise DuplicatePathError(
                f"Path '{path}' duplicates '{previous}' after normalization",
                pointer=pointer,
            )
        self._declared[segments] = path

        node = self.root
        for segment in segments:
            node = self._child(node, segment, pointer)
        return node

    def attach(self, operation: OperationDescriptor) -> PathSegment:
        """Attach a bound operation to the node of its path, inserting it if needed."""
        segments = tuple(split_segments(operation.path))
        node = self.root.find("/".join(segments)) if segments in self._declared else None
        if node is None:
            node = self.insert(operation.path)
        node.operations.append(operation)
        return node

    def _child(self, parent: PathSegment, segment: str, pointer: str) -> PathSegment:
        existing = parent.child(segment)
        if existing is not None:
            return existing

        templated = is_template(segment)
        if templated:
            sibling = parent.templated_child()
            if sibling is not None:
                raise DuplicatePathError(
                    f"Templated segments '{sibling.segment}' and '{segment}' "
                    f"conflict under '{parent.path}'",
                    pointer=pointer,
                )

        names = placeholders(segment)
        if templated:
            accessor = "by_" + "_".join(sanitize_name(n) for n in names)
            title = "By" + "".join(pascal_case(n) for n in names)
        else:
            accessor = sanitize_name(segment, "segment")
            if accessor in _METHOD_NAMES:
                accessor += "_"
            title = pascal_case(segment, "Segment")

        accessor = unique_name(accessor, {c.accessor for c in parent.children}, "_")

        prefix = "" if parent.kind == SegmentKind.ROOT else parent.builder_name[: -len(_BUILDER_SUFFIX)]
        node = PathSegment(
            segment=segment,
            kind=SegmentKind.TEMPLATE if templated else SegmentKind.LITERAL,
            path=normalize_path(f"{parent.path}/{segment}"),
            parameters=names,
            accessor=accessor,
            builder_name=prefix + title + _BUILDER_SUFFIX,
        )
        parent.children.append(node)
        return node


def assemble_tree(
    paths: Iterable[str],
    operations: Iterable[OperationDescriptor],
    client_name: str = "ApiClient",
) -> PathSegment:
    """Build the tree for *paths* and attach *operations* to their nodes.

    Every declared path gets a node, including paths whose operations were
    all dropped by the binder, so that navigation mirrors the document.

    Args:
        paths: Path templates in document declaration order.
        operations: Bound operations, in declaration order.
        client_name: Root builder class name.

    Returns:
        The root :class:`PathSegment`.

    Raises:
        DuplicatePathError: On an ambiguous path structure.
    """
    assembler = TreeAssembler(client_name)
    for path in paths:
        assembler.insert(path)
    for operation in operations:
        assembler.attach(operation)
    return assembler.root


def find_operation(
    root: PathSegment, path: str, method: str
) -> Optional[OperationDescriptor]:
    """Look up the operation for *method* at *path* (``"authors/{olid}"``)."""
    node = root.find(path)
    return node.operation(method) if node is not None else None
