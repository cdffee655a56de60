"""Run the full generation pipeline for one document.

Each stage runs to completion before the next one starts::

    document -> resolve -> synthesize -> bind -> assemble tree -> emit

:class:`~clientgen.exceptions.DocumentParseError` and
:class:`~clientgen.exceptions.DuplicatePathError` propagate and abort the
run with no artifacts. Binding problems and unresolved references travel
as diagnostics inside the returned :class:`GenerationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from clientgen.generator.binder import bind_operations
from clientgen.generator.emitter import emit
from clientgen.generator.synthesizer import TypeRegistry, TypeSynthesizer
from clientgen.generator.tree import assemble_tree
from clientgen.models import (
    ArtifactSet,
    Diagnostic,
    GeneratorConfig,
    OperationDescriptor,
    PathSegment,
    Severity,
)
from clientgen.output import debug
from clientgen.parser.loader import load_document, validate_openapi_version
from clientgen.parser.resolver import SchemaTable, resolve_schemas


@dataclass
class GenerationResult:
    """Everything one run produced, intermediate stages included."""

    artifacts: ArtifactSet
    table: SchemaTable
    registry: TypeRegistry
    operations: list[OperationDescriptor]
    tree: PathSegment

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.artifacts.diagnostics

    @property
    def errors(self) -> list[Diagnostic]:
        """Diagnostics for operations that were dropped."""
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]


def generate(
    document: dict[str, Any],
    config: Optional[GeneratorConfig] = None,
    source: str = "<document>",
) -> GenerationResult:
    """Generate the artifact set for an already-parsed *document*.

    Raises:
        DocumentParseError: If the document is not usable OpenAPI 3.x.
        DuplicatePathError: If two paths land on the same tree node.
    """
    config = config or GeneratorConfig()
    validate_openapi_version(document)

    table = resolve_schemas(document, source)
    debug(f"Resolved {len(table)} schema locations ({len(table.named)} named)")

    synthesizer = TypeSynthesizer(table)
    synthesizer.synthesize_components()

    bound = bind_operations(table, synthesizer, config.include_deprecated)
    debug(
        f"Bound {len(bound.operations)} operations "
        f"({len(bound.diagnostics)} dropped)"
    )
    debug(f"Synthesized {len(synthesizer.registry)} named types")

    paths = list((document.get("paths") or {}).keys())
    tree = assemble_tree(paths, bound.operations, config.client_name)
    debug(f"Assembled request-builder tree with {sum(1 for _ in tree.walk())} nodes")

    artifacts = emit(
        tree,
        synthesizer.registry,
        document,
        config,
        diagnostics=[*table.diagnostics, *bound.diagnostics],
    )
    return GenerationResult(
        artifacts=artifacts,
        table=table,
        registry=synthesizer.registry,
        operations=bound.operations,
        tree=tree,
    )


def generate_from_source(
    source: str, config: Optional[GeneratorConfig] = None
) -> GenerationResult:
    """Load *source* (path, URL or ``-``) and run :func:`generate` on it."""
    return generate(load_document(source), config, source=source)
