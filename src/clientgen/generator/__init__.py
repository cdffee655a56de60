"""Client generator -- turn a resolved OpenAPI document into client artifacts.

This sub-package holds the generation core: deciding per schema whether a
typed model or an untyped fallback is produced, binding operations, building
the request-builder tree and emitting a deterministic artifact set.

Typical usage::

    from clientgen.generator import generate_from_source, render_json

    result = generate_from_source("openlibrary.json")
    print(render_json(result.artifacts))

Sub-modules:

* :mod:`~clientgen.generator.synthesizer` -- Schema nodes to type descriptors.
* :mod:`~clientgen.generator.binder` -- (path, method) pairs to operation
  descriptors.
* :mod:`~clientgen.generator.tree` -- Paths to the request-builder tree.
* :mod:`~clientgen.generator.emitter` -- Tree and registry to artifacts.
* :mod:`~clientgen.generator.pipeline` -- All stages in order.
* :mod:`~clientgen.generator.naming` -- Identifier helpers.
"""

from clientgen.generator.emitter import render_json, write_artifacts
from clientgen.generator.pipeline import GenerationResult, generate, generate_from_source

__all__ = [
    "GenerationResult",
    "generate",
    "generate_from_source",
    "render_json",
    "write_artifacts",
]
