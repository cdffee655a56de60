"""OpenAPI document parser -- load documents and resolve ``$ref`` pointers.

This sub-package is the first stage of the clientgen pipeline: turning a raw
OpenAPI 3.x document (JSON or YAML, local file, remote URL or stdin) into a
:class:`~clientgen.parser.resolver.SchemaTable` the generator can consume.

Typical usage::

    from clientgen.parser import load_document, validate_openapi_version, resolve_schemas

    document = load_document("openlibrary.json")
    validate_openapi_version(document)
    table = resolve_schemas(document, "openlibrary.json")

Sub-modules:

* :mod:`~clientgen.parser.loader` -- I/O layer plus format detection and
  OpenAPI version validation.
* :mod:`~clientgen.parser.resolver` -- ``$ref`` resolution into shared
  schema nodes, with back-reference markers for cycles.
"""

from clientgen.parser.loader import load_document, parse_document, validate_openapi_version
from clientgen.parser.resolver import SchemaResolver, SchemaTable, resolve_schemas

__all__ = [
    "load_document",
    "parse_document",
    "validate_openapi_version",
    "SchemaResolver",
    "SchemaTable",
    "resolve_schemas",
]
