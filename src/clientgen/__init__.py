"""clientgen -- Generate typed API clients from OpenAPI 3.0/3.1 documents.

This package turns an OpenAPI document into a deterministic artifact set: one
model per named schema and one request builder per URL path segment. Where a
schema is missing or too loose to type, the generated operation returns an
untyped value instead of guessing.

Typical workflow::

    clientgen generate openapi.json -o client.json   # write the manifest
    clientgen report openapi.json                    # typed vs untyped

The same pipeline drives a runtime client::

    from clientgen.client import ApiClient

    with ApiClient.from_source("openapi.json") as client:
        client.search_json.get(q="tolkien")

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: Project config, client settings and credential sources.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
