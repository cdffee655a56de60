"""Generate command -- run the pipeline and write the artifact manifest.

Implements ``clientgen generate``. The document is loaded from a path, URL or
stdin, the generator config is resolved (flags, environment, project file)
and the resulting manifest is written atomically. Binding diagnostics are
reported on stderr; with ``--strict`` they fail the run with exit code 9.
"""

from __future__ import annotations

from typing import Optional

import typer

from clientgen.exit_codes import EXIT_BINDING_DIAGNOSTICS
from clientgen.generator.pipeline import GenerationResult
from clientgen.models import GeneratorConfig
from clientgen.output import debug, error, info, print_data, report_diagnostics, success, suggest


def load_generation(
    source: str, config: Optional[GeneratorConfig] = None
) -> GenerationResult:
    """Run the pipeline for *source*, turning failures into a CLI exit.

    Raises:
        typer.Exit: With the error's exit code when the document cannot be
            loaded, parsed or assembled.
    """
    from clientgen.exceptions import ClientgenError
    from clientgen.generator import generate_from_source

    debug(f"Loading document from: {source}")
    try:
        return generate_from_source(source, config)
    except ClientgenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def generate_command(
    source: str = typer.Argument(
        ..., help="OpenAPI document path or URL (use '-' for stdin)."
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Manifest path (default: client.json)."
    ),
    client_name: Optional[str] = typer.Option(
        None, "--client-name", help="Root builder class name."
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", help="Target package/namespace."
    ),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Fail when any operation is dropped."
    ),
    to_stdout: bool = typer.Option(
        False, "--stdout", help="Print the manifest instead of writing it."
    ),
) -> None:
    """Generate the client artifact manifest for an OpenAPI document.

    Example::

        clientgen generate openapi.json -o client.json
        curl -s https://example.com/openapi.yaml | clientgen generate - --stdout
    """
    from clientgen.config import resolve_generator_config
    from clientgen.exceptions import ClientgenError
    from clientgen.generator import render_json, write_artifacts

    try:
        config = resolve_generator_config(
            cli_output=output,
            cli_client_name=client_name,
            cli_namespace=namespace,
            cli_strict=strict,
        )
    except ClientgenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    result = load_generation(source, config)
    artifacts = result.artifacts
    report_diagnostics(result.diagnostics)

    if to_stdout:
        print_data(render_json(artifacts).rstrip("\n"))
    else:
        path = write_artifacts(artifacts, config.output)
        success(
            f"Wrote {len(artifacts.models)} model(s) and "
            f"{len(artifacts.builders)} builder(s) to {path}"
        )

    untyped = sum(1 for op in result.operations if op.returns_untyped)
    if untyped:
        info(f"{untyped} operation(s) return untyped values.")
        suggest(f"See which: clientgen report {source}")

    if config.strict and result.errors:
        error(f"{len(result.errors)} operation(s) dropped (strict mode).")
        raise typer.Exit(code=EXIT_BINDING_DIAGNOSTICS)
