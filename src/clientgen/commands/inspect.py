"""Inspect commands -- examine what each generation stage produced.

Provides the ``clientgen inspect`` group with read-only views of one run:
the request-builder tree, the named types in registry order and the bound
operations. Nothing is written to disk.
"""

from __future__ import annotations

import typer

from clientgen.commands.generate import load_generation
from clientgen.output import get_output, info


inspect_app = typer.Typer(no_args_is_help=True)


@inspect_app.command("tree")
def inspect_tree(
    source: str = typer.Argument(..., help="OpenAPI document path or URL."),
) -> None:
    """Show the request-builder tree.

    Example::

        clientgen inspect tree openlibrary.json
        clientgen --json inspect tree openlibrary.json
    """
    result = load_generation(source)
    get_output().print_tree(result.tree)


@inspect_app.command("types")
def inspect_types(
    source: str = typer.Argument(..., help="OpenAPI document path or URL."),
) -> None:
    """List the named models (objects and enumerations) in emission order."""
    result = load_generation(source)
    models = result.artifacts.models
    if not models:
        info("No named types: every operation is untyped or primitive.")
        return

    rows: list[list[str]] = []
    for unit in models:
        if unit.kind == "enum":
            members = ", ".join(unit.values[:5])
            if len(unit.values) > 5:
                members += "..."
        else:
            names = [f.name + ("" if f.required else "?") for f in unit.fields]
            members = ", ".join(names[:5])
            if len(names) > 5:
                members += "..."
        rows.append([unit.name, unit.kind, unit.ref or "-", members])

    get_output().print_table(
        ["Name", "Kind", "Ref", "Members"], rows, title=f"Types ({len(rows)})"
    )


@inspect_app.command("operations")
def inspect_operations(
    source: str = typer.Argument(..., help="OpenAPI document path or URL."),
) -> None:
    """List bound operations with their parameters and return types."""
    from clientgen.generator.emitter import type_expr

    result = load_generation(source)
    rows: list[list[str]] = []
    for op in result.operations:
        params = ", ".join(
            p.name + ("" if p.required else "?") for p in op.parameters
        )
        rows.append([
            op.method.value.upper(),
            op.path,
            op.operation_id or "-",
            params or "-",
            type_expr(op.primary_response) or "-",
        ])

    get_output().print_table(
        ["Method", "Path", "Operation", "Parameters", "Returns"],
        rows,
        title=f"Operations ({len(rows)})",
    )
    if result.errors:
        info(f"{len(result.errors)} operation(s) dropped; see clientgen report.")
