"""Report command -- summarise which operations are typed.

``clientgen report`` lists every operation with the kind of value its primary
response decodes to: ``typed`` (a model, array or scalar), ``untyped`` (no
usable schema) or ``no body``. Dropped operations are listed with the reason
they were dropped.
"""

from __future__ import annotations

import typer

from clientgen.commands.generate import load_generation
from clientgen.models import OperationDescriptor
from clientgen.output import get_output, info


def _classify(op: OperationDescriptor) -> str:
    if op.primary_response is None:
        return "no body"
    if op.returns_untyped:
        return "untyped"
    return "typed"


def report_command(
    source: str = typer.Argument(..., help="OpenAPI document path or URL."),
) -> None:
    """Report typed vs untyped responses per operation.

    Example::

        clientgen report openlibrary.json
        clientgen --json report openlibrary.json | jq '.[] | select(.Result == "untyped")'
    """
    from clientgen.generator.emitter import type_expr

    result = load_generation(source)

    counts = {"typed": 0, "untyped": 0, "no body": 0, "dropped": 0}
    rows: list[list[str]] = []
    for op in result.operations:
        kind = _classify(op)
        counts[kind] += 1
        rows.append([
            op.method.value.upper(),
            op.path,
            kind,
            type_expr(op.primary_response) or "-",
        ])
    for diagnostic in result.errors:
        counts["dropped"] += 1
        rows.append([
            (diagnostic.method or "-").upper(),
            diagnostic.path or "-",
            "dropped",
            diagnostic.message,
        ])

    get_output().print_table(
        ["Method", "Path", "Result", "Returns"],
        rows,
        title=result.artifacts.title,
    )
    info(
        f"{counts['typed']} typed, {counts['untyped']} untyped, "
        f"{counts['no body']} without body, {counts['dropped']} dropped"
    )
