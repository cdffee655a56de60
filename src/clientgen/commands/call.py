"""Call command -- invoke one operation through the runtime client.

``clientgen call SOURCE METHOD PATH`` generates the request-builder tree for
*SOURCE*, navigates it along *PATH* (as declared, with ``{placeholders}``)
and sends the request. ``-p name=value`` supplies path, query, header and
cookie parameters; the decoded response is printed as JSON on stdout.

Example::

    clientgen call openlibrary.json get /search.json -p q=tolkien
    clientgen call openlibrary.json get /authors/{olid} -p olid=OL26320A
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer
from pydantic import BaseModel

from clientgen.commands.generate import load_generation
from clientgen.generator.naming import placeholders, split_segments
from clientgen.models import HTTPMethod
from clientgen.output import error, info, print_json

_METHODS = frozenset(m.value for m in HTTPMethod)


def _parse_pairs(pairs: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            error(f"Invalid parameter '{pair}': expected name=value")
            raise typer.Exit(code=2)
        values[name] = value
    return values


def _parse_body(body: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *body* as JSON if possible, returning the raw string otherwise."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return body


def _to_jsonable(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    if hasattr(value, "to_python"):
        return value.to_python()
    return value


def call_command(
    source: str = typer.Argument(..., help="OpenAPI document path or URL."),
    method: str = typer.Argument(..., help="HTTP method, e.g. get."),
    path: str = typer.Argument(..., help="Declared path, e.g. /authors/{olid}."),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Parameter as name=value (repeatable)."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", "-d", help="Request body (JSON)."
    ),
    settings_file: Optional[str] = typer.Option(
        None, "--settings", help="Client settings file (JSON or YAML)."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the API base URL."
    ),
) -> None:
    """Send one request through the generated request builders."""
    from clientgen.client.request_builder import ApiClient
    from clientgen.config import load_client_settings
    from clientgen.exceptions import ClientgenError, InvalidUsageError

    values = _parse_pairs(param)
    result = load_generation(source)

    try:
        settings = load_client_settings(settings_file)
        if base_url:
            settings.base_url = base_url
        node = result.tree.find(path)
        if node is None:
            raise InvalidUsageError(f"Path not found in document: {path}")

        with ApiClient.from_tree(result.tree, settings) as client:
            builder: Any = client
            for segment in split_segments(path):
                child = builder.node.child(segment)
                accessor = getattr(builder, child.accessor)
                if child.is_template:
                    bound = {}
                    for name in placeholders(segment):
                        if name not in values:
                            raise InvalidUsageError(f"Missing path parameter: -p {name}=...")
                        bound[name] = values.pop(name)
                    builder = accessor(**bound)
                else:
                    builder = accessor

            if method.lower() not in _METHODS or builder.node.operation(method) is None:
                raise InvalidUsageError(f"No {method.upper()} operation at {path}")
            operation = getattr(builder, method.lower())
            response = operation(body=_parse_body(body), **values)
    except ClientgenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if response is None:
        info("No content.")
        return
    print_json(_to_jsonable(response))
