"""Load OpenAPI documents from a URL, local file, or stdin.

This module is the only place the generator performs I/O on its input: one
read of the source, then parsing into a plain ``dict``. JSON and YAML are both
accepted with automatic format detection, and the document must declare an
OpenAPI 3.x version.

The public functions are:

* :func:`load_document` -- Load and parse a document from any supported source.
* :func:`validate_openapi_version` -- Check and return the ``openapi`` version
  string, rejecting Swagger 2.x and other versions.
* :func:`parse_document` -- Parse already-read text (used by tests and by
  callers that fetch the document themselves).

Every failure raises :class:`~clientgen.exceptions.DocumentParseError`, which
aborts the run before any output is produced.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from clientgen.exceptions import DocumentParseError


def load_document(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        DocumentParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source)
    return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DocumentParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DocumentParseError("No input received from stdin")

    return parse_document(content)


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a document over HTTP, using the content type as a format hint."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DocumentParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DocumentParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return parse_document(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a document from disk. ``.json``/``.yaml``/``.yml`` pick the parser."""
    file_path = Path(path)
    if not file_path.is_file():
        raise DocumentParseError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentParseError(f"Failed to read document {path}: {exc}") from exc

    if not content.strip():
        raise DocumentParseError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return parse_document(content, hint=hint)


def parse_document(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless *hint* is ``"yaml"``), then falls back to YAML.
    Valid JSON is also valid YAML, but the JSON parser is stricter and gives
    better error positions.

    Args:
        content: The raw string content.
        hint: Optional format hint (``"json"`` or ``"yaml"``).

    Returns:
        The parsed dictionary.

    Raises:
        DocumentParseError: If the content is not a JSON/YAML mapping.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DocumentParseError(
                    f"Invalid JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}"
                ) from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_mapping(result)

    msg = "Failed to parse document as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DocumentParseError(msg)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DocumentParseError(f"Document must be a JSON/YAML object (got {kind})")
    return result


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Accepts any ``3.x`` version. Swagger 2.x documents and documents without
    an ``openapi`` field are rejected.

    Raises:
        DocumentParseError: If the version is missing or unsupported.
    """
    if "swagger" in document:
        raise DocumentParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.x documents can be generated from.",
            pointer="#/swagger",
        )

    openapi_version = document.get("openapi")
    if openapi_version is None:
        raise DocumentParseError(
            "Missing 'openapi' field. Is this an OpenAPI 3.x document?",
            pointer="#",
        )

    version_str = str(openapi_version)
    if not version_str.startswith("3."):
        raise DocumentParseError(
            f"Unsupported OpenAPI version: {version_str}. Only 3.x is supported.",
            pointer="#/openapi",
        )
    return version_str
