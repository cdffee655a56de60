"""Identifier helpers shared by the synthesizer, the tree assembler and the emitter.

OpenAPI names are arbitrary strings (``first_publish_year``, ``X-Request-ID``,
``search.json``, ``{olid}``). Generated code needs valid Python identifiers:

* :func:`sanitize_name` -- snake_case identifier for fields, parameters and
  accessors.
* :func:`pascal_case` -- PascalCase identifier for model and builder classes.
* :func:`split_segments`, :func:`is_template`, :func:`placeholders` -- path
  template parsing.
"""

from __future__ import annotations

import keyword
import re

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")
_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


def sanitize_name(name: str, fallback: str = "value") -> str:
    """Convert an arbitrary OpenAPI name to a snake_case Python identifier.

    Example::

        >>> sanitize_name("numFound")
        'num_found'
        >>> sanitize_name("search.json")
        'search_json'
        >>> sanitize_name("class")
        'class_'
    """
    # "petId" -> "pet_Id", "XMLParser" -> "XML_Parser"
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = fallback
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def pascal_case(name: str, fallback: str = "Model") -> str:
    """Convert an arbitrary name to a PascalCase class name.

    Existing inner capitals are kept, so ``SearchResponse`` and
    ``search_response`` both become ``SearchResponse``.
    """
    words = [w for w in _INVALID_IDENT_RE.sub(" ", name.replace("_", " ")).split() if w]
    result = "".join(w[0].upper() + w[1:] for w in words)
    if not result:
        return fallback
    if result[0].isdigit():
        result = f"_{result}"
    return result


def split_segments(path: str) -> list[str]:
    """Split a path into non-empty segments.

    ``"/authors/{olid}/"`` -> ``["authors", "{olid}"]``
    ``"/"``                -> ``[]``
    """
    return [s for s in path.split("/") if s]


def normalize_path(path: str) -> str:
    """Collapse empty segments and strip the trailing slash: ``//a//b/`` -> ``/a/b``."""
    return "/" + "/".join(split_segments(path))


def placeholders(text: str) -> list[str]:
    """Return the ``{name}`` placeholder names in *text*, in order."""
    return _PLACEHOLDER_RE.findall(text)


def is_template(segment: str) -> bool:
    """Return ``True`` if *segment* contains a placeholder (``{id}``, ``{id}.json``)."""
    return bool(_PLACEHOLDER_RE.search(segment))


def unique_name(base: str, taken: set[str], separator: str = "") -> str:
    """Return *base*, or *base* with the smallest numeric suffix not in *taken*.

    The result is added to *taken*: ``Doc``, ``Doc2``, ``Doc3``.
    """
    candidate = base
    counter = 2
    while candidate in taken:
        candidate = f"{base}{separator}{counter}"
        counter += 1
    taken.add(candidate)
    return candidate
