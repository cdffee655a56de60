"""Runtime client -- call an API through its generated request-builder tree.

* :mod:`~clientgen.client.adapter` -- HTTP transport over ``httpx``.
* :mod:`~clientgen.client.request_builder` -- attribute navigation and
  operation invocation.
* :mod:`~clientgen.client.typed` -- Pydantic models built from descriptors.
* :mod:`~clientgen.client.untyped` -- values for schema-less responses.
"""

from clientgen.client.adapter import RawResponse, RequestAdapter
from clientgen.client.request_builder import ApiClient, Operation, RequestBuilder
from clientgen.client.typed import ModelFactory
from clientgen.client.untyped import (
    UntypedArray,
    UntypedBoolean,
    UntypedFloat,
    UntypedInteger,
    UntypedNull,
    UntypedObject,
    UntypedString,
    UntypedValue,
    to_untyped,
)

__all__ = [
    "ApiClient",
    "ModelFactory",
    "Operation",
    "RawResponse",
    "RequestAdapter",
    "RequestBuilder",
    "UntypedArray",
    "UntypedBoolean",
    "UntypedFloat",
    "UntypedInteger",
    "UntypedNull",
    "UntypedObject",
    "UntypedString",
    "UntypedValue",
    "to_untyped",
]
