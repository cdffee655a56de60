"""Navigate the request-builder tree and invoke operations at runtime.

The dynamic client mirrors the URL structure of the API. Literal segments
are attributes, templated segments are ``by_<name>(value)`` calls, and HTTP
methods available at a node are callables::

    with ApiClient.from_source("openlibrary.json") as client:
        result = client.search_json.get(q="tolkien")
        author = client.authors.by_olid("OL26320A").get()

An operation binds its keyword arguments to query, header and cookie
parameters (by wire name or Python name), substitutes path values into the
URL, sends the request through the
:class:`~clientgen.client.adapter.RequestAdapter` and decodes the body: a
Pydantic model for typed responses, an
:data:`~clientgen.client.untyped.UntypedValue` for untyped ones.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from clientgen.auth.manager import create_auth_provider
from clientgen.client.adapter import RawResponse, RequestAdapter
from clientgen.client.typed import ModelFactory
from clientgen.client.untyped import (
    UntypedArray,
    UntypedBoolean,
    UntypedFloat,
    UntypedInteger,
    UntypedNull,
    UntypedObject,
    UntypedString,
)
from clientgen.exceptions import ApiResponseError, ClientgenError, InvalidUsageError
from clientgen.generator.naming import placeholders, sanitize_name
from clientgen.models import (
    ClientSettings,
    HTTPMethod,
    OperationDescriptor,
    ParameterLocation,
    PathSegment,
    TypeDescriptor,
)

_UNTYPED_NODES = (
    UntypedNull,
    UntypedBoolean,
    UntypedInteger,
    UntypedFloat,
    UntypedString,
    UntypedArray,
    UntypedObject,
)


class RequestBuilder:
    """One node of the navigable client.

    Args:
        node: The tree node this builder stands for.
        adapter: Transport shared by the whole client.
        factory: Model factory shared by the whole client.
        path_values: Values bound to placeholders on the way down.
    """

    def __init__(
        self,
        node: PathSegment,
        adapter: RequestAdapter,
        factory: Optional[ModelFactory] = None,
        path_values: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._node = node
        self._adapter = adapter
        self._factory = factory or ModelFactory()
        self._path_values = dict(path_values or {})

    @property
    def node(self) -> PathSegment:
        return self._node

    @property
    def url(self) -> str:
        """The node's path with bound placeholder values substituted."""
        path = self._node.path
        for name, value in self._path_values.items():
            path = path.replace("{" + name + "}", quote(value, safe=""))
        return path

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        if name in _METHOD_NAMES:
            descriptor = self._node.operation(name)
            if descriptor is not None:
                return Operation(self, descriptor)

        for child in self._node.children:
            if child.accessor != name:
                continue
            if child.is_template:
                return _TemplateAccessor(self, child)
            return RequestBuilder(child, self._adapter, self._factory, self._path_values)

        raise AttributeError(
            f"'{self._node.builder_name}' has no segment or operation '{name}'"
        )

    def __dir__(self) -> list[str]:
        names = [child.accessor for child in self._node.children]
        names.extend(op.method.value for op in self._node.operations)
        return sorted(set(names) | set(super().__dir__()))

    def __repr__(self) -> str:
        return f"<{self._node.builder_name} {self.url}>"

    def _child_with_value(self, child: PathSegment, value: Any) -> RequestBuilder:
        names = placeholders(child.segment)
        if len(names) != 1:
            raise InvalidUsageError(
                f"Segment '{child.segment}' binds {len(names)} placeholders; "
                f"use {child.accessor}(**values)"
            )
        return self._child_with_values(child, {names[0]: value})

    def _child_with_values(self, child: PathSegment, values: Mapping[str, Any]) -> RequestBuilder:
        bound = dict(self._path_values)
        for name in placeholders(child.segment):
            key = name if name in values else sanitize_name(name)
            if key not in values:
                raise InvalidUsageError(f"Missing value for path parameter '{name}'")
            bound[name] = str(values[key])
        return RequestBuilder(child, self._adapter, self._factory, bound)


class _TemplateAccessor:
    """Callable returned for ``by_<name>``: binds the placeholder value."""

    def __init__(self, parent: RequestBuilder, child: PathSegment) -> None:
        self._parent = parent
        self._child = child

    def __call__(self, value: Any = None, **values: Any) -> RequestBuilder:
        if values:
            return self._parent._child_with_values(self._child, values)
        if value is None:
            raise InvalidUsageError(f"{self._child.accessor}() needs a value")
        return self._parent._child_with_value(self._child, value)


class Operation:
    """An invocable HTTP method on a builder."""

    def __init__(self, builder: RequestBuilder, descriptor: OperationDescriptor) -> None:
        self.builder = builder
        self.descriptor = descriptor

    def __repr__(self) -> str:
        return f"<Operation {self.descriptor.method.value.upper()} {self.descriptor.path}>"

    def __call__(
        self,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        **arguments: Any,
    ) -> Any:
        """Send the request and return the decoded primary response.

        Returns:
            A Pydantic model, a list or scalar, an untyped node, or ``None``
            when the response carries no body.

        Raises:
            InvalidUsageError: On unknown or missing required arguments.
            ApiResponseError: If the server answers with a non-2xx status.
            ClientgenError: If the body does not match the declared schema.
        """
        params, request_headers = self._bind_arguments(arguments)
        request_headers.update(headers or {})

        content: Optional[bytes] = None
        if body is not None:
            content = _encode_body(body)
            request_headers.setdefault(
                "Content-Type", self.descriptor.request_content_type or "application/json"
            )
        elif self.descriptor.request_body_required:
            raise InvalidUsageError(f"{self._label} requires a request body")

        response = self.builder._adapter.send(
            self.descriptor.method.value.upper(),
            self.builder.url,
            headers=request_headers,
            body=content,
            params=params,
        )
        if not response.is_success:
            raise ApiResponseError(
                f"HTTP {response.status_code} from {self._label}: {response.text[:200]}",
                status_code=response.status_code,
                body=response.body,
            )
        return self._decode(response)

    @property
    def _label(self) -> str:
        return f"{self.descriptor.method.value.upper()} {self.descriptor.path}"

    def _bind_arguments(self, arguments: dict[str, Any]) -> tuple[dict[str, Any], dict[str, str]]:
        params: dict[str, Any] = {}
        headers: dict[str, str] = {}
        cookies: list[str] = []
        remaining = dict(arguments)

        for param in self.descriptor.parameters:
            if param.location == ParameterLocation.PATH:
                continue
            python_name = sanitize_name(param.name)
            if param.name in remaining:
                value = remaining.pop(param.name)
            elif python_name in remaining:
                value = remaining.pop(python_name)
            elif param.required:
                raise InvalidUsageError(f"{self._label}: missing required parameter '{param.name}'")
            else:
                continue
            if value is None:
                continue

            if param.location == ParameterLocation.QUERY:
                params[param.name] = value
            elif param.location == ParameterLocation.HEADER:
                headers[param.name] = _scalar(value)
            else:
                cookies.append(f"{param.name}={_scalar(value)}")

        if remaining:
            raise InvalidUsageError(
                f"{self._label}: unknown parameter(s) {', '.join(sorted(remaining))}"
            )
        if cookies:
            headers["Cookie"] = "; ".join(cookies)
        return params, headers

    def _response_type(self, status: int) -> Optional[TypeDescriptor]:
        responses = self.descriptor.responses
        for key in (str(status), f"{str(status)[0]}XX", "default"):
            if key in responses:
                return responses[key].type
        return self.descriptor.primary_response

    def _decode(self, response: RawResponse) -> Any:
        descriptor = self._response_type(response.status_code)
        if descriptor is None or not response.body.strip():
            return None
        try:
            data = response.json()
        except ValueError:
            # Non-JSON media types (text/plain, ...) are returned verbatim.
            return response.text
        try:
            return self.builder._factory.decode(descriptor, data)
        except ValidationError as exc:
            raise ClientgenError(
                f"Response of {self._label} does not match its schema: {exc}"
            ) from exc


class ApiClient(RequestBuilder):
    """Root builder that owns the adapter.

    Example::

        result = generate_from_source("openlibrary.json")
        with ApiClient(result.tree, RequestAdapter(settings)) as client:
            client.search_json.get(q="dune")
    """

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._adapter.close()

    @classmethod
    def from_tree(
        cls,
        tree: PathSegment,
        settings: Optional[ClientSettings] = None,
        **adapter_options: Any,
    ) -> ApiClient:
        """Build a client over *tree* with auth selected from *settings*."""
        settings = settings or ClientSettings()
        adapter = RequestAdapter(
            settings, auth_provider=create_auth_provider(settings), **adapter_options
        )
        return cls(tree, adapter)

    @classmethod
    def from_source(
        cls,
        source: str,
        settings: Optional[ClientSettings] = None,
        **adapter_options: Any,
    ) -> ApiClient:
        """Generate from *source* (path, URL or ``-``) and build a client."""
        from clientgen.generator.pipeline import generate_from_source

        result = generate_from_source(source)
        return cls.from_tree(result.tree, settings, **adapter_options)


_METHOD_NAMES = frozenset(m.value for m in HTTPMethod)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_body(body: Any) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    if isinstance(body, _UNTYPED_NODES):
        body = body.to_python()
    return json.dumps(body, ensure_ascii=False).encode("utf-8")
