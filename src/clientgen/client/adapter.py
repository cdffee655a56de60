"""HTTP transport for generated clients.

:class:`RequestAdapter` is the one place a client touches the network. It
wraps :class:`httpx.Client` and layers on:

- **Settings** -- base URL, timeout and custom headers from
  :class:`~clientgen.models.ClientSettings`.
- **Auth injection** -- the :class:`~clientgen.auth.base.AuthResult` of the
  configured provider is merged into every request, computed per URL so
  host restrictions apply.
- **Connection retries** -- delegated to
  ``httpx.HTTPTransport(retries=max_retries)``.

The adapter returns a :class:`RawResponse` for every HTTP status; turning
error statuses into exceptions is up to the caller
(:mod:`clientgen.client.request_builder`).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import httpx

from clientgen.auth.base import AuthProvider, AuthResult
from clientgen.auth.providers import AnonymousAuthProvider
from clientgen.exceptions import TransportError
from clientgen.models import ClientSettings
from clientgen.output import get_output


@dataclass
class RawResponse:
    """Status, headers and body bytes of one HTTP exchange."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON; an empty body decodes to ``None``."""
        if not self.body.strip():
            return None
        return json.loads(self.body)


class RequestAdapter:
    """Send requests for a generated client.

    Must be used as a context manager (or closed with :meth:`close`) so the
    underlying connection pool is released.

    Args:
        settings: Base URL, timeout, retries and custom headers.
        auth_provider: Produces credentials per request. Defaults to
            anonymous.
        transport: Replaces the default retrying ``httpx.HTTPTransport``;
            tests pass an ``httpx.MockTransport`` here.

    Example::

        with RequestAdapter(ClientSettings()) as adapter:
            response = adapter.send("GET", "/search.json", params={"q": "tolkien"})
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        auth_provider: Optional[AuthProvider] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.auth_provider = auth_provider or AnonymousAuthProvider()
        headers = {"Accept": "application/json"}
        headers.update(self.settings.custom_headers)
        self._client = httpx.Client(
            base_url=self.settings.base_url,
            timeout=float(self.settings.timeout_seconds),
            headers=headers,
            transport=transport or httpx.HTTPTransport(retries=self.settings.max_retries),
            follow_redirects=True,
        )

    def __enter__(self) -> RequestAdapter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> RawResponse:
        """Send one request and return the raw response.

        Args:
            method: HTTP method.
            url: Path relative to the base URL, or an absolute URL.
            headers: Per-request headers; they override custom and auth headers.
            body: Request body bytes.
            params: Query parameters. ``None`` values are dropped.

        Raises:
            AuthError: If the auth provider refuses to produce credentials.
            TransportError: On timeouts and connection failures, after the
                transport's retries are exhausted.
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        request = self._client.build_request(
            method.upper(), url, params=query, content=body
        )
        auth = self.auth_provider.authenticate(str(request.url))
        self._inject_auth(request, auth, headers or {})

        get_output().debug(f"{request.method} {request.url}")
        try:
            response = self._client.send(request)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request timed out after {self.settings.timeout_seconds}s: {request.method} {request.url}"
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Request failed: {request.method} {request.url}: {exc}") from exc

        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    @staticmethod
    def _inject_auth(
        request: httpx.Request, auth: AuthResult, headers: Mapping[str, str]
    ) -> None:
        """Merge *auth* into *request*; caller-supplied *headers* win."""
        if auth.params:
            request.url = request.url.copy_merge_params(auth.params)
        for key, value in auth.headers.items():
            request.headers[key] = value
        if auth.cookies:
            cookie = "; ".join(f"{k}={v}" for k, v in auth.cookies.items())
            existing = request.headers.get("Cookie")
            request.headers["Cookie"] = f"{existing}; {cookie}" if existing else cookie
        for key, value in headers.items():
            request.headers[key] = value
