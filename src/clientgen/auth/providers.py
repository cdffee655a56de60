"""Built-in authentication providers.

* :class:`AnonymousAuthProvider` -- sends nothing.
* :class:`ApiKeyAuthProvider` -- a static key in a header or query parameter.
* :class:`BearerTokenAuthProvider` -- an ``Authorization: Bearer`` header
  whose token comes from an :class:`AccessTokenProvider`.

Bearer tokens are only released to hosts accepted by an
:class:`AllowedHostsValidator`, and only over HTTPS (``localhost`` excepted),
so a redirect or a misconfigured base URL cannot leak them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from urllib.parse import urlsplit

from clientgen.auth.base import AuthProvider, AuthResult
from clientgen.exceptions import AuthError

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class AnonymousAuthProvider(AuthProvider):
    """No credentials: every request goes out unauthenticated."""

    @property
    def auth_type(self) -> str:
        return "anonymous"

    def authenticate(self, url: str) -> AuthResult:
        return AuthResult()


class ApiKeyAuthProvider(AuthProvider):
    """Send a static API key.

    Args:
        api_key: The key value.
        name: Header or query parameter name.
        location: ``"header"`` (default) or ``"query"``.
        allowed_hosts: Hosts that may receive the key; empty means any.
    """

    def __init__(
        self,
        api_key: str,
        name: str = "X-API-Key",
        location: str = "header",
        allowed_hosts: Iterable[str] = (),
    ) -> None:
        if not api_key:
            raise AuthError("API key must not be empty")
        if location not in ("header", "query"):
            raise AuthError(f"Unsupported API key location: {location!r}")
        self._api_key = api_key
        self._name = name or "X-API-Key"
        self._location = location
        self._validator = AllowedHostsValidator(allowed_hosts)

    @property
    def auth_type(self) -> str:
        return "api_key"

    def authenticate(self, url: str) -> AuthResult:
        if not self._validator.is_url_host_valid(url):
            return AuthResult()
        if self._location == "query":
            return AuthResult(params={self._name: self._api_key})
        return AuthResult(headers={self._name: self._api_key})


class AllowedHostsValidator:
    """Decide whether a URL's host may receive credentials.

    Host names are compared case-insensitively. An empty allow-list accepts
    every host.
    """

    def __init__(self, allowed_hosts: Iterable[str] = ()) -> None:
        self._hosts = {h.strip().lower() for h in allowed_hosts if h and h.strip()}

    @property
    def allowed_hosts(self) -> list[str]:
        return sorted(self._hosts)

    def is_url_host_valid(self, url: str) -> bool:
        if not self._hosts:
            return True
        host = (urlsplit(url).hostname or "").lower()
        return host in self._hosts


class AccessTokenProvider(ABC):
    """Source of bearer tokens."""

    @abstractmethod
    def get_authorization_token(self, url: str) -> Optional[str]:
        """Return the token for *url*, or ``None`` when none should be sent."""
        ...


class StaticAccessTokenProvider(AccessTokenProvider):
    """Hand out one fixed token to allowed HTTPS hosts.

    Args:
        token: The bearer token.
        allowed_hosts: Hosts that may receive it; empty means any.

    Raises:
        AuthError: From :meth:`get_authorization_token` when *url* is plain
            HTTP to a non-local host.
    """

    def __init__(self, token: str, allowed_hosts: Iterable[str] = ()) -> None:
        if not token:
            raise AuthError("Bearer token must not be empty")
        self._token = token
        self.allowed_hosts_validator = AllowedHostsValidator(allowed_hosts)

    def get_authorization_token(self, url: str) -> Optional[str]:
        if not self.allowed_hosts_validator.is_url_host_valid(url):
            return None
        parts = urlsplit(url)
        if parts.scheme != "https" and (parts.hostname or "").lower() not in _LOCAL_HOSTS:
            raise AuthError(f"Refusing to send a bearer token over {parts.scheme or 'a relative URL'}: {url}")
        return self._token


class BearerTokenAuthProvider(AuthProvider):
    """Add ``Authorization: Bearer <token>`` using *token_provider*."""

    def __init__(self, token_provider: AccessTokenProvider) -> None:
        self.token_provider = token_provider

    @property
    def auth_type(self) -> str:
        return "bearer"

    def authenticate(self, url: str) -> AuthResult:
        token = self.token_provider.get_authorization_token(url)
        if not token:
            return AuthResult()
        return AuthResult(headers={"Authorization": f"Bearer {token}"})
