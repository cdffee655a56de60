"""Abstract base class for authentication providers.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthResult` -- a plain container for the HTTP headers, query
  parameters and cookies a provider produces for one request.
- :class:`AuthProvider` -- the abstract base class every authentication
  strategy extends.

To add a strategy, subclass :class:`AuthProvider`, set
:attr:`~AuthProvider.auth_type` and implement
:meth:`~AuthProvider.authenticate`. The built-in strategies live in
:mod:`clientgen.auth.providers`; :func:`clientgen.auth.manager.create_auth_provider`
selects one from :class:`~clientgen.models.ClientSettings`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AuthResult:
    """Credential material to merge into one outgoing request.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).
        params: Query-string parameters to add (e.g. ``{"api_key": "..."}``).
        cookies: Cookies to add (serialised into a ``Cookie`` header).

    Example::

        result = AuthResult(headers={"X-API-Key": "k"})
        assert result.headers["X-API-Key"] == "k"
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        cookies: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}
        self.cookies = cookies or {}

    @property
    def is_empty(self) -> bool:
        return not (self.headers or self.params or self.cookies)


class AuthProvider(ABC):
    """Produce credential material for a given target URL."""

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Unique identifier, e.g. ``"anonymous"``, ``"api_key"``, ``"bearer"``."""
        ...

    @abstractmethod
    def authenticate(self, url: str) -> AuthResult:
        """Return the headers, params and cookies to send to *url*.

        Raises:
            AuthError: If credentials cannot be produced for *url*.
        """
        ...
