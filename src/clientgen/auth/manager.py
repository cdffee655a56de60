"""Select an authentication provider from client settings.

Selection order mirrors how a settings file is usually written:

1. ``apiKey`` set -- :class:`~clientgen.auth.providers.ApiKeyAuthProvider`
   sending the key in the ``apiKeyHeader`` header.
2. ``bearerToken`` set -- :class:`~clientgen.auth.providers.BearerTokenAuthProvider`
   over a :class:`~clientgen.auth.providers.StaticAccessTokenProvider`.
3. Otherwise -- :class:`~clientgen.auth.providers.AnonymousAuthProvider`.
"""

from __future__ import annotations

from typing import Iterable

from clientgen.auth.base import AuthProvider
from clientgen.auth.providers import (
    AnonymousAuthProvider,
    ApiKeyAuthProvider,
    BearerTokenAuthProvider,
    StaticAccessTokenProvider,
)
from clientgen.models import ClientSettings


def create_auth_provider(
    settings: ClientSettings, allowed_hosts: Iterable[str] = ()
) -> AuthProvider:
    """Return the provider *settings* asks for.

    Args:
        settings: Client settings; blank credentials count as unset.
        allowed_hosts: Hosts that may receive credentials. Empty means any.

    Example::

        provider = create_auth_provider(ClientSettings(apiKey="k"))
        provider.authenticate("https://openlibrary.org/search.json").headers
        # {"X-API-Key": "k"}
    """
    if settings.api_key:
        return ApiKeyAuthProvider(
            settings.api_key,
            name=settings.api_key_header or "X-API-Key",
            allowed_hosts=allowed_hosts,
        )
    if settings.bearer_token:
        return BearerTokenAuthProvider(
            StaticAccessTokenProvider(settings.bearer_token, allowed_hosts=allowed_hosts)
        )
    return AnonymousAuthProvider()
