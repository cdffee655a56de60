"""Authentication -- produce credential material for outgoing requests.

See :mod:`clientgen.auth.base` for the provider interface,
:mod:`clientgen.auth.providers` for the built-in strategies and
:mod:`clientgen.auth.manager` for settings-driven selection.
"""

from clientgen.auth.base import AuthProvider, AuthResult
from clientgen.auth.manager import create_auth_provider
from clientgen.auth.providers import (
    AccessTokenProvider,
    AllowedHostsValidator,
    AnonymousAuthProvider,
    ApiKeyAuthProvider,
    BearerTokenAuthProvider,
    StaticAccessTokenProvider,
)

__all__ = [
    "AccessTokenProvider",
    "AllowedHostsValidator",
    "AnonymousAuthProvider",
    "ApiKeyAuthProvider",
    "AuthProvider",
    "AuthResult",
    "BearerTokenAuthProvider",
    "StaticAccessTokenProvider",
    "create_auth_provider",
]
