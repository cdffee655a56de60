"""Exception hierarchy for clientgen.

All exceptions inherit from :class:`ClientgenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`clientgen.exit_codes`
and an optional ``pointer`` (a JSON pointer into the source document) so that
every failure can be reported with a location.

Subclass hierarchy::

    ClientgenError          (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- ApiResponseError    (exit 4)
    +-- TransportError      (exit 6)
    +-- DocumentParseError  (exit 7)   fatal, aborts before any output
    +-- DuplicatePathError  (exit 8)   fatal, aborts the whole run
    +-- BindingError        (exit 1)   non-fatal, one operation is dropped
    +-- ConfigError         (exit 1)

``BindingError`` is the only one the pipeline catches itself: the operation
binder turns it into a :class:`~clientgen.models.Diagnostic` and keeps going.
"""

from __future__ import annotations

from clientgen.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_DOCUMENT_PARSE_ERROR,
    EXIT_DUPLICATE_PATH,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TRANSPORT_ERROR,
)


class ClientgenError(Exception):
    """Base exception for all clientgen errors.

    Args:
        message: Human-readable error description printed to stderr.
        pointer: JSON pointer (``#/paths/...``) locating the problem in the
            source document, when one applies.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        pointer: str | None = None,
        exit_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.pointer = pointer
        if exit_code is not None:
            self.exit_code = exit_code

    def __str__(self) -> str:
        if self.pointer:
            return f"{self.message} (at {self.pointer})"
        return self.message


class InvalidUsageError(ClientgenError):
    """Raised for invalid CLI arguments or missing required call parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(ClientgenError):
    """Raised when credentials cannot be produced for a request."""

    exit_code = EXIT_AUTH_FAILURE


class ApiResponseError(ClientgenError):
    """Raised when a generated client receives an HTTP error status.

    Args:
        message: Description including the status line.
        status_code: The HTTP status code.
        body: The raw response body.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, message: str, status_code: int, body: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransportError(ClientgenError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_TRANSPORT_ERROR


class DocumentParseError(ClientgenError):
    """Raised when the OpenAPI document is malformed or not OpenAPI 3.x."""

    exit_code = EXIT_DOCUMENT_PARSE_ERROR


class DuplicatePathError(ClientgenError):
    """Raised when two path declarations land on the same request-builder node."""

    exit_code = EXIT_DUPLICATE_PATH


class BindingError(ClientgenError):
    """Raised when one operation's parameters or responses contradict its path.

    Args:
        message: Description of the inconsistency.
        pointer: Pointer to the offending operation.
        path: The declared path template.
        method: The HTTP method of the operation.
    """

    def __init__(
        self,
        message: str,
        pointer: str | None = None,
        path: str | None = None,
        method: str | None = None,
    ):
        super().__init__(message, pointer=pointer)
        self.path = path
        self.method = method


class ConfigError(ClientgenError):
    """Raised for configuration problems (invalid settings file, bad credential source)."""
