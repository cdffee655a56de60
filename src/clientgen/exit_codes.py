"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~clientgen.exceptions.ClientgenError` subclass.
CI scripts that regenerate clients can inspect the exit code to tell a broken
document apart from an ambiguous one without parsing stderr.

Example::

    $ clientgen generate openapi.yaml -o client.json
    $ echo $?
    8   # EXIT_DUPLICATE_PATH -- two paths collapse onto the same tree node
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Credentials could not be resolved or were rejected."""

EXIT_API_ERROR = 4
"""The remote API answered with an HTTP error status (4xx or 5xx)."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DOCUMENT_PARSE_ERROR = 7
"""The OpenAPI document could not be parsed or validated."""

EXIT_DUPLICATE_PATH = 8
"""Two path declarations are ambiguous in the request-builder tree."""

EXIT_BINDING_DIAGNOSTICS = 9
"""Generation succeeded but operations were dropped (only with ``--strict``)."""
