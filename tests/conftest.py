"""Shared test fixtures for clientgen.

Provides the OpenAPI documents under ``tests/fixtures``, an isolated
configuration environment, output-state management and a CLI runner.
These fixtures are discovered by pytest and available to every test module
without explicit imports.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from clientgen.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


def _load(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def typed_doc() -> dict[str, Any]:
    """Open Library document whose operations reference component schemas."""
    return _load("openlibrary_typed.json")


@pytest.fixture
def untyped_doc() -> dict[str, Any]:
    """Open Library document whose responses carry empty or free-form schemas."""
    return _load("openlibrary_untyped.json")


@pytest.fixture
def cyclic_doc() -> dict[str, Any]:
    """Self-referential, mutually recursive and alias-only schemas."""
    return _load("cyclic.json")


@pytest.fixture
def minimal_doc() -> Callable[..., dict[str, Any]]:
    """Factory for small documents: ``minimal_doc(paths={...}, schemas={...})``."""

    def _make(
        paths: dict[str, Any] | None = None,
        schemas: dict[str, Any] | None = None,
        openapi: str = "3.0.3",
    ) -> dict[str, Any]:
        document: dict[str, Any] = {
            "openapi": openapi,
            "info": {"title": "Test API", "version": "1.0.0"},
            "paths": copy.deepcopy(paths or {}),
        }
        if schemas is not None:
            document["components"] = {"schemas": copy.deepcopy(schemas)}
        return document

    return _make


@pytest.fixture
def typed_path() -> Path:
    return FIXTURES_DIR / "openlibrary_typed.json"


@pytest.fixture
def untyped_path() -> Path:
    return FIXTURES_DIR / "openlibrary_untyped.json"


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME at tmp_path, clears every CLIENTGEN_* variable and
    changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "CLIENTGEN_OUTPUT",
        "CLIENTGEN_BASE_URL",
        "CLIENTGEN_API_KEY",
        "CLIENTGEN_BEARER_TOKEN",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


class RecordingHandler:
    """``httpx.MockTransport`` handler that records requests and replays responses.

    Responses are keyed by ``(method, path)``; unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], httpx.Response] = {}

    def add(self, method: str, path: str, response: httpx.Response) -> None:
        self.routes[(method.upper(), path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"error": "not found"})
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def http_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def mock_transport(http_handler: RecordingHandler) -> httpx.MockTransport:
    return httpx.MockTransport(http_handler)


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
