"""Integration tests for the clientgen CLI.

Runs the Typer app through ``CliRunner`` against the fixture documents:
generation to disk and stdout, the inspect views, the typed/untyped report,
``call`` against a mocked transport, exit codes and the crash-log path.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import httpx
import pytest
from typer.testing import CliRunner

from clientgen import __version__
from clientgen.app import app

if TYPE_CHECKING:
    from conftest import RecordingHandler

PLAIN = ["--no-color"]
QUIET = ["--no-color", "--quiet"]


def _write_doc(directory: Path, document: dict[str, Any], name: str = "doc.json") -> str:
    path = directory / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def _ok() -> dict[str, Any]:
    return {"responses": {"200": {"description": "ok"}}}


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"clientgen {__version__}" in result.output

    def test_help_lists_commands(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "inspect", "report", "call"):
            assert command in result.output


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_writes_manifest(
        self, cli_runner: CliRunner, isolated_config: Path, typed_path: Path
    ) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "generate", str(typed_path)])

        assert result.exit_code == 0, result.output
        assert "Wrote 6 model(s) and 5 builder(s) to client.json" in result.output
        manifest = json.loads((isolated_config / "client.json").read_text(encoding="utf-8"))
        assert manifest["title"] == "Open Library API"
        assert [m["name"] for m in manifest["models"]][:3] == ["SearchResponse", "SearchDoc", "Author"]

    def test_output_and_names_from_flags(
        self, cli_runner: CliRunner, isolated_config: Path, typed_path: Path
    ) -> None:
        result = cli_runner.invoke(
            app,
            [
                *QUIET,
                "generate",
                str(typed_path),
                "-o",
                "out/openlibrary.json",
                "--client-name",
                "OpenLibrary",
                "--namespace",
                "openlibrary",
            ],
        )
        assert result.exit_code == 0, result.output
        manifest = json.loads(
            (isolated_config / "out" / "openlibrary.json").read_text(encoding="utf-8")
        )
        assert manifest["client_name"] == "OpenLibrary"
        assert manifest["namespace"] == "openlibrary"

    def test_project_config_is_used(
        self, cli_runner: CliRunner, isolated_config: Path, typed_path: Path
    ) -> None:
        (isolated_config / "clientgen.json").write_text(
            json.dumps({"output": "from-project.json"}), encoding="utf-8"
        )
        result = cli_runner.invoke(app, [*QUIET, "generate", str(typed_path)])
        assert result.exit_code == 0, result.output
        assert (isolated_config / "from-project.json").is_file()

    def test_stdout_is_byte_stable(
        self, cli_runner: CliRunner, isolated_config: Path, typed_path: Path
    ) -> None:
        first = cli_runner.invoke(app, [*QUIET, "generate", str(typed_path), "--stdout"])
        second = cli_runner.invoke(app, [*QUIET, "generate", str(typed_path), "--stdout"])

        assert first.exit_code == 0, first.output
        assert first.stdout == second.stdout
        assert json.loads(first.stdout)["builders"][0]["class_name"] == "ApiClient"
        assert not (isolated_config / "client.json").exists()

    def test_reads_stdin(
        self, cli_runner: CliRunner, isolated_config: Path, typed_doc: dict[str, Any]
    ) -> None:
        result = cli_runner.invoke(
            app, [*QUIET, "generate", "-", "--stdout"], input=json.dumps(typed_doc)
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["version"] == "1.2.0"

    def test_untyped_operations_are_reported(
        self, cli_runner: CliRunner, isolated_config: Path, untyped_path: Path
    ) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "generate", str(untyped_path)])
        assert result.exit_code == 0, result.output
        assert "4 operation(s) return untyped values." in result.output
        assert f"clientgen report {untyped_path}" in result.output

    def test_missing_document(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "generate", "nope.json"])
        assert result.exit_code == 7
        assert "Error:" in result.output
        assert "not found" in result.output

    def test_swagger_document(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        source = _write_doc(isolated_config, {"swagger": "2.0", "paths": {}})
        result = cli_runner.invoke(app, [*PLAIN, "generate", source])
        assert result.exit_code == 7
        assert "Swagger 2.0" in result.output

    def test_duplicate_paths(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        minimal_doc: Callable[..., dict[str, Any]],
    ) -> None:
        source = _write_doc(isolated_config, minimal_doc(paths={"/a": {"get": _ok()}, "/a/": {"get": _ok()}}))
        result = cli_runner.invoke(app, [*PLAIN, "generate", source])
        assert result.exit_code == 8
        assert not (isolated_config / "client.json").exists()


class TestGenerateDiagnostics:
    @pytest.fixture
    def broken_source(
        self, isolated_config: Path, minimal_doc: Callable[..., dict[str, Any]]
    ) -> str:
        return _write_doc(
            isolated_config,
            minimal_doc(paths={"/authors/{olid}": {"get": _ok()}, "/lists": {"get": _ok()}}),
        )

    def test_dropped_operation_is_reported(
        self, cli_runner: CliRunner, isolated_config: Path, broken_source: str
    ) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "generate", broken_source])
        assert result.exit_code == 0, result.output
        assert "Error: [binding-error] GET /authors/{olid}" in result.output
        assert (isolated_config / "client.json").is_file()

    def test_strict_fails(
        self, cli_runner: CliRunner, isolated_config: Path, broken_source: str
    ) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "generate", broken_source, "--strict"])
        assert result.exit_code == 9
        assert "1 operation(s) dropped (strict mode)." in result.output

    def test_strict_from_project_config(
        self, cli_runner: CliRunner, isolated_config: Path, broken_source: str
    ) -> None:
        (isolated_config / "clientgen.json").write_text(
            json.dumps({"strict": True}), encoding="utf-8"
        )
        assert cli_runner.invoke(app, [*QUIET, "generate", broken_source]).exit_code == 9
        result = cli_runner.invoke(app, [*QUIET, "generate", broken_source, "--no-strict"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


class TestInspect:
    def test_tree_plain(self, cli_runner: CliRunner, typed_path: Path) -> None:
        result = cli_runner.invoke(app, [*QUIET, "inspect", "tree", str(typed_path)])
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == [
            "/",
            "  search.json  [GET]",
            "  authors",
            "    {olid}  [GET]",
            "  lists  [POST]",
        ]

    def test_tree_json(self, cli_runner: CliRunner, untyped_path: Path) -> None:
        result = cli_runner.invoke(app, ["--json", *QUIET, "inspect", "tree", str(untyped_path)])
        assert result.exit_code == 0, result.output
        tree = json.loads(result.stdout)
        assert [c["accessor"] for c in tree["children"]] == ["search_json", "search", "authors"]

    def test_types(self, cli_runner: CliRunner, typed_path: Path) -> None:
        result = cli_runner.invoke(app, [*QUIET, "inspect", "types", str(typed_path)])
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0] == "Name\tKind\tRef\tMembers"
        assert lines[1] == (
            "SearchResponse\tobject\t#/components/schemas/SearchResponse\tnumFound, start?, q?, docs"
        )
        assert "SearchDocEbookAccess\tenum\t#/components/schemas/SearchDoc/properties/ebook_access\t" in result.stdout

    def test_types_none(self, cli_runner: CliRunner, untyped_path: Path) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "inspect", "types", str(untyped_path)])
        assert result.exit_code == 0
        assert "No named types" in result.output

    def test_operations_json(self, cli_runner: CliRunner, typed_path: Path) -> None:
        result = cli_runner.invoke(app, ["--json", *QUIET, "inspect", "operations", str(typed_path)])
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert records[0] == {
            "Method": "GET",
            "Path": "/search.json",
            "Operation": "search_books",
            "Parameters": "q, page?",
            "Returns": "SearchResponse",
        }
        assert records[1]["Operation"] == "-"

    def test_inspect_missing_document(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "inspect", "tree", "missing.yaml"])
        assert result.exit_code == 7


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------


class TestReport:
    def test_typed(self, cli_runner: CliRunner, typed_path: Path) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "report", str(typed_path)])
        assert result.exit_code == 0, result.output
        assert "GET\t/search.json\ttyped\tSearchResponse" in result.output
        assert "3 typed, 0 untyped, 0 without body, 0 dropped" in result.output

    def test_untyped(self, cli_runner: CliRunner, untyped_path: Path) -> None:
        result = cli_runner.invoke(app, ["--json", *QUIET, "report", str(untyped_path)])
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert {r["Result"] for r in records} == {"untyped"}
        assert {r["Returns"] for r in records} == {"untyped"}

    def test_dropped_and_no_body(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        minimal_doc: Callable[..., dict[str, Any]],
    ) -> None:
        source = _write_doc(
            isolated_config,
            minimal_doc(paths={"/authors/{olid}": {"get": _ok()}, "/ping": {"head": _ok()}}),
        )
        result = cli_runner.invoke(app, [*PLAIN, "report", source])
        assert result.exit_code == 0, result.output
        assert "HEAD\t/ping\tno body\t-" in result.output
        assert "GET\t/authors/{olid}\tdropped\t" in result.output
        assert "0 typed, 0 untyped, 1 without body, 1 dropped" in result.output


# ---------------------------------------------------------------------------
# call
# ---------------------------------------------------------------------------


@pytest.fixture
def patched_transport(
    monkeypatch: pytest.MonkeyPatch, mock_transport: httpx.MockTransport
) -> httpx.MockTransport:
    """Route every RequestAdapter built by the CLI through the mock transport."""
    monkeypatch.setattr(httpx, "HTTPTransport", lambda retries=0: mock_transport)
    return mock_transport


class TestCall:
    def test_typed_get(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        typed_path: Path,
        http_handler: RecordingHandler,
        patched_transport: httpx.MockTransport,
    ) -> None:
        http_handler.add(
            "GET",
            "/search.json",
            httpx.Response(200, json={"numFound": 1, "docs": [{"key": "/works/OL1W"}]}),
        )
        result = cli_runner.invoke(
            app, [*QUIET, "call", str(typed_path), "get", "/search.json", "-p", "q=dune"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"numFound": 1, "docs": [{"key": "/works/OL1W"}]}
        assert http_handler.last.url.params["q"] == "dune"

    def test_path_parameter_and_base_url(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        typed_path: Path,
        http_handler: RecordingHandler,
        patched_transport: httpx.MockTransport,
    ) -> None:
        http_handler.add(
            "GET",
            "/authors/OL23919A",
            httpx.Response(200, json={"key": "/authors/OL23919A", "name": "J. K. Rowling"}),
        )
        result = cli_runner.invoke(
            app,
            [
                *QUIET,
                "call",
                str(typed_path),
                "GET",
                "/authors/{olid}",
                "-p",
                "olid=OL23919A",
                "--base-url",
                "https://mirror.example.com",
            ],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["name"] == "J. K. Rowling"
        assert http_handler.last.url.host == "mirror.example.com"

    def test_post_body(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        typed_path: Path,
        http_handler: RecordingHandler,
        patched_transport: httpx.MockTransport,
    ) -> None:
        http_handler.add("POST", "/lists", httpx.Response(201, json={"key": "/lists/OL1L"}))
        result = cli_runner.invoke(
            app,
            [*QUIET, "call", str(typed_path), "post", "/lists", "-d", '{"name": "To read"}'],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(http_handler.last.content) == {"name": "To read"}

    def test_settings_file(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        typed_path: Path,
        http_handler: RecordingHandler,
        patched_transport: httpx.MockTransport,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("OPENLIBRARY_TEST_KEY", "k-7")
        settings = Path(__file__).parent.parent / "fixtures" / "settings.json"
        http_handler.add("GET", "/authors/OL1A", httpx.Response(200, json={"key": "k", "name": "n"}))
        result = cli_runner.invoke(
            app,
            [
                *QUIET,
                "call",
                str(typed_path),
                "get",
                "/authors/{olid}",
                "-p",
                "olid=OL1A",
                "--settings",
                str(settings),
            ],
        )
        assert result.exit_code == 0, result.output
        request = http_handler.last
        assert request.url.host == "api.example.com"
        assert request.headers["X-Library-Key"] == "k-7"
        assert request.headers["User-Agent"] == "clientgen-tests"

    def test_untyped_response(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        untyped_path: Path,
        http_handler: RecordingHandler,
        patched_transport: httpx.MockTransport,
    ) -> None:
        http_handler.add("GET", "/search.json", httpx.Response(200, json={"anything": [1, 2]}))
        result = cli_runner.invoke(app, [*QUIET, "call", str(untyped_path), "get", "/search.json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"anything": [1, 2]}

    def test_error_status_exit_code(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        typed_path: Path,
        patched_transport: httpx.MockTransport,
    ) -> None:
        result = cli_runner.invoke(
            app, [*PLAIN, "call", str(typed_path), "get", "/authors/{olid}", "-p", "olid=nobody"]
        )
        assert result.exit_code == 4
        assert "HTTP 404" in result.output

    @pytest.mark.parametrize(
        ("arguments", "message"),
        [
            (["get", "/works"], "Path not found"),
            (["get", "/authors/{olid}"], "Missing path parameter"),
            (["delete", "/lists"], "No DELETE operation at /lists"),
            (["fetch", "/lists"], "No FETCH operation"),
            (["get", "/search.json"], "missing required parameter 'q'"),
            (["get", "/search.json", "-p", "nonsense"], "expected name=value"),
        ],
    )
    def test_usage_errors(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        typed_path: Path,
        patched_transport: httpx.MockTransport,
        arguments: list[str],
        message: str,
    ) -> None:
        result = cli_runner.invoke(app, [*PLAIN, "call", str(typed_path), *arguments])
        assert result.exit_code == 2
        assert message in result.output


# ---------------------------------------------------------------------------
# main() entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_crash_log_written(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        import clientgen.app as app_module

        def _boom() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr("clientgen.config._is_xdg_platform", lambda: True)
        monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)
        monkeypatch.setattr(app_module, "app", _boom)

        with pytest.raises(SystemExit) as excinfo:
            app_module.main()

        assert excinfo.value.code == 1
        assert "Unexpected error. Debug log:" in capsys.readouterr().err
        logs = list((isolated_config / "data" / "clientgen" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()

    def test_clientgen_error_maps_exit_code(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import clientgen.app as app_module
        from clientgen.exceptions import DuplicatePathError

        def _duplicate() -> None:
            raise DuplicatePathError("Path '/a/' duplicates '/a'")

        monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)
        monkeypatch.setattr(app_module, "app", _duplicate)

        with pytest.raises(SystemExit) as excinfo:
            app_module.main()
        assert excinfo.value.code == 8
