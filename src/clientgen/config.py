"""Configuration loading with precedence resolution, atomic writes and XDG paths.

This module handles every piece of configuration clientgen reads:

* **Generator config** -- ``./clientgen.json`` holds a
  :class:`~clientgen.models.GeneratorConfig` (client name, namespace,
  output path). :func:`resolve_generator_config` layers environment
  variables and CLI flags on top.
* **Client settings** -- :func:`load_client_settings` reads the ``OpenApi``
  section of a JSON or YAML settings file into a
  :class:`~clientgen.models.ClientSettings` used by the runtime client.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars or files, so settings files never need to hold them.
* **Directory layout** -- :func:`get_data_dir` for crash logs, XDG
  compliant on Linux/BSD and ``~/.clientgen/`` elsewhere.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written manifest.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from clientgen.exceptions import ConfigError
from clientgen.models import ClientSettings, GeneratorConfig

_APP_NAME = "clientgen"
_PROJECT_CONFIG_FILENAME = "clientgen.json"
_SETTINGS_SECTION = "OpenApi"

ENV_OUTPUT = "CLIENTGEN_OUTPUT"
ENV_BASE_URL = "CLIENTGEN_BASE_URL"
ENV_API_KEY = "CLIENTGEN_API_KEY"
ENV_BEARER_TOKEN = "CLIENTGEN_BEARER_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/clientgen/`` (default ``~/.local/share/clientgen/``).
    On macOS/Windows: ``~/.clientgen/logs/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* atomically using a temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems. On any failure the temp file is
    removed and *path* is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        # Includes KeyboardInterrupt: never leave the temp file behind.
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Generator config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[GeneratorConfig]:
    """Load ``clientgen.json`` from *directory* (default: the working directory).

    Returns:
        The parsed config, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GeneratorConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc


def resolve_generator_config(
    cli_output: Optional[str] = None,
    cli_client_name: Optional[str] = None,
    cli_namespace: Optional[str] = None,
    cli_strict: Optional[bool] = None,
    directory: Optional[Path] = None,
) -> GeneratorConfig:
    """Resolve the generator config with full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``CLIENTGEN_OUTPUT``)
        3. Project config (``./clientgen.json``)
        4. Defaults
    """
    config = load_project_config(directory) or GeneratorConfig()

    env_output = os.environ.get(ENV_OUTPUT)
    if env_output:
        config.output = env_output

    if cli_output is not None:
        config.output = cli_output
    if cli_client_name is not None:
        config.client_name = cli_client_name
    if cli_namespace is not None:
        config.namespace = cli_namespace
    if cli_strict is not None:
        config.strict = cli_strict
    return config


# --- Client settings ---


def load_client_settings(path: Optional[str | Path] = None) -> ClientSettings:
    """Build :class:`ClientSettings` from a settings file and the environment.

    The file may be JSON or YAML. Settings are read from its ``OpenApi``
    section when present, otherwise from the top level. ``apiKey`` and
    ``bearerToken`` may name a credential source (``env:VAR``,
    ``file:/path``) instead of holding the secret itself.

    Environment variables override the file: ``CLIENTGEN_BASE_URL``,
    ``CLIENTGEN_API_KEY`` and ``CLIENTGEN_BEARER_TOKEN``.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated, or a
            credential source cannot be resolved.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = _read_settings_file(Path(path))

    env_overrides = {
        "baseUrl": os.environ.get(ENV_BASE_URL),
        "apiKey": os.environ.get(ENV_API_KEY),
        "bearerToken": os.environ.get(ENV_BEARER_TOKEN),
    }
    data.update({k: v for k, v in env_overrides.items() if v})

    try:
        settings = ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client settings: {exc}") from exc

    if settings.api_key and _is_credential_source(settings.api_key):
        settings.api_key = resolve_credential(settings.api_key)
    if settings.bearer_token and _is_credential_source(settings.bearer_token):
        settings.bearer_token = resolve_credential(settings.bearer_token)
    return settings


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain an object")
    section = data.get(_SETTINGS_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{_SETTINGS_SECTION}' in {path} must be an object")
    return dict(section)


# --- Credential source resolution ---


def _is_credential_source(value: str) -> bool:
    return value.startswith(("env:", "file:"))


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
