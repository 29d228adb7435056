"""Run configuration with precedence resolution and the paths-file loader.

This module turns the scattered inputs of one ``apitypes`` run into a single
:class:`~apitypes.models.GenerateConfig`:

* **Project-local config** -- an optional ``./apitypes.json`` holding any
  :class:`~apitypes.models.GenerateConfig` field, e.g.::

      {
        "contracts_file": "openapi.yaml",
        "output": "src/api-types.ts",
        "paths": ["/widgets/{id}"],
        "compiler": {"command": ["npx", "json2ts"]}
      }

* **Environment variables** -- ``APITYPES_CONTRACTS_FILE``,
  ``APITYPES_CONTRACTS_URL``, ``APITYPES_OUTPUT`` and ``APITYPES_COMPILER``.
* **CLI flags** -- passed to :func:`resolve_config` by the Typer callback.

It also resolves the data directory (XDG compliant on Linux/BSD) where the
CLI writes crash logs, loads the ``--paths-file`` route list, and builds the
route filter for a run (:func:`build_path_filter`).
"""

from __future__ import annotations

import json
import os
import platform
import shlex
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from apitypes.exceptions import ConfigError
from apitypes.models import GenerateConfig, MatchRules
from apitypes.transform import filter_from_cli

_APP_NAME = "apitypes"
_PROJECT_CONFIG_FILENAME = "apitypes.json"

ENV_CONTRACTS_FILE = "APITYPES_CONTRACTS_FILE"
ENV_CONTRACTS_URL = "APITYPES_CONTRACTS_URL"
ENV_OUTPUT = "APITYPES_OUTPUT"
ENV_COMPILER = "APITYPES_COMPILER"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apitypes/`` (default ``~/.local/share/apitypes/``).
    On macOS/Windows: ``~/.apitypes/logs/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./apitypes.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    contracts_file: Optional[str] = None,
    contracts_url: Optional[str] = None,
    output: Optional[str] = None,
    paths_file: Optional[str] = None,
    paths: Optional[Sequence[str]] = None,
    path_patterns: Optional[Sequence[str]] = None,
    schema_output: Optional[str] = None,
    compiler: Optional[str] = None,
) -> GenerateConfig:
    """Resolve the effective run configuration.

    Precedence (high to low):
        1. CLI flags (the arguments of this function)
        2. Environment variables (``APITYPES_*``)
        3. Project config (``./apitypes.json``)
        4. Defaults

    The contract source is resolved as a pair: the highest layer naming
    either ``contracts_file`` or ``contracts_url`` supplies both, so a URL
    given on the command line is never combined with a file from the project
    config.  ``compiler`` strings are split with shell quoting rules.

    Raises:
        ConfigError: If the project config is invalid.
    """
    # 4 + 3. Defaults, overlaid with the project config
    project = load_project_config() or {}
    try:
        config = GenerateConfig.model_validate(project)
    except ValidationError as exc:
        raise ConfigError(f"Invalid project config: {exc}") from exc

    updates: dict[str, Any] = {}

    # Contract source: CLI > env > project
    if contracts_file or contracts_url:
        updates["contracts_file"] = contracts_file
        updates["contracts_url"] = contracts_url
    elif os.environ.get(ENV_CONTRACTS_FILE) or os.environ.get(ENV_CONTRACTS_URL):
        updates["contracts_file"] = os.environ.get(ENV_CONTRACTS_FILE) or None
        updates["contracts_url"] = os.environ.get(ENV_CONTRACTS_URL) or None

    # 2. Environment variables
    env_output = os.environ.get(ENV_OUTPUT)
    if env_output:
        updates["output"] = env_output
    env_compiler = os.environ.get(ENV_COMPILER)
    if env_compiler:
        compiler = compiler or env_compiler

    # 1. CLI flags (highest precedence)
    if output is not None:
        updates["output"] = output
    if paths_file is not None:
        updates["paths_file"] = paths_file
    if paths:
        updates["paths"] = list(paths)
    if path_patterns:
        updates["path_patterns"] = list(path_patterns)
    if schema_output is not None:
        updates["schema_output"] = schema_output
    if compiler:
        command = shlex.split(compiler)
        if not command:
            raise ConfigError("Compiler command is empty")
        updates["compiler"] = config.compiler.model_copy(update={"command": command})

    return config.model_copy(update=updates)


# --- Route selection ---


def load_paths_file(path: str) -> list[str]:
    """Load the routes listed in a ``--paths-file``.

    The file must hold a JSON array of strings at its root.

    Raises:
        ConfigError: If the file cannot be read or has any other shape.
    """
    file_path = Path(path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read paths file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in paths file {path}: {exc}") from exc

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ConfigError(f"Expected JSON file with array of strings at root: {path}")
    return data


def build_path_filter(config: GenerateConfig) -> MatchRules:
    """Build the route filter for *config*.

    Routes from the paths file come first, then ``paths``, then the
    ``path_patterns``.  An empty result keeps every route.

    Raises:
        ConfigError: If the paths file is invalid.
        InvalidUsageError: If a pattern is not a valid regular expression.
    """
    routes: list[str] = []
    if config.paths_file:
        routes.extend(load_paths_file(config.paths_file))
    routes.extend(config.paths)
    return filter_from_cli(routes, config.path_patterns)
