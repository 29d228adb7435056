"""Shared test fixtures for apitypes.

Provides reusable fixtures for loading contract fixtures, creating isolated
config environments, managing output state, running CLI commands, and
standing in for the external ``json2ts`` compiler.  These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import pytest

from apitypes.models import CompilerOptions, ContractDocument
from apitypes.output import reset_output
from apitypes.parser import dereference


FIXTURES_DIR = Path(__file__).parent / "fixtures"
FAKE_COMPILER = FIXTURES_DIR / "fake_json2ts.py"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager's Rich console holds a reference to sys.stderr at
    creation time.  When Typer's CliRunner redirects that stream during a
    test, the cached reference goes stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Contract fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def widgets_raw() -> dict[str, Any]:
    """Load the raw widgets contract dict (with unresolved ``$ref`` values)."""
    with open(FIXTURES_DIR / "widgets.json") as f:
        return json.load(f)


@pytest.fixture
def widgets_contract(widgets_raw: dict[str, Any]) -> ContractDocument:
    """The widgets contract, dereferenced and validated."""
    return ContractDocument.model_validate(asyncio.run(dereference(widgets_raw)))


@pytest.fixture
def widgets_file(tmp_path: Path) -> Path:
    """Copy of the widgets contract in tmp_path."""
    path = tmp_path / "widgets.json"
    path.write_text((FIXTURES_DIR / "widgets.json").read_text(encoding="utf-8"))
    return path


@pytest.fixture
def make_contract():
    """Factory building a :class:`ContractDocument` around an inline ``paths`` map."""

    def _make(paths: dict[str, Any], **extra: Any) -> ContractDocument:
        return ContractDocument.model_validate(
            {"openapi": "3.0.3", "info": {"title": "Inline", "version": "1"}, "paths": paths, **extra}
        )

    return _make


# ---------------------------------------------------------------------------
# Compiler fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_compiler() -> CompilerOptions:
    """Compiler options running the fake ``json2ts`` with this interpreter."""
    return CompilerOptions(command=[sys.executable, str(FAKE_COMPILER)])


@pytest.fixture
def fake_compiler_command() -> str:
    """The fake compiler as a ``--compiler`` command string."""
    return f'"{sys.executable}" "{FAKE_COMPILER}"'


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME into tmp_path, clears all APITYPES_* environment
    variables and changes the working directory to tmp_path so that no
    ``apitypes.json`` from the developer's checkout leaks in.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "APITYPES_CONTRACTS_FILE",
        "APITYPES_CONTRACTS_URL",
        "APITYPES_OUTPUT",
        "APITYPES_COMPILER",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner with stderr captured separately."""
    from typer.testing import CliRunner

    try:
        return CliRunner(mix_stderr=False)
    except TypeError:
        # Click 8.2 removed mix_stderr and always separates the streams.
        return CliRunner()
